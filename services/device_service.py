"""
Device ingestion and query service.

Every authenticated call runs the same pipeline, stopping at the first failure:

1. resolve:   hex token → TokenEntry; unknown or outside its validity window
              is an AuthenticationError, raised before anything else happens
2. enabled:   operations switched off on this deployment answer NotFoundError
3. authorize: the entry must carry the operation's one required permission
4. translate: wire DTO → storage arguments; ``update_time`` and
              ``remote_addr`` always come from the server
5. execute:   any storage exception is logged with the identity (hex secret
              key, never the token) and surfaces as an opaque InternalError
6. respond:   storage result → response DTO; emergencies fire the alerter

IntroduceMyself is the one unauthenticated call: it mints the identity.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from config import AppSettings
from errors import (
    AppError,
    AuthenticationError,
    ForbiddenError,
    InternalError,
    NotFoundError,
)
from infrastructure.alerts.protocol import EmergencyAlerter
from infrastructure.registration.protocol import RegistrationKeyValidator
from schemas.dto.requests.device import (
    IntroduceMyselfRequest,
    ListLocationsRequest,
    RevokeTokenRequest,
    SubmitLocationRequest,
    TokenRequest,
)
from schemas.dto.responses.device import (
    ActionResponse,
    IntroduceMyselfResponse,
    ListLocationsResponse,
    ListTokensResponse,
    LocationSnapshot,
    StorageInfoResponse,
    SubmitLocationResponse,
    TokenInfo,
)
from schemas.models.identity import Introduction, Permission, SecretKey, Token, TokenEntry
from schemas.models.location import LocationRecord
from shared.datetime_utils import utc_now
from shared.generators import generate_credentials
from shared.logging import get_logger, hash_ip, should_sample
from shared.validators import decode_hex, decode_optional_hex
from storage import AppendOutcome, LocationStorage

log = get_logger(__name__)

T = TypeVar("T")


class Operation(str, Enum):
    INTRODUCE_MYSELF = "IntroduceMyself"
    SUBMIT_LOCATION = "SubmitLocation"
    LIST_LOCATIONS = "ListLocations"
    GET_STORAGE_INFO = "GetStorageInfo"
    REVOKE_TOKEN = "RevokeToken"
    LIST_TOKENS = "ListTokens"
    PURGE_LOCATIONS = "PurgeLocations"
    REQUEST_EXCOMMUNICATION = "RequestExcommunication"


# SubmitLocation needs WIPE instead once the identity has been excommunicated.
REQUIRED_PERMISSIONS: dict[Operation, Permission] = {
    Operation.SUBMIT_LOCATION: Permission.WRITE_LOCATIONS,
    Operation.LIST_LOCATIONS: Permission.READ_LOCATIONS,
    Operation.GET_STORAGE_INFO: Permission.STATS,
    Operation.REVOKE_TOKEN: Permission.LIST_TOKENS,
    Operation.LIST_TOKENS: Permission.LIST_TOKENS,
    Operation.PURGE_LOCATIONS: Permission.WRITE_LOCATIONS,
    Operation.REQUEST_EXCOMMUNICATION: Permission.WIPE,
}


class DeviceService:
    def __init__(
        self,
        storage: LocationStorage,
        settings: AppSettings,
        registration_validator: RegistrationKeyValidator,
        alerter: EmergencyAlerter,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._settings = settings
        self._registration_validator = registration_validator
        self._alerter = alerter
        self._clock = clock
        self._disabled = frozenset(settings.disabled_operations)

    # ── Pipeline steps ──────────────────────────────────────────────────────

    async def _authenticate(self, token: Token, op: Operation) -> TokenEntry:
        entry = await self._execute(op, None, self._storage.resolve_token(token))
        if entry is None or not entry.is_valid_at(self._clock()):
            raise AuthenticationError("Unauthenticated")
        self._ensure_enabled(op)
        return entry

    def _ensure_enabled(self, op: Operation) -> None:
        if op.value in self._disabled:
            raise NotFoundError(f"{op.value} is not available on this server")

    def _authorize(
        self,
        entry: TokenEntry,
        op: Operation,
        required: Optional[Permission] = None,
    ) -> None:
        required = required or REQUIRED_PERMISSIONS[op]
        if not entry.permissions.allows(required):
            log.info(
                "permission_denied",
                operation=op.value,
                identity=entry.secret_key.hex(),
                required=required.value,
            )
            raise ForbiddenError("Permission denied", details={"required": required.value})

    async def _execute(
        self, op: Operation, identity: Optional[SecretKey], call: Awaitable[T]
    ) -> T:
        try:
            return await call
        except AppError:
            raise
        except Exception as e:
            log.error(
                "storage_operation_failed",
                operation=op.value,
                identity=identity.hex() if identity else None,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InternalError("Database failure.") from e

    async def _entry_for(self, raw_token: str, op: Operation) -> TokenEntry:
        entry = await self._authenticate(decode_hex(raw_token), op)
        self._authorize(entry, op)
        return entry

    # ── Operations ──────────────────────────────────────────────────────────

    async def introduce_myself(
        self, request: IntroduceMyselfRequest, remote_addr: Optional[str]
    ) -> IntroduceMyselfResponse:
        op = Operation.INTRODUCE_MYSELF
        self._ensure_enabled(op)
        registration_key = decode_optional_hex(
            request.registration_key, field="registration_key"
        )
        if not self._settings.open_registration:
            if not await self._registration_validator.verify(registration_key):
                log.warning(
                    "registration_rejected",
                    remote_addr=hash_ip(remote_addr),
                    key_supplied=registration_key is not None,
                )
                raise ForbiddenError("Registration is closed", field="registration_key")

        secret_key, token = generate_credentials()
        now = self._clock()
        introduction = Introduction(
            introduced_at=now,
            remote_addr=remote_addr,
            registration_key=registration_key,
            remote_wipe_enabled=request.remote_wipe_enabled,
            can_read_nearby_devices=request.can_read_nearby_devices,
        )
        not_after = None
        if self._settings.token_ttl_seconds:
            not_after = now + timedelta(seconds=self._settings.token_ttl_seconds)

        entry = await self._execute(
            op,
            secret_key,
            self._storage.record_introduction(introduction, secret_key, token, not_after),
        )
        log.info(
            "device_introduced",
            identity=secret_key.hex(),
            permissions=entry.permissions.granted(),
            remote_addr=hash_ip(remote_addr),
        )
        return IntroduceMyselfResponse(nice_to_meet_you=True, your_token=token.hex())

    async def submit_location(
        self, request: SubmitLocationRequest, remote_addr: Optional[str]
    ) -> SubmitLocationResponse:
        op = Operation.SUBMIT_LOCATION
        entry = await self._authenticate(decode_hex(request.token), op)
        identity = entry.secret_key
        excommunicated = await self._execute(
            op, identity, self._storage.is_excommunicated(identity)
        )
        self._authorize(entry, op, Permission.WIPE if excommunicated else None)

        record = LocationRecord(
            update_time=self._clock(),
            expected_next_update_time=request.expected_next_update_time,
            location=request.location,
            velocity=request.velocity,
            emergency=request.emergency,
            notes=request.notes,
            nearby_wifi=tuple(request.nearby_wifi),
            nearby_bluetooth=tuple(request.nearby_bluetooth),
            remote_addr=remote_addr,
        )
        outcome = await self._execute(
            op,
            identity,
            self._storage.append_location(identity, record, token=entry.token),
        )

        if outcome is AppendOutcome.REVOKED:
            raise AuthenticationError("Unauthenticated")

        if outcome is AppendOutcome.WIPE_PENDING:
            log.warning("remote_wipe_delivered", identity=identity.hex())
            return SubmitLocationResponse(
                recorded=False, excommunicated=True, remote_wipe=True
            )
        if outcome is AppendOutcome.EXCOMMUNICATED:
            log.info("submission_from_excommunicated_device", identity=identity.hex())
            return SubmitLocationResponse(recorded=False, excommunicated=True)

        if should_sample("location_recorded"):
            log.info(
                "location_recorded",
                identity=identity.hex(),
                emergency=record.emergency,
                has_position=record.location is not None,
                remote_addr=hash_ip(remote_addr),
            )
        if record.emergency:
            await self._raise_alarm(identity, record)
        return SubmitLocationResponse(recorded=True)

    async def _raise_alarm(self, identity: SecretKey, record: LocationRecord) -> None:
        try:
            await self._alerter.alert(identity.hex(), record)
        except Exception as e:
            log.error(
                "emergency_alert_failed",
                identity=identity.hex(),
                error=str(e),
                error_type=type(e).__name__,
            )

    async def list_locations(self, request: ListLocationsRequest) -> ListLocationsResponse:
        op = Operation.LIST_LOCATIONS
        entry = await self._entry_for(request.token, op)
        records = await self._execute(
            op,
            entry.secret_key,
            self._storage.list_locations(
                entry.secret_key,
                since=request.since,
                until=request.until,
                limit=request.limit,
            ),
        )
        return ListLocationsResponse(
            locations=[LocationSnapshot.from_record(r) for r in records]
        )

    async def read_history(self, token: Token, limit: int) -> list[LocationSnapshot]:
        """ListLocations for the HTML page, keyed by an already-decoded token."""
        op = Operation.LIST_LOCATIONS
        entry = await self._authenticate(token, op)
        self._authorize(entry, op)
        records = await self._execute(
            op,
            entry.secret_key,
            self._storage.list_locations(entry.secret_key, limit=limit),
        )
        return [LocationSnapshot.from_record(r) for r in records]

    async def get_storage_info(self, request: TokenRequest) -> StorageInfoResponse:
        op = Operation.GET_STORAGE_INFO
        entry = await self._entry_for(request.token, op)
        stats = await self._execute(
            op, entry.secret_key, self._storage.get_stats(entry.secret_key)
        )
        return StorageInfoResponse(
            locations_count=stats.count,
            since=stats.earliest_time,
            locations_limit=self._settings.locations_limit,
            bytes_storage_consumed=stats.bytes_consumed,
            bytes_storage_limit=self._settings.bytes_storage_limit,
        )

    async def revoke_token(self, request: RevokeTokenRequest) -> ActionResponse:
        op = Operation.REVOKE_TOKEN
        entry = await self._entry_for(request.token, op)
        target = decode_optional_hex(request.revoked_token, field="revoked_token")
        target = target or entry.token

        if target != entry.token:
            target_entry = await self._execute(
                op, entry.secret_key, self._storage.resolve_token(target)
            )
            # Tokens of other identities are indistinguishable from unknown ones
            if target_entry is None or target_entry.secret_key != entry.secret_key:
                raise NotFoundError("Token not found", field="revoked_token")

        await self._execute(op, entry.secret_key, self._storage.revoke_token(target))
        log.info(
            "token_revoked",
            identity=entry.secret_key.hex(),
            self_revoked=target == entry.token,
        )
        return ActionResponse(success=True, action="revoked")

    async def list_tokens(self, request: TokenRequest) -> ListTokensResponse:
        op = Operation.LIST_TOKENS
        entry = await self._entry_for(request.token, op)
        entries = await self._execute(
            op, entry.secret_key, self._storage.list_tokens(entry.secret_key)
        )
        return ListTokensResponse(tokens=[TokenInfo.from_entry(e) for e in entries])

    async def purge_locations(self, request: TokenRequest) -> ActionResponse:
        op = Operation.PURGE_LOCATIONS
        entry = await self._entry_for(request.token, op)
        await self._execute(
            op, entry.secret_key, self._storage.purge_locations(entry.secret_key)
        )
        log.info("locations_purged", identity=entry.secret_key.hex())
        return ActionResponse(success=True, action="purged")

    async def request_excommunication(self, request: TokenRequest) -> ActionResponse:
        op = Operation.REQUEST_EXCOMMUNICATION
        entry = await self._entry_for(request.token, op)
        await self._execute(
            op, entry.secret_key, self._storage.request_wipe(entry.secret_key)
        )
        log.warning("excommunication_requested", identity=entry.secret_key.hex())
        return ActionResponse(success=True, action="excommunicated")
