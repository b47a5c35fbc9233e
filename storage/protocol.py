"""LocationStorage protocol: the service depends on this, not on a concrete backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from schemas.models.identity import Introduction, SecretKey, Token, TokenEntry
from schemas.models.location import LocationRecord


class StorageError(Exception):
    """A backend could not complete a read or write."""


class AppendOutcome(str, Enum):
    RECORDED = "recorded"
    # Record dropped; the identity had a pending wipe, which is now acknowledged
    WIPE_PENDING = "wipe_pending"
    # Record dropped; the identity was wiped earlier
    EXCOMMUNICATED = "excommunicated"
    # Record dropped; the submitting token was revoked before the write landed
    REVOKED = "revoked"


@dataclass(frozen=True)
class StorageStats:
    count: int
    earliest_time: Optional[datetime]
    bytes_consumed: int


@runtime_checkable
class LocationStorage(Protocol):
    async def resolve_token(self, token: Token) -> Optional[TokenEntry]: ...

    async def record_introduction(
        self,
        introduction: Introduction,
        secret_key: SecretKey,
        token: Token,
        not_after: Optional[datetime] = None,
    ) -> TokenEntry: ...

    async def append_location(
        self,
        secret_key: SecretKey,
        record: LocationRecord,
        token: Optional[Token] = None,
    ) -> AppendOutcome: ...

    async def issue_token(self, secret_key: SecretKey, entry: TokenEntry) -> None: ...

    async def revoke_token(self, token: Token) -> None: ...

    async def list_tokens(self, secret_key: SecretKey) -> list[TokenEntry]: ...

    async def purge_locations(self, secret_key: SecretKey) -> None: ...

    async def request_wipe(self, secret_key: SecretKey) -> None: ...

    async def is_excommunicated(self, secret_key: SecretKey) -> bool: ...

    async def list_locations(
        self,
        secret_key: SecretKey,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[LocationRecord]: ...

    async def get_stats(self, secret_key: SecretKey) -> StorageStats: ...

    async def ping(self) -> bool: ...
