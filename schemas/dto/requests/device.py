"""
Request DTOs for the device RPC endpoints.

IntroduceMyselfRequest  POST /api/v1/introduce
SubmitLocationRequest   POST /api/v1/locations/submit
ListLocationsRequest    POST /api/v1/locations/list
RevokeTokenRequest      POST /api/v1/tokens/revoke
TokenRequest            every other authenticated call (token only)

Credentials are hex strings here; decoding happens in the service so that a
malformed token is reported as a validation error, not a 422 from FastAPI.
Server-assigned fields (``update_time``, ``remote_addr``) are not part of any
request model and are dropped if a caller sends them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.models.location import BluetoothSighting, Location, Velocity, WifiSighting
from shared.datetime_utils import parse_datetime

UINT32_MAX = 2**32 - 1
MAX_NOTES_LENGTH = 4096
MAX_SIGHTINGS = 256


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValueError("must be an ISO 8601 datetime or Unix epoch seconds")
    return parsed


class IntroduceMyselfRequest(BaseModel):
    """Request body for POST /api/v1/introduce."""

    model_config = ConfigDict(populate_by_name=True)

    # Hex-encoded; only checked when registration is closed
    registration_key: Optional[str] = None
    remote_wipe_enabled: bool = False
    can_read_nearby_devices: bool = False


class TokenRequest(BaseModel):
    """Body of every authenticated call; carries the caller's bearer token."""

    model_config = ConfigDict(populate_by_name=True)

    token: str


class SubmitLocationRequest(TokenRequest):
    """Request body for POST /api/v1/locations/submit."""

    emergency: bool = False
    location: Optional[Location] = None
    velocity: Optional[Velocity] = None
    notes: str = Field(default="", max_length=MAX_NOTES_LENGTH)
    nearby_wifi: list[WifiSighting] = Field(default_factory=list, max_length=MAX_SIGHTINGS)
    nearby_bluetooth: list[BluetoothSighting] = Field(
        default_factory=list, max_length=MAX_SIGHTINGS
    )
    expected_next_update_time: Optional[datetime] = None

    @field_validator("expected_next_update_time", mode="before")
    @classmethod
    def _parse_next_update(cls, v: Any) -> Optional[datetime]:
        return _parse_timestamp(v)


class ListLocationsRequest(TokenRequest):
    """Request body for POST /api/v1/locations/list.

    ``since`` and ``until`` are inclusive bounds on ``update_time``.
    ``limit`` caps the number of matches returned in receipt order; 0 returns
    nothing.
    """

    since: Optional[datetime] = None
    until: Optional[datetime] = None
    limit: int = Field(default=100, ge=0, le=UINT32_MAX)

    @field_validator("since", "until", mode="before")
    @classmethod
    def _parse_bounds(cls, v: Any) -> Optional[datetime]:
        return _parse_timestamp(v)


class RevokeTokenRequest(TokenRequest):
    """Request body for POST /api/v1/tokens/revoke.

    ``revoked_token`` omitted means the caller revokes its own token.
    """

    revoked_token: Optional[str] = None
