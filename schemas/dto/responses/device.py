"""
Response DTOs for the device RPC endpoints.

LocationSnapshot is the public view of a stored LocationRecord: the
server-observed ``remote_addr`` is never returned.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.identity import TokenEntry
from schemas.models.location import (
    BluetoothSighting,
    Location,
    LocationRecord,
    Velocity,
    WifiSighting,
)


class IntroduceMyselfResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nice_to_meet_you: bool
    your_token: str  # hex


class SubmitLocationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recorded: bool
    excommunicated: bool = False
    remote_wipe: bool = False


class LocationSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    update_time: datetime
    expected_next_update_time: Optional[datetime] = None
    location: Optional[Location] = None
    velocity: Optional[Velocity] = None
    emergency: bool = False
    notes: str = ""
    nearby_wifi: list[WifiSighting] = []
    nearby_bluetooth: list[BluetoothSighting] = []

    @classmethod
    def from_record(cls, record: LocationRecord) -> "LocationSnapshot":
        return cls(
            update_time=record.update_time,
            expected_next_update_time=record.expected_next_update_time,
            location=record.location,
            velocity=record.velocity,
            emergency=record.emergency,
            notes=record.notes,
            nearby_wifi=list(record.nearby_wifi),
            nearby_bluetooth=list(record.nearby_bluetooth),
        )


class ListLocationsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    locations: list[LocationSnapshot]


class StorageInfoResponse(BaseModel):
    """Response body for POST /api/v1/storage/info.

    ``since`` is the earliest stored update time (whole-second comparison);
    null when the identity has no history. A limit of 0 means unmetered.
    """

    model_config = ConfigDict(populate_by_name=True)

    locations_count: int
    since: Optional[datetime] = None
    locations_limit: int
    bytes_storage_consumed: int
    bytes_storage_limit: int


class TokenInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str  # hex
    permissions: list[str]
    not_before: datetime
    not_after: Optional[datetime] = None

    @classmethod
    def from_entry(cls, entry: TokenEntry) -> "TokenInfo":
        return cls(
            token=entry.token.hex(),
            permissions=entry.permissions.granted(),
            not_before=entry.not_before,
            not_after=entry.not_after,
        )


class ListTokensResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tokens: list[TokenInfo]


class ActionResponse(BaseModel):
    """Response body for revoke / purge / excommunicate."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    action: str
