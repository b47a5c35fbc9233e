"""EmergencyAlerter protocol, fired when a device submits an emergency report."""

from typing import Protocol

from schemas.models.location import LocationRecord


class EmergencyAlerter(Protocol):
    async def alert(self, identity: str, record: LocationRecord) -> bool: ...
