"""Default EmergencyAlerter: a WARNING-level structured log event."""

from schemas.models.location import LocationRecord
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class LogAlerter:
    async def alert(self, identity: str, record: LocationRecord) -> bool:
        loc = record.location
        log.warning(
            "emergency_announced",
            identity=identity,
            update_time=record.update_time.isoformat(),
            latitude=loc.degrees_latitude if loc else None,
            longitude=loc.degrees_longitude if loc else None,
            notes=record.notes or None,
            remote_addr=hash_ip(record.remote_addr),
        )
        return True
