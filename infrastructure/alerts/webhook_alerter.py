"""Webhook EmergencyAlerter.

Posts a Discord-style embed to EMERGENCY_WEBHOOK_URL. Delivery problems are
logged and reported as ``False``; they never fail the submission that
triggered them.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from schemas.models.location import LocationRecord
from shared.logging import get_logger

log = get_logger(__name__)

_EMERGENCY_COLOR = 0xF44336
_OSM_URL = "https://www.openstreetmap.org/?mlat={lat}&mlon={lon}"


def build_emergency_payload(identity: str, record: LocationRecord) -> dict[str, Any]:
    fields: list[dict[str, Any]] = [
        {"name": "Device", "value": identity[:16], "inline": True},
        {"name": "Reported", "value": record.update_time.isoformat(), "inline": True},
    ]
    loc = record.location
    if loc is not None:
        fields.append(
            {
                "name": "Position",
                "value": _OSM_URL.format(
                    lat=loc.degrees_latitude, lon=loc.degrees_longitude
                ),
                "inline": False,
            }
        )
    if record.notes:
        fields.append({"name": "Notes", "value": record.notes[:1024], "inline": False})
    return {
        "embeds": [
            {
                "title": "Emergency reported",
                "color": _EMERGENCY_COLOR,
                "fields": fields,
            }
        ]
    }


class WebhookAlerter:
    def __init__(
        self,
        webhook_url: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def alert(self, identity: str, record: LocationRecord) -> bool:
        if not self._webhook_url:
            log.warning("emergency_webhook_not_configured")
            return False
        try:
            response = await self._client.post(
                self._webhook_url, json=build_emergency_payload(identity, record)
            )
            if response.status_code in (200, 204):
                return True
            log.warning(
                "emergency_webhook_failed",
                identity=identity,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            return False
        except Exception as e:
            log.error(
                "emergency_webhook_request_failed",
                identity=identity,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
