"""
Location history page.

GET /locations/{token}: HTML table of a device's recent history, keyed by
the hex-encoded token. Goes through the same resolve + authorize +
ListLocations path as the RPC; errors are rendered as plain-text bodies with
the matching status code.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.templating import Jinja2Templates

from config import AppSettings
from dependencies import get_device_service, get_settings
from errors import AppError
from services.device_service import DeviceService
from shared.validators import decode_hex

router = APIRouter(tags=["pages"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

UNSUPPLIED_FIELD = "-"


def _fmt(value: object) -> str:
    return UNSUPPLIED_FIELD if value is None or value == "" else str(value)


def _format_time(value) -> str:
    return value.strftime("%a, %d %b %Y %H:%M:%S %z") if value else UNSUPPLIED_FIELD


def _row(snapshot) -> dict:
    loc = snapshot.location
    vel = snapshot.velocity
    osm_url = None
    if loc is not None:
        osm_url = (
            "https://www.openstreetmap.org/"
            f"?mlat={loc.degrees_latitude}&mlon={loc.degrees_longitude}"
        )
    return {
        "update_time": _format_time(snapshot.update_time),
        "latitude": _fmt(loc.degrees_latitude if loc else None),
        "longitude": _fmt(loc.degrees_longitude if loc else None),
        "elevation": _fmt(loc.meters_elevation if loc else None),
        "speed": _fmt(vel.meters_per_second_speed if vel else None),
        "bearing": _fmt(vel.bearing if vel else None),
        "next_update": _format_time(snapshot.expected_next_update_time),
        "wifi": _fmt(len(snapshot.nearby_wifi) or None),
        "bluetooth": _fmt(len(snapshot.nearby_bluetooth) or None),
        "notes": _fmt(snapshot.notes),
        "osm_url": osm_url,
        "emergency": snapshot.emergency,
    }


@router.get("/locations/{token}", response_class=HTMLResponse)
async def locations_page(
    request: Request,
    token: str,
    service: DeviceService = Depends(get_device_service),
    settings: AppSettings = Depends(get_settings),
) -> Response:
    try:
        snapshots = await service.read_history(
            decode_hex(token), limit=settings.page_locations_limit
        )
    except AppError as exc:
        return PlainTextResponse(exc.message, status_code=exc.status_code)
    return templates.TemplateResponse(
        request,
        "locations.html",
        {"rows": [_row(s) for s in snapshots]},
    )
