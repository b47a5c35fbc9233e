"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Everything they return is built once in
create_app() and stored on app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from config import AppSettings
from services.device_service import DeviceService
from shared.ip_utils import get_client_ip


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_device_service(request: Request) -> DeviceService:
    """Return the DeviceService from app.state."""
    return request.app.state.device_service


def get_remote_addr(request: Request) -> Optional[str]:
    """Server-observed client address for the current request."""
    settings: AppSettings = request.app.state.settings
    return get_client_ip(request, trust_proxy_headers=settings.trust_proxy_headers)
