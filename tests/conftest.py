"""
Shared fixtures.

dotenv loading is patched out so pydantic-settings never reads a real .env
file during tests; configuration is controlled through constructor kwargs and
monkeypatch.setenv() only.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from app import build_registration_validator
from config import AppSettings
from helpers import FakeClock
from services.device_service import DeviceService
from storage import MemoryStorage


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def alerter() -> AsyncMock:
    mock = AsyncMock()
    mock.alert = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def make_service(storage, clock, alerter):
    """Factory building a DeviceService over the shared storage/clock/alerter."""

    def _make(**settings_overrides) -> DeviceService:
        settings = AppSettings(**settings_overrides)
        return DeviceService(
            storage=storage,
            settings=settings,
            registration_validator=build_registration_validator(settings),
            alerter=alerter,
            clock=clock,
        )

    return _make


@pytest.fixture
def service(make_service) -> DeviceService:
    return make_service()
