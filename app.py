"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI

from config import AppSettings
from errors import register_error_handlers
from infrastructure.alerts.log_alerter import LogAlerter
from infrastructure.alerts.protocol import EmergencyAlerter
from infrastructure.alerts.webhook_alerter import WebhookAlerter
from infrastructure.registration.protocol import RegistrationKeyValidator
from infrastructure.registration.validators import AcceptAllValidator, StaticKeyValidator
from routes.device_routes import router as device_router
from routes.health_routes import router as health_router
from routes.locations_page_routes import router as locations_page_router
from services.device_service import DeviceService
from shared.logging import get_logger, setup_logging
from storage import LocationStorage, create_storage

log = get_logger(__name__)


def build_registration_validator(settings: AppSettings) -> RegistrationKeyValidator:
    if settings.open_registration:
        return AcceptAllValidator()
    return StaticKeyValidator(bytes.fromhex(k) for k in settings.registration_keys)


def build_alerter(settings: AppSettings) -> EmergencyAlerter:
    if settings.alerts.emergency_webhook_url:
        return WebhookAlerter(
            settings.alerts.emergency_webhook_url,
            timeout=settings.alerts.emergency_webhook_timeout_seconds,
        )
    return LogAlerter()


def create_app(
    settings: Optional[AppSettings] = None,
    storage: Optional[LocationStorage] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    # Unknown backend names fail here, before the server starts listening
    if storage is None:
        storage = create_storage(settings.storage_backend)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        alerter = build_alerter(settings)
        app.state.settings = settings
        app.state.storage = storage
        app.state.device_service = DeviceService(
            storage=storage,
            settings=settings,
            registration_validator=build_registration_validator(settings),
            alerter=alerter,
        )
        log.info(
            "server_started",
            storage_backend=settings.storage_backend,
            open_registration=settings.open_registration,
            disabled_operations=settings.disabled_operations,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        if isinstance(alerter, WebhookAlerter):
            await alerter.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(device_router)
    app.include_router(locations_page_router)

    return app
