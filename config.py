"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Registration is open by default: any caller can introduce a new device.
Setting OPEN_REGISTRATION=false requires callers to present one of the
REGISTRATION_KEYS (hex-encoded) when introducing themselves.
"""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KNOWN_OPERATIONS = frozenset(
    {
        "IntroduceMyself",
        "SubmitLocation",
        "ListLocations",
        "GetStorageInfo",
        "RevokeToken",
        "ListTokens",
        "PurgeLocations",
        "RequestExcommunication",
    }
)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rate (0.0–1.0) for the per-submission info log
    sample_rate_submit: float = 1.0


class AlertSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Empty means emergencies are only written to the log
    emergency_webhook_url: str = ""
    emergency_webhook_timeout_seconds: float = 5.0


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "fmx-server"

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Registration
    open_registration: bool = True
    registration_keys: list[str] = []

    # Lifetime of tokens minted by IntroduceMyself; None means they never expire
    token_ttl_seconds: Optional[int] = None

    # Storage
    storage_backend: str = "memory"
    locations_limit: int = 100
    bytes_storage_limit: int = 0  # 0 = unmetered

    # Number of records shown on the HTML history page
    page_locations_limit: int = 100

    # Honour X-Forwarded-For and friends; only enable behind a known proxy
    trust_proxy_headers: bool = False

    # RPC names answered with 404 on this deployment
    disabled_operations: list[str] = []

    # Sub-configs (composed via model_validator below)
    logging: Optional[LoggingSettings] = None
    alerts: Optional[AlertSettings] = None
    sentry: Optional[SentrySettings] = None

    @field_validator("registration_keys", mode="after")
    @classmethod
    def _keys_are_hex(cls, v: list[str]) -> list[str]:
        for key in v:
            try:
                bytes.fromhex(key)
            except ValueError as exc:
                raise ValueError("registration_keys must be hex strings") from exc
        return [key.lower() for key in v]

    @field_validator("disabled_operations", mode="after")
    @classmethod
    def _known_operations(cls, v: list[str]) -> list[str]:
        unknown = set(v) - KNOWN_OPERATIONS
        if unknown:
            raise ValueError(f"unknown operation(s): {', '.join(sorted(unknown))}")
        return v

    @field_validator("token_ttl_seconds", mode="after")
    @classmethod
    def _ttl_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("token_ttl_seconds must be positive")
        return v

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.alerts is None:
            self.alerts = AlertSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
