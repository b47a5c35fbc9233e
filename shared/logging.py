"""
Structured logging for the check-in server.

Sets up structlog with:
- JSON formatting for production, pretty console for development
- Redaction of credential fields (tokens, registration keys) from every event
- IP hashing in production
- Sampling for the high-frequency location submission event

Identities are logged as ``identity=<hex secret key>``. Raw tokens must never be
bound to a log event; the redaction processor is the backstop if one is.
"""

from __future__ import annotations

import hashlib
import logging
import random
import sys
from typing import TYPE_CHECKING, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from config import LoggingSettings

# Sampling rates for high-frequency events, overridden by setup_logging()
SAMPLING_RATES: dict[str, float] = {
    "location_recorded": 1.0,
}

REDACTED_FIELDS = {
    "token",
    "your_token",
    "revoked_token",
    "registration_key",
    "password",
    "authorization",
    "cookie",
}

_hash_ips = False


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact credential fields from logs."""
    for key in list(event_dict.keys()):
        if key.lower() in REDACTED_FIELDS:
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str) -> None:
    """
    Configure structlog processors.

    "json": one JSON object per line
    anything else: colored console output
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str) -> None:
    """Route standard library logging to stdout at *log_level*."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(settings: "LoggingSettings", *, production: bool = False) -> None:
    """
    Initialize logging for the application.

    Called once from create_app() before anything logs.
    """
    global _hash_ips

    configure_stdlib_logging(settings.log_level)
    configure_structlog(settings.log_format)
    SAMPLING_RATES["location_recorded"] = settings.sample_rate_submit
    _hash_ips = production

    get_logger(__name__).info(
        "logging_initialized",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("token_revoked", identity="9f0c...")
    """
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """Return True if an *event_type* log line should be emitted."""
    sample_rate = SAMPLING_RATES.get(event_type, 1.0)
    if sample_rate >= 1.0:
        return True
    if sample_rate <= 0.0:
        return False
    return random.random() < sample_rate


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash an IP address for logging.

    In production returns the first 16 hex chars of its SHA-256; otherwise the
    address unchanged. None passes through.
    """
    if not ip_address:
        return ip_address
    if _hash_ips:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


__all__ = [
    "SAMPLING_RATES",
    "configure_structlog",
    "get_logger",
    "hash_ip",
    "setup_logging",
    "should_sample",
]
