"""
Structured logging for the reCAPTCHA layer.

Provides:
- get_logger(): Get a configured structlog logger instance
- hash_ip(): Hash client IPs before they reach the logs in production
- setup_logging(): Configure stdlib logging and structlog from LoggingSettings

Production renders JSON, development renders a pretty console. Secrets and
challenge tokens are always redacted.
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from config import AppSettings

# Fields that must never be logged in clear
REDACTED_FIELDS = {
    "secret",
    "token",
    "response",
    "key",
    "Authorization",
    "Cookie",
}

_SENSITIVE_FRAGMENTS = ("secret", "token", "key")
_PROTECTED_KEYS = {"level", "event", "timestamp", "logger", "remember_key"}


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("recaptcha_remembered", minutes=10)
    """
    return structlog.get_logger(name)


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash an IP address for privacy in production.

    In production: Returns SHA-256 hash (first 16 chars)
    In development: Returns the IP unchanged for easier debugging
    """
    if not ip_address:
        return ip_address
    if os.getenv("ENV", "development") == "production":
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact secrets and challenge tokens from logs."""
    for key in list(event_dict.keys()):
        if key in _PROTECTED_KEYS:
            continue
        if key in REDACTED_FIELDS or any(
            fragment in key.lower() for fragment in _SENSITIVE_FRAGMENTS
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog with appropriate processors for the environment.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
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


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from the HTTP transport
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)


def setup_logging(settings: "AppSettings") -> None:
    """
    Initialize logging system for the application.

    Should be called once, early in create_app().
    """
    log_format = settings.logging.log_format
    if settings.is_production:
        log_format = "json"

    configure_stdlib_logging(settings.logging.log_level)
    configure_structlog(log_format)

    get_logger(__name__).info(
        "logging_initialized",
        env=settings.env,
        log_level=settings.logging.log_level,
        log_format=log_format,
    )
