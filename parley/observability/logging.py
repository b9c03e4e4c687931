"""Structured logging configuration using structlog.

Provides JSON logging for production and console logging for development.
Every event carries the application name, and when redaction is on the
authentication secrets, addresses and message bodies handled by the client
never reach the output.
"""

import re
import sys
from collections.abc import Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

# Dropped entirely
SECRET_KEYS: frozenset[str] = frozenset({
    "password",
    "code",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
})

# Masked to first letter and domain
ADDRESS_KEYS: frozenset[str] = frozenset({"email", "pending_email"})

# Replaced by their length
BODY_KEYS: frozenset[str] = frozenset({"content", "text"})

EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}


def mask_email(address: str) -> str:
    """``jane@x.com`` -> ``j***@x.com``; anything without a domain is redacted."""
    local, _, domain = address.partition("@")
    if not local or not domain:
        return "[REDACTED]"
    return f"{local[0]}***@{domain}"


class PIIRedactor:
    """Processor that keeps credentials, addresses and message bodies out of logs.

    Known keys are handled by name, case-insensitively, at any nesting depth.
    Addresses embedded in other string values (error messages from the
    account service, for instance) are masked by pattern.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """Redact PII from event dictionary."""
        return cast(EventDict, self._redact(event_dict))

    def _redact(self, data: Mapping[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, value in data.items():
            name = key.lower()
            if name in SECRET_KEYS:
                result[key] = "[REDACTED]"
            elif name in ADDRESS_KEYS and isinstance(value, str):
                result[key] = mask_email(value)
            elif name in BODY_KEYS and isinstance(value, str):
                result[key] = f"[{len(value)} chars]"
            elif isinstance(value, Mapping):
                result[key] = self._redact(value)
            elif isinstance(value, str):
                result[key] = EMAIL_PATTERN.sub(lambda m: mask_email(m.group(0)), value)
            else:
                result[key] = value
        return result


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
    app_name: str = "parley",
) -> None:
    """Configure structured logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format - "json" for production, "console" for development
        redact_pii: Whether to redact credentials, addresses and message bodies
        app_name: Value of the ``app`` field added to every event
    """

    def add_app_name(
        _logger: WrappedLogger, _method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("app", app_name)
        return event_dict

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_app_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if redact_pii:
        processors.append(PIIRedactor())

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            LEVELS.get(level.upper(), 20)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound to ``name`` (typically the module's ``__name__``)."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
