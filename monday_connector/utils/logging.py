"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import re
import sys

import structlog


_REDACTED = "***REDACTED***"

# Monday API tokens are JWTs sent bare in the Authorization header
_JWT_PATTERN = re.compile(r"eyJ[\w\-]+\.[\w\-]+\.[\w\-]*")
_KEY_VALUE_PATTERN = re.compile(
    r"(token|api[_\-]?key|secret|password|authorization)[\"']?\s*[:=]\s*[\"']?(?:bearer\s+)?[\w\-\.]+",
    re.IGNORECASE,
)
_SENSITIVE_KEYS = frozenset({"token", "api_token", "authorization", "password", "secret"})

_secrets: set[str] = set()


def register_secret(value: str | None) -> None:
    """Redact ``value`` verbatim wherever it appears in a log event."""
    if value:
        _secrets.add(value)


def _redact(value: object) -> object:
    if isinstance(value, str):
        for secret in _secrets:
            value = value.replace(secret, _REDACTED)
        value = _JWT_PATTERN.sub(_REDACTED, value)
        return _KEY_VALUE_PATTERN.sub(rf"\1={_REDACTED}", value)
    if isinstance(value, dict):
        return {
            k: _REDACTED if str(k).lower() in _SENSITIVE_KEYS and v else _redact(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def _filter_sensitive(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if key.lower() in _SENSITIVE_KEYS and value:
            event_dict[key] = _REDACTED
        else:
            event_dict[key] = _redact(value)
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    secrets: list[str] | None = None,
) -> None:
    """Configure structlog with optional JSON output."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    for secret in secrets or []:
        register_secret(secret)

    # Webhook payloads carry item names and column values
    if numeric_level <= logging.DEBUG:
        print(
            "WARNING: DEBUG logging is enabled. Monday event payloads and "
            "column values may appear in logs.",
            file=sys.stderr,
        )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _filter_sensitive,
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Quiet noisy libraries
    for name in ("httpx", "httpcore", "aiohttp.access"):
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
