"""
UNMUTE Logging Configuration

structlog setup shared by the API process and background pipeline
tasks:
- Correlation IDs bound per request by the error middleware
- Credentials redacted by key
- Raw student text replaced by a digest before rendering
- Console output in development, JSON lines elsewhere

SECURITY: Student messages must never reach log aggregation.
Log matched terms and digests, not the text itself.
"""

import hashlib
import logging
import sys
from typing import Any, Callable

import structlog

from unmute import __version__
from unmute.config.settings import Settings

SERVICE_NAME = "unmute-crisis-pipeline"

# Key fragments whose values are redacted outright
CREDENTIAL_FRAGMENTS: frozenset[str] = frozenset({
    "password",
    "token",
    "secret",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "private_key",
})

# Exact keys that may carry raw student text
MESSAGE_TEXT_KEYS: frozenset[str] = frozenset({
    "text",
    "content",
    "message_text",
    "details",
})

REDACTED = "[REDACTED]"


def text_digest(value: Any) -> dict[str, Any]:
    """Stable, non-reversible stand-in for a piece of student text."""
    raw = value if isinstance(value, str) else repr(value)
    return {
        "sha256": hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16],
        "chars": len(raw),
    }


def _scrub(key: str, value: Any) -> Any:
    key_lower = key.lower()
    if key_lower in MESSAGE_TEXT_KEYS and value is not None:
        return text_digest(value)
    if any(fragment in key_lower for fragment in CREDENTIAL_FRAGMENTS):
        return REDACTED
    if isinstance(value, dict):
        return {k: _scrub(k, v) for k, v in value.items()}
    if isinstance(value, list):
        return [_scrub(key, item) for item in value]
    return value


def _redact_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Scrub an event before it is rendered.

    Nested dicts and lists are walked. The event name itself is
    left alone; callers never put message text there.
    """
    return {
        key: value if key == "event" else _scrub(key, value)
        for key, value in event_dict.items()
    }


def _service_context(env: str) -> Callable[..., dict[str, Any]]:
    def add_service_context(
        logger: logging.Logger,
        method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("version", __version__)
        event_dict.setdefault("env", env)
        return event_dict

    return add_service_context


def get_processors(settings: Settings) -> list[Any]:
    """
    Build the structlog processor chain for the environment.

    Args:
        settings: Application settings

    Returns:
        List of log processors, renderer last
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_sensitive_data,
        _service_context(settings.env),
    ]

    if settings.env == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors.extend([
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ])

    return processors


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog and the stdlib root logger.

    Called by create_application; calling it again replaces the
    previous configuration.
    """
    structlog.configure(
        processors=get_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
        force=True,
    )

    # Library chatter; SQL echo would also print bound parameters
    for name in ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; use keyword arguments for context."""
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Attach the request's correlation ID to every log line in this context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
