"""
Sentry Error Tracking Integration

Production error tracking with sensitive data scrubbing.
Errors are correlated with request correlation ids and student
ids, never with message text.

SECURITY: Credentials and free text (student messages, staff
notes, response details) are stripped before sending to Sentry.
"""

import re
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from unmute import __version__
from unmute.config.logging_config import get_logger

logger = get_logger(__name__)

# Patterns for sensitive data scrubbing
SENSITIVE_PATTERNS = [
    r"password[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+",
    r"api[_-]?key[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+",
    r"token[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+",
    r"secret[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+",
    r"bearer\s+[a-zA-Z0-9\-._~+/]+=*",
    r"authorization[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+",
]

SENSITIVE_KEYS = frozenset({
    "password",
    "token",
    "secret",
    "api_key",
    "apikey",
    "authorization",
    "bearer",
    "credential",
    "auth_token",
    "account_sid",
})

# Exact keys holding free text written by students or staff
FREE_TEXT_KEYS = frozenset({
    "text",
    "content",
    "message",
    "details",
    "notes",
    "reason",
})


def _scrub_string(value: str) -> str:
    """Scrub sensitive patterns from string."""
    result = value
    for pattern in SENSITIVE_PATTERNS:
        result = re.sub(pattern, "[REDACTED]", result, flags=re.IGNORECASE)
    return result


def _scrub_dict(data: dict) -> dict:
    """Recursively scrub credentials and free text from a dictionary."""
    result = {}
    for key, value in data.items():
        key_lower = str(key).lower().replace("-", "_")

        if key_lower in FREE_TEXT_KEYS:
            result[key] = "[REDACTED]"
        elif any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = _scrub_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _scrub_dict(item) if isinstance(item, dict)
                else _scrub_string(item) if isinstance(item, str)
                else item
                for item in value
            ]
        elif isinstance(value, str):
            result[key] = _scrub_string(value)
        else:
            result[key] = value

    return result


def before_send(event: dict, hint: dict) -> Optional[dict]:
    """Scrub request bodies, headers, breadcrumbs and extras."""
    request = event.get("request")
    if request:
        # Request bodies carry student text; drop them entirely
        if "data" in request:
            request["data"] = "[REDACTED]"
        if isinstance(request.get("headers"), dict):
            request["headers"] = _scrub_dict(request["headers"])

    for breadcrumb in event.get("breadcrumbs", {}).get("values", []):
        if isinstance(breadcrumb.get("data"), dict):
            breadcrumb["data"] = _scrub_dict(breadcrumb["data"])

    if isinstance(event.get("extra"), dict):
        event["extra"] = _scrub_dict(event["extra"])

    return event


def before_breadcrumb(breadcrumb: dict, hint: dict) -> Optional[dict]:
    """Sanitize SQL breadcrumbs; bound parameters may hold notes."""
    if breadcrumb.get("category") == "query" and "message" in breadcrumb:
        breadcrumb["message"] = _scrub_string(breadcrumb["message"])
        breadcrumb.pop("data", None)
    return breadcrumb


def init_sentry(
    dsn: str,
    environment: str = "development",
    release: str = f"unmute@{__version__}",
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize Sentry error tracking.

    Args:
        dsn: Sentry DSN, empty disables tracking
        environment: Environment name
        release: Release version
        traces_sample_rate: Performance tracing rate

    Returns:
        Whether Sentry was initialized
    """
    if not dsn:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        before_send=before_send,
        before_breadcrumb=before_breadcrumb,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            AsyncioIntegration(),
            LoggingIntegration(
                level=None,  # Don't capture logs as breadcrumbs
                event_level=None,  # Don't capture logs as events
            ),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )

    logger.info("Sentry initialized", environment=environment, release=release)
    return True


def capture_safety_event(
    message: str,
    level: str = "warning",
    extra: Optional[dict] = None,
) -> None:
    """
    Capture a safety-related event for monitoring.

    Used for risk updates that could not be written and similar
    conditions staff engineers must hear about.
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("category", "safety")
        for key, value in _scrub_dict(extra or {}).items():
            scope.set_extra(key, value)
        sentry_sdk.capture_message(message, level="error" if level == "error" else "warning")


def capture_exception_with_context(
    exception: Exception,
    correlation_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> Optional[str]:
    """
    Capture exception with additional context.

    Returns: Sentry event ID, None when Sentry is disabled
    """
    with sentry_sdk.new_scope() as scope:
        if correlation_id:
            scope.set_tag("correlation_id", correlation_id)
        for key, value in _scrub_dict(extra or {}).items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(exception)
