"""Monitoring infrastructure package."""

from unmute.infrastructure.monitoring.sentry_integration import (
    init_sentry,
    capture_safety_event,
    capture_exception_with_context,
)

__all__ = [
    "init_sentry",
    "capture_safety_event",
    "capture_exception_with_context",
]
