"""Real-time alert services package."""

from unmute.services.alerts.alert_bus import AlertBus, AlertSubscription
from unmute.services.alerts.sinks import AlertSink, LoggingAlertSink

__all__ = [
    "AlertBus",
    "AlertSubscription",
    "AlertSink",
    "LoggingAlertSink",
]
