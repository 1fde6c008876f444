"""Outbound crisis notification package."""

from unmute.infrastructure.notifications.alert_sink import NotificationAlertSink
from unmute.infrastructure.notifications.dispatcher import (
    DeliveryReport,
    NotificationDispatcher,
    RecipientDirectory,
    StaticRecipientDirectory,
)
from unmute.infrastructure.notifications.message import CrisisNotification
from unmute.infrastructure.notifications.sinks import (
    NotificationSink,
    ResendEmailSink,
    TwilioSmsSink,
)

__all__ = [
    "CrisisNotification",
    "DeliveryReport",
    "NotificationAlertSink",
    "NotificationDispatcher",
    "NotificationSink",
    "RecipientDirectory",
    "ResendEmailSink",
    "StaticRecipientDirectory",
    "TwilioSmsSink",
]
