"""
Notification Alert Sink

Bridges the AlertBus to e-mail/SMS so on-call staff hear about
critical alerts when no dashboard is open.
"""

from unmute.domain.enums.workflow import NotificationChannel
from unmute.domain.models.alert_event import AlertEvent
from unmute.infrastructure.notifications.dispatcher import NotificationDispatcher
from unmute.infrastructure.notifications.message import CrisisNotification
from unmute.services.alerts.sinks import AlertSink


class NotificationAlertSink(AlertSink):
    """Sends critical alerts through the notification dispatcher."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        channel: NotificationChannel = NotificationChannel.BOTH,
    ) -> None:
        self._dispatcher = dispatcher
        self._channel = channel

    @property
    def name(self) -> str:
        return "notification"

    async def deliver(self, event: AlertEvent) -> None:
        if not event.is_critical:
            return
        await self._dispatcher.deliver(
            self._channel,
            CrisisNotification(
                risk_level=event.risk_level,
                stage=event.transition_to,
                student_user_id=event.user_id,
                alert_id=event.event_id,
            ),
            event.institution_id,
        )
