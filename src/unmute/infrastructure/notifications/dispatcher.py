"""
Notification Dispatcher

Routes crisis notifications to the configured e-mail and SMS sinks
for every recipient in the directory.

Delivery is fire-and-forget from the caller's point of view:
dispatch() only decides whether the notification can be sent and
schedules it. Per-recipient failures are logged and counted, never
raised.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional
from uuid import UUID

from unmute.config.logging_config import get_logger
from unmute.domain.enums.workflow import NotificationChannel
from unmute.domain.exceptions import NotificationDeliveryFailure
from unmute.infrastructure.notifications.message import CrisisNotification
from unmute.infrastructure.notifications.sinks import NotificationSink, mask_recipient

logger = get_logger(__name__)


class RecipientDirectory(ABC):
    """Source of staff notification recipients."""

    @abstractmethod
    async def recipients(
        self,
        channel: NotificationChannel,
        institution_id: Optional[UUID] = None,
    ) -> list[str]:
        """E-mail addresses or phone numbers for one concrete channel."""
        pass


class StaticRecipientDirectory(RecipientDirectory):
    """Fixed recipient lists from configuration, shared by all institutions."""

    def __init__(self, emails: Iterable[str] = (), phones: Iterable[str] = ()) -> None:
        self._emails = [e for e in emails if e]
        self._phones = [p for p in phones if p]

    async def recipients(
        self,
        channel: NotificationChannel,
        institution_id: Optional[UUID] = None,
    ) -> list[str]:
        if channel == NotificationChannel.EMAIL:
            return list(self._emails)
        if channel == NotificationChannel.SMS:
            return list(self._phones)
        return []


@dataclass
class DeliveryReport:
    """Outcome of delivering one notification."""

    sent: dict[str, int] = field(default_factory=dict)
    failures: list[str] = field(default_factory=list)

    @property
    def total_sent(self) -> int:
        return sum(self.sent.values())


class NotificationDispatcher:
    """
    Fans a notification out to sinks and recipients.

    Usage:
        dispatcher = NotificationDispatcher([email_sink, sms_sink], directory)
        accepted = dispatcher.dispatch(NotificationChannel.BOTH, notification)
    """

    def __init__(
        self,
        sinks: Iterable[NotificationSink],
        directory: RecipientDirectory,
    ) -> None:
        self._sinks = [s for s in sinks if s.is_configured()]
        self._directory = directory
        self._tasks: set[asyncio.Task] = set()

    def can_dispatch(self, channel: NotificationChannel) -> bool:
        """Whether any configured sink serves the requested channel."""
        return any(channel.includes(s.channel) for s in self._sinks)

    def dispatch(
        self,
        channel: NotificationChannel,
        notification: CrisisNotification,
        institution_id: Optional[UUID] = None,
    ) -> bool:
        """
        Schedule delivery in the background.

        Must be called from a running event loop.

        Returns:
            True if the notification was accepted for delivery
        """
        if not self.can_dispatch(channel):
            logger.warning("Notification requested but no sink configured", channel=channel.value)
            return False

        task = asyncio.create_task(self.deliver(channel, notification, institution_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def deliver(
        self,
        channel: NotificationChannel,
        notification: CrisisNotification,
        institution_id: Optional[UUID] = None,
    ) -> DeliveryReport:
        """Deliver now to every recipient on every matching sink."""
        report = DeliveryReport()

        for sink in self._sinks:
            if not channel.includes(sink.channel):
                continue
            recipients = await self._directory.recipients(sink.channel, institution_id)
            if not recipients:
                logger.warning("No notification recipients", channel=sink.channel.value)
                continue

            sent = 0
            for recipient in recipients:
                try:
                    await sink.send(recipient, notification)
                    sent += 1
                except NotificationDeliveryFailure as e:
                    logger.error(
                        "Notification delivery failed",
                        channel=e.channel,
                        recipient=e.recipient,
                        reason=e.reason,
                    )
                    report.failures.append(f"{e.channel} to {e.recipient}")
                except Exception as e:
                    logger.error(
                        "Notification sink error",
                        channel=sink.channel.value,
                        recipient=mask_recipient(recipient),
                        error=str(e),
                    )
                    report.failures.append(f"{sink.channel.value} to {mask_recipient(recipient)}")
            report.sent[sink.channel.value] = sent

        logger.info(
            "Crisis notification delivered",
            channel=channel.value,
            sent=report.total_sent,
            failed=len(report.failures),
        )
        return report

    async def drain(self) -> None:
        """Wait for scheduled deliveries to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
