"""
Alert Sinks

Pluggable consumers of the alert stream. The AlertBus pumps each
attached sink from its own subscription in a background task, so
a slow or failing sink never holds up publishers or other sinks.
"""

from abc import ABC, abstractmethod

from unmute.config.logging_config import get_logger
from unmute.domain.models.alert_event import AlertEvent

logger = get_logger(__name__)


class AlertSink(ABC):
    """Destination for emitted alert events."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Sink name used in logs."""
        pass

    @abstractmethod
    async def deliver(self, event: AlertEvent) -> None:
        """
        Deliver one event.

        Exceptions are logged by the bus and do not stop the sink.
        """
        pass


class LoggingAlertSink(AlertSink):
    """
    Writes every alert to the structured log.

    Keeps an audit trail of emitted alerts even when no dashboard
    is connected.
    """

    @property
    def name(self) -> str:
        return "log"

    async def deliver(self, event: AlertEvent) -> None:
        log = logger.critical if event.is_critical else logger.warning
        log(
            "Crisis alert emitted",
            event_id=str(event.event_id),
            user_id=str(event.user_id),
            institution_id=str(event.institution_id) if event.institution_id else None,
            transition_from=event.transition_from.label,
            transition_to=event.transition_to.label,
            risk_level=event.risk_level.label,
        )
