"""
Alert Bus

In-process, institution-scoped publish/subscribe for crisis alerts.

Delivery guarantees:
- publish() is synchronous and never awaits a subscriber
- at-least-once to connected subscribers, nothing for offline ones
- one dedupe_key is emitted at most once per cooldown
- each subscriber has a bounded buffer; when it is full the oldest
  non-critical event is dropped; with a buffer entirely critical an
  incoming non-critical event is dropped, and an incoming critical
  one disconnects the subscriber rather than being lost

SAFETY-CRITICAL: Alerts are a notification channel, not the record
of a crisis. Pending assignments and profiles are the durable
state a reconnecting dashboard reloads from.
"""

import asyncio
from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import RiskLevel, Stage
from unmute.domain.models.alert_event import AlertEvent
from unmute.domain.models.risk_profile import utc_now
from unmute.infrastructure.metrics import (
    ALERT_SUBSCRIBERS,
    ALERTS_DROPPED_TOTAL,
    track_alert,
)
from unmute.services.alerts.sinks import AlertSink

logger = get_logger(__name__)


DEFAULT_COOLDOWN = timedelta(minutes=15)
DEFAULT_BUFFER_SIZE = 100

# Dedupe entries are pruned once the table grows past this size
_DEDUPE_PRUNE_THRESHOLD = 1024


class AlertSubscription:
    """
    A subscriber's view of the alert stream.

    Async iterator over events for one institution (or all, when
    institution_id is None). Iteration ends when the subscription
    is closed or disconnected.

    Usage:
        async with bus.subscribe(institution_id) as subscription:
            async for event in subscription:
                ...
    """

    def __init__(
        self,
        bus: "AlertBus",
        institution_id: Optional[UUID],
        buffer_size: int,
    ) -> None:
        self.institution_id = institution_id
        self._bus = bus
        self._capacity = buffer_size
        self._buffer: deque[AlertEvent] = deque()
        self._ready = asyncio.Event()
        self._closed = False
        self.disconnected = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def matches(self, event: AlertEvent) -> bool:
        return self.institution_id is None or event.institution_id == self.institution_id

    def offer(self, event: AlertEvent) -> bool:
        """
        Buffer an event without blocking.

        Returns:
            False if the subscription is closed, the event was
            dropped, or the subscriber had to be disconnected
        """
        if self._closed:
            return False

        if len(self._buffer) >= self._capacity:
            victim = next((i for i, e in enumerate(self._buffer) if not e.is_critical), None)
            if victim is None and not event.is_critical:
                self.dropped += 1
                ALERTS_DROPPED_TOTAL.labels(reason="overflow").inc()
                return False
            if victim is None:
                logger.error(
                    "Alert subscriber disconnected, buffer full of critical alerts",
                    institution_id=str(self.institution_id) if self.institution_id else None,
                    buffered=len(self._buffer),
                )
                ALERTS_DROPPED_TOTAL.labels(reason="disconnected").inc(len(self._buffer))
                self.disconnected = True
                self.close()
                return False
            del self._buffer[victim]
            self.dropped += 1
            ALERTS_DROPPED_TOTAL.labels(reason="overflow").inc()

        self._buffer.append(event)
        self._ready.set()
        return True

    def close(self) -> None:
        """End the stream; buffered events are discarded."""
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        self._ready.set()
        self._bus._unsubscribe(self)

    def __aiter__(self) -> "AlertSubscription":
        return self

    async def __anext__(self) -> AlertEvent:
        while not self._buffer:
            if self._closed:
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()
        return self._buffer.popleft()

    async def __aenter__(self) -> "AlertSubscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class AlertBus:
    """
    Fan-out of stage-transition alerts to staff subscribers.

    Args:
        cooldown: Minimum time between two emissions of one dedupe_key
        buffer_size: Per-subscriber buffer capacity
        min_stage: Lowest transition_to stage that is emitted
        clock: Time source, injectable for tests
    """

    def __init__(
        self,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        min_stage: Stage = Stage.IDEATION,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self._cooldown = cooldown
        self._buffer_size = buffer_size
        self._min_stage = min_stage
        self._clock = clock
        self._subscribers: list[AlertSubscription] = []
        self._last_emitted: dict[tuple[UUID, Stage, RiskLevel], datetime] = {}
        self._sink_tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: AlertEvent) -> bool:
        """
        Emit an event to every matching subscriber.

        Returns:
            True if the event was emitted, False if it was below
            the alert threshold or inside the dedupe cooldown
        """
        if event.transition_to < self._min_stage:
            track_alert("below_threshold")
            return False

        now = self._clock()
        key = event.dedupe_key
        last = self._last_emitted.get(key)
        if last is not None and now - last < self._cooldown:
            track_alert("deduplicated")
            logger.debug(
                "Alert suppressed by cooldown",
                user_id=str(event.user_id),
                stage=event.transition_to.label,
            )
            return False

        self._last_emitted[key] = now
        if len(self._last_emitted) > _DEDUPE_PRUNE_THRESHOLD:
            self._prune(now)

        delivered = 0
        for subscription in list(self._subscribers):
            if not subscription.matches(event):
                continue
            try:
                if subscription.offer(event):
                    delivered += 1
            except Exception as e:
                logger.error(
                    "Alert delivery to subscriber failed",
                    event_id=str(event.event_id),
                    error=str(e),
                )

        track_alert("emitted")
        logger.info(
            "Alert published",
            event_id=str(event.event_id),
            user_id=str(event.user_id),
            transition_to=event.transition_to.label,
            risk_level=event.risk_level.label,
            subscribers=delivered,
        )
        return True

    def subscribe(self, institution_id: Optional[UUID] = None) -> AlertSubscription:
        """Open a subscription; None receives every institution's alerts."""
        subscription = AlertSubscription(self, institution_id, self._buffer_size)
        self._subscribers.append(subscription)
        ALERT_SUBSCRIBERS.set(len(self._subscribers))
        return subscription

    def attach_sink(
        self,
        sink: AlertSink,
        institution_id: Optional[UUID] = None,
    ) -> asyncio.Task:
        """
        Pump alerts into a sink from a background task.

        Must be called from a running event loop. The task ends
        when the bus is closed.
        """
        task = asyncio.create_task(self._pump(sink, institution_id), name=f"alert-sink-{sink.name}")
        self._sink_tasks.add(task)
        task.add_done_callback(self._sink_tasks.discard)
        logger.info("Alert sink attached", sink=sink.name)
        return task

    async def close(self) -> None:
        """Close every subscription and stop sink pumps."""
        self._closed = True
        for subscription in list(self._subscribers):
            subscription.close()
        tasks = list(self._sink_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _pump(self, sink: AlertSink, institution_id: Optional[UUID]) -> None:
        while not self._closed:
            subscription = self.subscribe(institution_id)
            try:
                async for event in subscription:
                    try:
                        await sink.deliver(event)
                    except Exception as e:
                        logger.error(
                            "Alert sink delivery failed",
                            sink=sink.name,
                            event_id=str(event.event_id),
                            error=str(e),
                        )
            finally:
                subscription.close()

            if subscription.disconnected and not self._closed:
                logger.warning("Alert sink fell behind, resubscribing", sink=sink.name)

    def _unsubscribe(self, subscription: AlertSubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            ALERT_SUBSCRIBERS.set(len(self._subscribers))

    def _prune(self, now: datetime) -> None:
        expired = [k for k, t in self._last_emitted.items() if now - t >= self._cooldown]
        for key in expired:
            del self._last_emitted[key]
