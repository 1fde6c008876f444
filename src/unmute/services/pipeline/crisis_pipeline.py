"""
Crisis Pipeline

Entry point for every student message. Glues the classifier, the
risk profile store, the alert bus and the escalation workflow.

Flow for one message:
1. Classify (synchronous, never raises)
2. Flagged: advance the profile, compare-and-swap with bounded retry
3. Append a signal record for staff review
4. Publish a stage-transition alert
5. Open or upgrade an assignment from the escalation threshold up

SAFETY-CRITICAL: Sending a message never fails because of the
pipeline. on_user_message returns the signal as soon as it is
classified; downstream work runs in the background and its
failures are logged. Profile updates that keep losing the
optimistic-concurrency race, or that hit a store error, are kept in
a deferred backlog and retried by the sweep. An update is only
abandoned, loudly, when the backlog is full or it has failed
max_deferred_sweeps sweeps. Shutdown waits for in-flight updates.
"""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import RiskLevel, Stage
from unmute.domain.exceptions import ConcurrentUpdateConflict, ProfileNotFound
from unmute.domain.models.alert_event import AlertEvent
from unmute.domain.models.assignment import Assignment
from unmute.domain.models.crisis_signal import CrisisSignal, CrisisSignalRecord
from unmute.domain.models.risk_profile import RiskProfile, utc_now
from unmute.infrastructure.metrics import (
    CLASSIFICATION_DURATION,
    DEFERRED_UPDATES,
    DEFERRED_UPDATES_ABANDONED_TOTAL,
    PROFILE_WRITE_CONFLICTS_TOTAL,
    track_classification,
    track_stage_transition,
)
from unmute.infrastructure.monitoring import capture_safety_event
from unmute.infrastructure.stores.base import RiskProfileStore, SignalRecordStore
from unmute.services.alerts.alert_bus import AlertBus
from unmute.services.detection.signal_classifier import SignalClassifier
from unmute.services.escalation.escalation_workflow import EscalationWorkflow
from unmute.services.safety.stage_advancer import StageAdvancer

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeferredUpdate:
    """A flagged message whose profile update could not be written yet."""

    user_id: UUID
    institution_id: Optional[UUID]
    signal: CrisisSignal
    source_type: str
    source_id: str
    queued_at: datetime = field(default_factory=utc_now)
    sweeps: int = 0


@dataclass(frozen=True)
class PipelineOutcome:
    """
    Result of processing one message.

    Attributes:
        signal: Classifier output
        profile: Profile as written, None for unflagged messages
        stage_before: Stage read before the update
        record: Signal record appended for staff review
        alerted: Whether an alert was emitted
        assignment: Assignment opened or upgraded, if any
    """

    signal: CrisisSignal
    profile: Optional[RiskProfile] = None
    stage_before: Optional[Stage] = None
    record: Optional[CrisisSignalRecord] = None
    alerted: bool = False
    assignment: Optional[Assignment] = None

    @property
    def stage_changed(self) -> bool:
        return self.profile is not None and self.stage_before != self.profile.stage


class CrisisPipeline:
    """
    Message-to-escalation pipeline.

    Usage:
        pipeline = CrisisPipeline(classifier, profiles, records, bus, workflow)
        pipeline.start()
        signal = pipeline.on_user_message(user_id, institution_id, text, "message", msg_id)
        if signal.show_resources:
            ...show helplines...
    """

    def __init__(
        self,
        classifier: SignalClassifier,
        profiles: RiskProfileStore,
        signal_records: SignalRecordStore,
        bus: AlertBus,
        workflow: Optional[EscalationWorkflow] = None,
        advancer: Optional[StageAdvancer] = None,
        write_attempts: int = 3,
        backoff_min_seconds: float = 0.05,
        backoff_max_seconds: float = 1.0,
        auto_escalate_min_level: RiskLevel = RiskLevel.CRITICAL,
        sweep_interval_seconds: float = 60.0,
        max_deferred_updates: int = 1000,
        max_deferred_sweeps: int = 10,
        shutdown_timeout_seconds: float = 10.0,
    ) -> None:
        if write_attempts < 1:
            raise ValueError("write_attempts must be at least 1")
        if max_deferred_updates < 1 or max_deferred_sweeps < 1:
            raise ValueError("deferred backlog limits must be at least 1")
        self._classifier = classifier
        self._profiles = profiles
        self._records = signal_records
        self._bus = bus
        self._workflow = workflow
        self._advancer = advancer or StageAdvancer()
        self._write_attempts = write_attempts
        self._backoff_min = backoff_min_seconds
        self._backoff_max = backoff_max_seconds
        self._auto_escalate_min_level = auto_escalate_min_level
        self._sweep_interval = sweep_interval_seconds
        self._max_deferred = max_deferred_updates
        self._max_sweeps = max_deferred_sweeps
        self._shutdown_timeout = shutdown_timeout_seconds

        self._deferred: list[DeferredUpdate] = []
        self._tasks: set[asyncio.Task] = set()
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def deferred_count(self) -> int:
        return len(self._deferred)

    # =========================================================================
    # Message path
    # =========================================================================

    def classify(self, text: object) -> CrisisSignal:
        """Classify a message and count it."""
        with CLASSIFICATION_DURATION.time():
            signal = self._classifier.classify(text)
        track_classification(signal.category.value, signal.severity.label)
        return signal

    def on_user_message(
        self,
        user_id: UUID,
        institution_id: Optional[UUID],
        text: object,
        source_type: str = "message",
        source_id: str = "",
    ) -> CrisisSignal:
        """
        Classify a message and schedule the risk update.

        Must be called from a running event loop. Returns as soon as
        the message is classified; never raises for downstream
        failures.
        """
        signal = self.classify(text)
        if not signal.is_flagged:
            return signal

        logger.info(
            "Crisis signal detected",
            user_id=str(user_id),
            category=signal.category.value,
            severity=signal.severity.label,
            source_type=source_type,
        )

        task = asyncio.create_task(
            self.process_signal(signal, user_id, institution_id, source_type, source_id)
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return signal

    async def process_message(
        self,
        user_id: UUID,
        institution_id: Optional[UUID],
        text: object,
        source_type: str = "message",
        source_id: str = "",
    ) -> PipelineOutcome:
        """
        Classify and fully process a message.

        Raises:
            ConcurrentUpdateConflict: The profile write kept
                conflicting; the update has been deferred
            Exception: Any profile store failure, re-raised after
                the update has been deferred
        """
        signal = self.classify(text)
        return await self.process_signal(signal, user_id, institution_id, source_type, source_id)

    async def process_signal(
        self,
        signal: CrisisSignal,
        user_id: UUID,
        institution_id: Optional[UUID],
        source_type: str = "message",
        source_id: str = "",
    ) -> PipelineOutcome:
        """
        Apply an already classified signal.

        Raises:
            ConcurrentUpdateConflict: The profile write kept
                conflicting; the update has been deferred
            Exception: Any profile store failure, re-raised after
                the update has been deferred
        """
        if not signal.is_flagged:
            return PipelineOutcome(signal=signal)

        update = DeferredUpdate(
            user_id=user_id,
            institution_id=institution_id,
            signal=signal,
            source_type=source_type,
            source_id=source_id,
        )
        try:
            return await self._apply(update)
        except (Exception, asyncio.CancelledError):
            self._defer(update)
            raise

    # =========================================================================
    # Staff operations
    # =========================================================================

    async def get_profile(self, user_id: UUID) -> RiskProfile:
        profile = await self._profiles.get(user_id)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    async def review_stage(
        self,
        user_id: UUID,
        stage: Stage,
        reviewer_id: UUID,
        reason: str,
    ) -> RiskProfile:
        """
        Set a student's stage by human review.

        Raises:
            ProfileNotFound: Student has no profile
            ValueError: Missing reviewer or reason
            ConcurrentUpdateConflict: Profile kept changing underneath
        """
        before: Optional[RiskProfile] = None
        stored: Optional[RiskProfile] = None

        async for attempt in self._retrying():
            with attempt:
                before = await self.get_profile(user_id)
                reviewed = self._advancer.review(before, stage, reviewer_id, reason)
                stored = await self._profiles.compare_and_set(reviewed, before.version)

        if before.stage != stored.stage:
            track_stage_transition(before.stage.label, stored.stage.label, "review")
            if stored.stage > before.stage:
                self._publish(AlertEvent(stored, before.stage, stored.stage))
        return stored

    async def list_unreviewed_records(
        self,
        institution_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[CrisisSignalRecord]:
        return await self._records.list_unreviewed(institution_id, limit)

    async def review_record(self, record_id: UUID, reviewer_id: UUID) -> CrisisSignalRecord:
        """Mark a signal record reviewed; the student's stage is untouched."""
        record = await self._records.mark_reviewed(record_id, reviewer_id, utc_now())
        logger.info(
            "Signal record reviewed",
            record_id=str(record_id),
            reviewer_id=str(reviewer_id),
        )
        return record

    # =========================================================================
    # Background work
    # =========================================================================

    def start(self) -> None:
        """Start the deferred-update sweep. Requires a running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop(), name="crisis-pipeline-sweep")
            logger.info("Crisis pipeline started", sweep_interval=self._sweep_interval)

    async def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the sweep and let in-flight message processing finish.

        Processing still running after the timeout is cancelled; a
        cancelled update lands in the deferred backlog.
        """
        if self._sweeper is not None:
            self._sweeper.cancel()
            await asyncio.gather(self._sweeper, return_exceptions=True)
            self._sweeper = None

        timeout = self._shutdown_timeout if timeout is None else timeout
        if self._tasks:
            _, unfinished = await asyncio.wait(set(self._tasks), timeout=timeout)
            if unfinished:
                logger.error(
                    "Crisis message processing cancelled at shutdown",
                    unfinished=len(unfinished),
                    timeout=timeout,
                )
                for task in unfinished:
                    task.cancel()
                await asyncio.gather(*unfinished, return_exceptions=True)

        if self._deferred:
            logger.warning("Crisis pipeline stopped with deferred updates", deferred=len(self._deferred))
        logger.info("Crisis pipeline stopped")

    async def drain(self) -> None:
        """Wait for scheduled message processing to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def sweep_deferred(self) -> int:
        """
        Retry deferred profile updates once each.

        Updates that still fail stay in the backlog until they have
        failed max_deferred_sweeps sweeps, then they are abandoned
        and reported. Cancellation puts unswept updates back.

        Returns:
            Number of updates applied
        """
        if not self._deferred:
            return 0

        pending, self._deferred = self._deferred, []
        applied = 0
        for index, update in enumerate(pending):
            try:
                await self._apply(update)
                applied += 1
            except asyncio.CancelledError:
                self._deferred.extend(pending[index:])
                DEFERRED_UPDATES.set(len(self._deferred))
                raise
            except Exception as e:
                if not isinstance(e, ConcurrentUpdateConflict):
                    logger.error(
                        "Deferred risk update failed",
                        user_id=str(update.user_id),
                        error=str(e),
                    )
                self._requeue(replace(update, sweeps=update.sweeps + 1))

        DEFERRED_UPDATES.set(len(self._deferred))
        logger.info("Deferred risk updates swept", applied=applied, remaining=len(self._deferred))
        return applied

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.sweep_deferred()
            except Exception as e:
                logger.error("Deferred sweep failed", error=str(e))

    # =========================================================================
    # Internals
    # =========================================================================

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(
                multiplier=self._backoff_min,
                min=self._backoff_min,
                max=self._backoff_max,
            ),
            retry=retry_if_exception_type(ConcurrentUpdateConflict),
            before_sleep=_count_conflict_retry,
            reraise=True,
        )

    async def _apply(self, update: DeferredUpdate) -> PipelineOutcome:
        signal = update.signal
        try:
            before, stored = await self._advance(update)
        except ConcurrentUpdateConflict:
            PROFILE_WRITE_CONFLICTS_TOTAL.labels(outcome="exhausted").inc()
            logger.error(
                "Risk profile update conflicted on every attempt",
                user_id=str(update.user_id),
                attempts=self._write_attempts,
            )
            raise

        if before.stage != stored.stage:
            track_stage_transition(before.stage.label, stored.stage.label, "message")

        record = await self._append_record(update, before.stage, stored.stage)
        alerted = self._publish(AlertEvent(stored, before.stage, stored.stage))
        assignment = await self._escalate(stored, signal)

        return PipelineOutcome(
            signal=signal,
            profile=stored,
            stage_before=before.stage,
            record=record,
            alerted=alerted,
            assignment=assignment,
        )

    async def _advance(self, update: DeferredUpdate) -> tuple[RiskProfile, RiskProfile]:
        before: Optional[RiskProfile] = None
        stored: Optional[RiskProfile] = None

        async for attempt in self._retrying():
            with attempt:
                before = await self._profiles.get(update.user_id) or RiskProfile(
                    user_id=update.user_id,
                    institution_id=update.institution_id,
                )
                current = before
                if current.institution_id is None and update.institution_id is not None:
                    current = current.evolve(institution_id=update.institution_id)
                advanced = self._advancer.advance(current, update.signal)
                stored = await self._profiles.compare_and_set(advanced, before.version)

        logger.info(
            "Risk profile updated",
            user_id=str(update.user_id),
            stage_before=before.stage.label,
            stage_after=stored.stage.label,
            risk_level=stored.risk_level.label,
            version=stored.version,
        )
        return before, stored

    async def _append_record(
        self,
        update: DeferredUpdate,
        stage_before: Stage,
        stage_after: Stage,
    ) -> Optional[CrisisSignalRecord]:
        record = CrisisSignalRecord.from_signal(
            update.signal,
            user_id=update.user_id,
            institution_id=update.institution_id,
            source_type=update.source_type,
            source_id=update.source_id,
            stage_before=stage_before,
            stage_after=stage_after,
        )
        try:
            return await self._records.append(record)
        except Exception as e:
            logger.error(
                "Signal record append failed",
                user_id=str(update.user_id),
                error=str(e),
            )
            return None

    def _publish(self, event: AlertEvent) -> bool:
        try:
            return self._bus.publish(event)
        except Exception as e:
            logger.error(
                "Alert publish failed",
                user_id=str(event.user_id),
                error=str(e),
            )
            return False

    async def _escalate(
        self,
        profile: RiskProfile,
        signal: CrisisSignal,
    ) -> Optional[Assignment]:
        if self._workflow is None or profile.risk_level < self._auto_escalate_min_level:
            return None
        try:
            return await self._workflow.escalate(
                student_user_id=profile.user_id,
                risk_level=profile.risk_level,
                reason=(
                    f"Automatic escalation: {profile.stage.label} stage "
                    f"after {signal.category.value} signal"
                ),
                institution_id=profile.institution_id,
            )
        except Exception as e:
            logger.error(
                "Automatic escalation failed",
                user_id=str(profile.user_id),
                risk_level=profile.risk_level.label,
                error=str(e),
            )
            return None

    def _defer(self, update: DeferredUpdate) -> None:
        if len(self._deferred) >= self._max_deferred:
            self._abandon(self._deferred.pop(0), "backlog_full")
        self._deferred.append(update)
        DEFERRED_UPDATES.set(len(self._deferred))
        logger.warning(
            "Risk update deferred to sweep",
            user_id=str(update.user_id),
            deferred=len(self._deferred),
        )
        capture_safety_event(
            "Risk profile update deferred",
            extra={"user_id": str(update.user_id), "deferred": len(self._deferred)},
        )

    def _requeue(self, update: DeferredUpdate) -> None:
        if update.sweeps >= self._max_sweeps:
            self._abandon(update, "sweeps_exhausted")
        else:
            self._deferred.append(update)

    def _abandon(self, update: DeferredUpdate, reason: str) -> None:
        DEFERRED_UPDATES_ABANDONED_TOTAL.labels(reason=reason).inc()
        logger.error(
            "Deferred risk update abandoned",
            user_id=str(update.user_id),
            reason=reason,
            sweeps=update.sweeps,
            queued_at=update.queued_at.isoformat(),
            severity=update.signal.severity.label,
        )
        capture_safety_event(
            "Deferred risk profile update abandoned",
            level="error",
            extra={
                "user_id": str(update.user_id),
                "reason": reason,
                "sweeps": update.sweeps,
                "severity": update.signal.severity.label,
            },
        )

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Crisis message processing failed, update deferred",
                error=str(error),
                error_type=type(error).__name__,
            )


def _count_conflict_retry(retry_state: RetryCallState) -> None:
    PROFILE_WRITE_CONFLICTS_TOTAL.labels(outcome="retried").inc()
    logger.warning(
        "Risk profile write conflict, retrying",
        attempt=retry_state.attempt_number,
    )
