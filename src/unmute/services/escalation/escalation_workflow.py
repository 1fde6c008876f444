"""
Escalation Workflow

Assignment lifecycle and response audit log for staff responding
to a crisis.

Assignment lifecycle:
    pending --accept--> active --complete--> completed

Every status change is a compare-and-swap in the store, so of two
responders accepting the same assignment exactly one succeeds and
the other gets AlreadyAccepted.

SAFETY-CRITICAL: Priority is never lowered. Only escalate(), the
system path driven by risk changes, raises it.
"""

from typing import Literal, Optional
from uuid import UUID

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import RiskLevel
from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.domain.exceptions import (
    AlreadyAccepted,
    AssignmentNotFound,
    ConcurrentUpdateConflict,
    DuplicateActiveAssignment,
    InvalidResponseLog,
    InvalidTransition,
)
from unmute.domain.models.assignment import Assignment
from unmute.domain.models.response_log import ResponseLogEntry, ResponseLogRequest
from unmute.domain.models.risk_profile import RiskProfile, utc_now
from unmute.infrastructure.metrics import RESPONSE_LOGS_TOTAL, track_assignment
from unmute.infrastructure.notifications import CrisisNotification, NotificationDispatcher
from unmute.infrastructure.stores.base import (
    AssignmentStore,
    ResponseLogStore,
    RiskProfileStore,
)
from unmute.services.safety.stage_advancer import StageAdvancer

logger = get_logger(__name__)


MAX_DETAILS_LENGTH = 5000
MAX_REASON_LENGTH = 1000

ResponderRole = Literal["counsellor", "listener"]


class EscalationWorkflow:
    """
    Staff-facing assignment and response operations.

    Args:
        assignments: Assignment store
        responses: Response log store
        dispatcher: Optional e-mail/SMS dispatcher for response logs
        profiles: Optional profile store; when given, accepting an
            assignment records the responder on the student's profile
    """

    def __init__(
        self,
        assignments: AssignmentStore,
        responses: ResponseLogStore,
        dispatcher: Optional[NotificationDispatcher] = None,
        profiles: Optional[RiskProfileStore] = None,
        advancer: Optional[StageAdvancer] = None,
    ) -> None:
        self._assignments = assignments
        self._responses = responses
        self._dispatcher = dispatcher
        self._profiles = profiles
        self._advancer = advancer or StageAdvancer()

    # =========================================================================
    # Assignments
    # =========================================================================

    async def create_assignment(
        self,
        student_user_id: UUID,
        reason: str,
        risk_level: RiskLevel,
        assignee_user_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
        priority: Optional[AssignmentPriority] = None,
    ) -> Assignment:
        """
        Open a pending assignment.

        Args:
            student_user_id: Student who needs support
            reason: Why the assignment is opened
            risk_level: Student's current risk level
            assignee_user_id: Responder, or None for an unclaimed assignment
            institution_id: Student's institution
            priority: Defaults to the priority for risk_level

        Raises:
            ValueError: Empty or over-long reason
            DuplicateActiveAssignment: Student already has an open assignment
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValueError("Assignment reason is required")
        if len(reason) > MAX_REASON_LENGTH:
            raise ValueError(f"Assignment reason exceeds {MAX_REASON_LENGTH} characters")

        assignment = Assignment(
            student_user_id=student_user_id,
            reason=reason,
            risk_level_at_creation=risk_level,
            assignee_user_id=assignee_user_id,
            institution_id=institution_id,
            priority=priority or AssignmentPriority.from_risk_level(risk_level),
        )
        stored = await self._assignments.insert(assignment)

        track_assignment("created")
        logger.info(
            "Assignment created",
            assignment_id=str(stored.id),
            student_user_id=str(student_user_id),
            priority=stored.priority.value,
            claimed=assignee_user_id is not None,
        )
        return stored

    async def escalate(
        self,
        student_user_id: UUID,
        risk_level: RiskLevel,
        reason: str,
        institution_id: Optional[UUID] = None,
    ) -> Assignment:
        """
        Make sure an open assignment with adequate priority exists.

        Creates an unclaimed assignment, or raises the priority of
        the student's open one. Never lowers a priority.
        """
        priority = AssignmentPriority.from_risk_level(risk_level)

        existing = await self._assignments.get_open_for_student(student_user_id)
        if existing is not None:
            upgraded = await self._upgrade(existing, priority)
            if upgraded is not None:
                return upgraded

        try:
            return await self.create_assignment(
                student_user_id=student_user_id,
                reason=reason,
                risk_level=risk_level,
                institution_id=institution_id,
                priority=priority,
            )
        except DuplicateActiveAssignment:
            # Opened concurrently; upgrade that one instead
            existing = await self._assignments.get_open_for_student(student_user_id)
            if existing is None:
                raise
            return await self._upgrade(existing, priority) or existing

    async def accept(
        self,
        assignment_id: UUID,
        assignee_user_id: UUID,
        responder_role: ResponderRole = "counsellor",
    ) -> Assignment:
        """
        Accept a pending assignment, claiming it for the assignee.

        Raises:
            AssignmentNotFound: Unknown id
            AlreadyAccepted: Assignment is already active
            InvalidTransition: Assignment is completed or reserved
                for another responder
        """
        current = await self._assignments.get(assignment_id)
        if current is None:
            raise AssignmentNotFound(assignment_id)
        self._check_acceptable(current, assignee_user_id)

        updated = await self._assignments.transition(
            assignment_id,
            AssignmentStatus.PENDING,
            {
                "status": AssignmentStatus.ACTIVE,
                "accepted_at": utc_now(),
                "assignee_user_id": assignee_user_id,
            },
        )
        if updated is None:
            latest = await self._assignments.get(assignment_id)
            if latest is None:
                raise AssignmentNotFound(assignment_id)
            self._check_acceptable(latest, assignee_user_id)
            raise InvalidTransition(assignment_id, latest.status.value, "accept")

        track_assignment("accepted")
        logger.info(
            "Assignment accepted",
            assignment_id=str(assignment_id),
            assignee_user_id=str(assignee_user_id),
        )

        await self._record_responder(updated, assignee_user_id, responder_role)
        return updated

    async def complete(
        self,
        assignment_id: UUID,
        notes: Optional[str] = None,
    ) -> Assignment:
        """
        Complete an active assignment.

        Raises:
            AssignmentNotFound: Unknown id
            InvalidTransition: Assignment is not active
        """
        changes: dict = {"status": AssignmentStatus.COMPLETED, "completed_at": utc_now()}
        if notes:
            changes["notes"] = notes

        updated = await self._assignments.transition(assignment_id, AssignmentStatus.ACTIVE, changes)
        if updated is None:
            current = await self._assignments.get(assignment_id)
            if current is None:
                raise AssignmentNotFound(assignment_id)
            raise InvalidTransition(assignment_id, current.status.value, "complete")

        track_assignment("completed")
        logger.info("Assignment completed", assignment_id=str(assignment_id))
        return updated

    async def get_assignment(self, assignment_id: UUID) -> Assignment:
        assignment = await self._assignments.get(assignment_id)
        if assignment is None:
            raise AssignmentNotFound(assignment_id)
        return assignment

    async def list_assignments(
        self,
        assignee_user_id: Optional[UUID] = None,
        student_user_id: Optional[UUID] = None,
        status: Optional[AssignmentStatus] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[Assignment]:
        return await self._assignments.query(
            assignee_user_id=assignee_user_id,
            student_user_id=student_user_id,
            status=status,
            institution_id=institution_id,
        )

    # =========================================================================
    # Response log
    # =========================================================================

    async def log_response(self, request: ResponseLogRequest) -> ResponseLogEntry:
        """
        Validate and append a response log entry.

        When the request asks for a notification, notification_sent
        records whether it was accepted for delivery. Delivery
        itself happens in the background.

        Raises:
            InvalidResponseLog: Inconsistent entry
            AssignmentNotFound: assignment_id given but unknown
        """
        await self._validate(request)

        notify_accepted = False
        if request.notify is not None:
            notify_accepted = (
                self._dispatcher is not None and self._dispatcher.can_dispatch(request.notify)
            )

        entry = ResponseLogEntry(
            student_user_id=request.student_user_id,
            responder_user_id=request.responder_user_id,
            action_type=request.action_type,
            assignment_id=request.assignment_id,
            institution_id=request.institution_id,
            outcome=request.outcome,
            details=request.details.strip() if request.details else None,
            follow_up_required=request.follow_up_required,
            follow_up_at=request.follow_up_at,
            notification_sent=notify_accepted,
            notification_channel=request.notify if notify_accepted else None,
        )
        stored = await self._responses.append(entry)

        RESPONSE_LOGS_TOTAL.labels(action_type=entry.action_type.value).inc()
        logger.info(
            "Response logged",
            entry_id=str(stored.id),
            action_type=stored.action_type.value,
            assignment_id=str(stored.assignment_id) if stored.assignment_id else None,
            notification_sent=notify_accepted,
        )

        if notify_accepted:
            await self._notify(stored)
        elif request.notify is not None:
            logger.warning("Response notification not sent, no sink configured")

        return stored

    async def list_responses(
        self,
        student_user_id: Optional[UUID] = None,
        assignment_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[ResponseLogEntry]:
        return await self._responses.query(
            student_user_id=student_user_id,
            assignment_id=assignment_id,
            institution_id=institution_id,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_acceptable(self, assignment: Assignment, assignee_user_id: UUID) -> None:
        if assignment.status == AssignmentStatus.ACTIVE:
            raise AlreadyAccepted(assignment.id, assignment.assignee_user_id)
        if assignment.status == AssignmentStatus.COMPLETED:
            raise InvalidTransition(assignment.id, assignment.status.value, "accept")
        if (
            assignment.assignee_user_id is not None
            and assignment.assignee_user_id != assignee_user_id
        ):
            raise InvalidTransition(assignment.id, "reserved for another responder", "accept")

    async def _upgrade(
        self,
        existing: Assignment,
        priority: AssignmentPriority,
    ) -> Optional[Assignment]:
        upgraded = await self._assignments.raise_priority(existing.id, priority)
        if upgraded is not None and upgraded.priority != existing.priority:
            track_assignment("priority_raised")
            logger.warning(
                "Assignment priority raised",
                assignment_id=str(existing.id),
                priority_before=existing.priority.value,
                priority_after=upgraded.priority.value,
            )
        return upgraded

    async def _validate(self, request: ResponseLogRequest) -> None:
        if request.follow_up_at is not None and not request.follow_up_required:
            raise InvalidResponseLog("follow_up_at requires follow_up_required")
        if request.details and len(request.details) > MAX_DETAILS_LENGTH:
            raise InvalidResponseLog(f"details exceed {MAX_DETAILS_LENGTH} characters")
        if request.assignment_id is not None:
            assignment = await self._assignments.get(request.assignment_id)
            if assignment is None:
                raise AssignmentNotFound(request.assignment_id)
            if assignment.student_user_id != request.student_user_id:
                raise InvalidResponseLog("Assignment belongs to a different student")

    async def _notify(self, entry: ResponseLogEntry) -> None:
        # The entry is already written; failures here never reach the caller
        profile = None
        if self._profiles is not None:
            try:
                profile = await self._profiles.get(entry.student_user_id)
            except Exception as e:
                logger.error(
                    "Profile lookup for response notification failed",
                    entry_id=str(entry.id),
                    error=str(e),
                )

        try:
            self._dispatcher.dispatch(
                entry.notification_channel,
                CrisisNotification(
                    risk_level=profile.risk_level if profile else None,
                    stage=profile.stage if profile else None,
                    student_user_id=entry.student_user_id,
                    action=entry.action_type.value,
                    details=entry.details,
                    alert_id=entry.id,
                ),
                entry.institution_id,
            )
        except Exception as e:
            logger.error(
                "Response notification dispatch failed",
                entry_id=str(entry.id),
                channel=entry.notification_channel.value,
                error=str(e),
            )

    async def _record_responder(
        self,
        assignment: Assignment,
        assignee_user_id: UUID,
        role: ResponderRole,
    ) -> None:
        if self._profiles is None:
            return

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(3),
                retry=retry_if_exception_type(ConcurrentUpdateConflict),
                reraise=True,
            ):
                with attempt:
                    profile = await self._profiles.get(assignment.student_user_id) or RiskProfile(
                        user_id=assignment.student_user_id,
                        institution_id=assignment.institution_id,
                    )
                    updated = self._advancer.assign_responders(
                        profile,
                        counsellor_id=assignee_user_id if role == "counsellor" else None,
                        listener_id=assignee_user_id if role == "listener" else None,
                    )
                    await self._profiles.compare_and_set(updated, profile.version)
        except ConcurrentUpdateConflict:
            # The assignment itself is accepted; the profile link is informational
            logger.warning(
                "Could not record responder on profile",
                student_user_id=str(assignment.student_user_id),
                assignment_id=str(assignment.id),
            )
