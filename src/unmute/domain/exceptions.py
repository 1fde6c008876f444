"""
Crisis Pipeline Error Taxonomy

Every error the pipeline raises derives from CrisisPipelineError.
Workflow errors are user-correctable and surfaced to staff as-is;
ConcurrentUpdateConflict is transient; classification and
notification failures are recovered where they happen.
"""

from typing import Optional
from uuid import UUID


class CrisisPipelineError(Exception):
    """Base class for all crisis pipeline errors."""


class ClassificationError(CrisisPipelineError):
    """
    Malformed classifier input.

    Recovered inside the classifier; never reaches the
    message-send path.
    """


class ConcurrentUpdateConflict(CrisisPipelineError):
    """Optimistic-concurrency failure writing a risk profile."""

    def __init__(self, user_id: UUID, expected_version: Optional[int]) -> None:
        self.user_id = user_id
        self.expected_version = expected_version
        super().__init__(
            f"Risk profile for {user_id} changed since version {expected_version}"
        )


class ProfileNotFound(CrisisPipelineError):
    """No risk profile exists for the user."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__(f"No risk profile for user {user_id}")


class WorkflowError(CrisisPipelineError):
    """Escalation workflow contract violation."""


class InvalidTransition(WorkflowError):
    """Assignment status change not permitted from its current state."""

    def __init__(self, assignment_id: UUID, current: str, attempted: str) -> None:
        self.assignment_id = assignment_id
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Cannot {attempted} assignment {assignment_id} while it is {current}"
        )


class AlreadyAccepted(WorkflowError):
    """Another responder accepted the assignment first."""

    def __init__(self, assignment_id: UUID, accepted_by: Optional[UUID]) -> None:
        self.assignment_id = assignment_id
        self.accepted_by = accepted_by
        super().__init__(f"Assignment {assignment_id} was already accepted")


class DuplicateActiveAssignment(WorkflowError):
    """The student already has a pending or active assignment."""

    def __init__(self, student_user_id: UUID, existing_id: Optional[UUID] = None) -> None:
        self.student_user_id = student_user_id
        self.existing_id = existing_id
        super().__init__(
            f"Student {student_user_id} already has an open assignment"
        )


class AssignmentNotFound(WorkflowError):
    """No assignment with the given id."""

    def __init__(self, assignment_id: UUID) -> None:
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id} not found")


class InvalidResponseLog(WorkflowError):
    """Response log entry failed validation."""


class SignalRecordNotFound(CrisisPipelineError):
    """No crisis signal record with the given id."""

    def __init__(self, record_id: UUID) -> None:
        self.record_id = record_id
        super().__init__(f"Crisis signal record {record_id} not found")


class NotificationDeliveryFailure(CrisisPipelineError):
    """
    A notification sink failed to deliver.

    Logged and counted; never propagated past the dispatcher.
    """

    def __init__(self, channel: str, recipient: str, reason: str) -> None:
        self.channel = channel
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"{channel} delivery failed: {reason}")
