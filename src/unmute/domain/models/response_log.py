"""
Response Log Domain Model

Immutable audit trail of actions staff took in response to a
crisis. Entries are appended, never updated or deleted.

LEGAL_REVIEW_REQUIRED: Retention of response logs is subject to
institutional safeguarding policy.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from unmute.domain.enums.workflow import (
    NotificationChannel,
    ResponseActionType,
    ResponseOutcome,
)
from unmute.domain.models.risk_profile import utc_now


@dataclass(frozen=True)
class ResponseLogEntry:
    """
    A single recorded staff action.

    assignment_id is optional: staff may log ad-hoc actions such
    as calling emergency services without a formal assignment.
    """

    student_user_id: UUID
    responder_user_id: UUID
    action_type: ResponseActionType
    assignment_id: Optional[UUID] = None
    institution_id: Optional[UUID] = None
    outcome: Optional[ResponseOutcome] = None
    details: Optional[str] = None
    follow_up_required: bool = False
    follow_up_at: Optional[datetime] = None
    notification_sent: bool = False
    notification_channel: Optional[NotificationChannel] = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "assignment_id": str(self.assignment_id) if self.assignment_id else None,
            "student_user_id": str(self.student_user_id),
            "responder_user_id": str(self.responder_user_id),
            "institution_id": str(self.institution_id) if self.institution_id else None,
            "action_type": self.action_type.value,
            "outcome": self.outcome.value if self.outcome else None,
            "details": self.details,
            "follow_up_required": self.follow_up_required,
            "follow_up_at": self.follow_up_at.isoformat() if self.follow_up_at else None,
            "notification_sent": self.notification_sent,
            "notification_channel": (
                self.notification_channel.value if self.notification_channel else None
            ),
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ResponseLogRequest:
    """
    Staff input for a new response log entry.

    notify requests an outbound notification; whether it was
    actually dispatched is decided by the workflow and recorded
    on the resulting entry.
    """

    student_user_id: UUID
    responder_user_id: UUID
    action_type: ResponseActionType
    assignment_id: Optional[UUID] = None
    institution_id: Optional[UUID] = None
    outcome: Optional[ResponseOutcome] = None
    details: Optional[str] = None
    follow_up_required: bool = False
    follow_up_at: Optional[datetime] = None
    notify: Optional[NotificationChannel] = None
