"""
Crisis Response Log Database Model

Append-only audit trail of staff actions. Rows are never updated
or deleted by the application.

LEGAL_REVIEW_REQUIRED: Retention period for response logs.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from unmute.domain.enums.workflow import (
    NotificationChannel,
    ResponseActionType,
    ResponseOutcome,
)
from unmute.domain.models.response_log import ResponseLogEntry
from unmute.infrastructure.database.connection import Base
from unmute.infrastructure.database.models.risk_profile_model import as_utc


class CrisisResponseLogModel(Base):
    """
    Crisis response log table ORM model.

    Table: crisis_response_logs
    """

    __tablename__ = "crisis_response_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    assignment_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
        doc="Related assignment, if any"
    )
    student_user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    responder_user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    institution_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)

    action_type: Mapped[str] = mapped_column(String(30), nullable=False)
    outcome: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    follow_up_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    follow_up_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    notification_sent: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Whether a notification was accepted for dispatch"
    )
    notification_channel: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    @classmethod
    def from_domain(cls, entry: ResponseLogEntry) -> "CrisisResponseLogModel":
        return cls(
            id=entry.id,
            assignment_id=entry.assignment_id,
            student_user_id=entry.student_user_id,
            responder_user_id=entry.responder_user_id,
            institution_id=entry.institution_id,
            action_type=entry.action_type.value,
            outcome=entry.outcome.value if entry.outcome else None,
            details=entry.details,
            follow_up_required=entry.follow_up_required,
            follow_up_at=entry.follow_up_at,
            notification_sent=entry.notification_sent,
            notification_channel=(
                entry.notification_channel.value if entry.notification_channel else None
            ),
            created_at=entry.created_at,
        )

    def to_domain(self) -> ResponseLogEntry:
        return ResponseLogEntry(
            id=self.id,
            assignment_id=self.assignment_id,
            student_user_id=self.student_user_id,
            responder_user_id=self.responder_user_id,
            institution_id=self.institution_id,
            action_type=ResponseActionType(self.action_type),
            outcome=ResponseOutcome(self.outcome) if self.outcome else None,
            details=self.details,
            follow_up_required=self.follow_up_required,
            follow_up_at=as_utc(self.follow_up_at),
            notification_sent=self.notification_sent,
            notification_channel=(
                NotificationChannel(self.notification_channel)
                if self.notification_channel else None
            ),
            created_at=as_utc(self.created_at),
        )
