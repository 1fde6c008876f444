"""
Counsellor Assignment Database Model

SQLAlchemy ORM model for crisis-response assignments.

A partial unique index guarantees at most one pending or active
assignment per student, enforced by the database itself.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from unmute.domain.enums.risk_stage import RiskLevel
from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.domain.models.assignment import Assignment
from unmute.infrastructure.database.connection import Base
from unmute.infrastructure.database.models.risk_profile_model import as_utc


OPEN_STATUS_CLAUSE = "status IN ('pending', 'active')"


class CounsellorAssignmentModel(Base):
    """
    Counsellor assignment table ORM model.

    Table: counsellor_assignments
    """

    __tablename__ = "counsellor_assignments"
    __table_args__ = (
        Index(
            "uq_counsellor_assignments_open_student",
            "student_user_id",
            unique=True,
            postgresql_where=text(OPEN_STATUS_CLAUSE),
            sqlite_where=text(OPEN_STATUS_CLAUSE),
        ),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
        doc="Unique assignment identifier"
    )
    student_user_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
        doc="Student who needs support"
    )
    assignee_user_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
        doc="Counsellor or listener; null while unclaimed"
    )
    institution_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
    )

    priority: Mapped[str] = mapped_column(
        String(10),
        default=AssignmentPriority.NORMAL.value,
        nullable=False,
        doc="normal, high or urgent"
    )
    status: Mapped[str] = mapped_column(
        String(10),
        default=AssignmentStatus.PENDING.value,
        nullable=False,
        index=True,
        doc="pending, active or completed"
    )
    reason: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Why the assignment was opened"
    )
    risk_level_at_creation: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @classmethod
    def from_domain(cls, assignment: Assignment) -> "CounsellorAssignmentModel":
        return cls(
            id=assignment.id,
            student_user_id=assignment.student_user_id,
            assignee_user_id=assignment.assignee_user_id,
            institution_id=assignment.institution_id,
            priority=assignment.priority.value,
            status=assignment.status.value,
            reason=assignment.reason,
            risk_level_at_creation=assignment.risk_level_at_creation.label,
            notes=assignment.notes,
            assigned_at=assignment.assigned_at,
            accepted_at=assignment.accepted_at,
            completed_at=assignment.completed_at,
        )

    def to_domain(self) -> Assignment:
        return Assignment(
            id=self.id,
            student_user_id=self.student_user_id,
            assignee_user_id=self.assignee_user_id,
            institution_id=self.institution_id,
            priority=AssignmentPriority(self.priority),
            status=AssignmentStatus(self.status),
            reason=self.reason,
            risk_level_at_creation=RiskLevel.parse(self.risk_level_at_creation),
            notes=self.notes,
            assigned_at=as_utc(self.assigned_at),
            accepted_at=as_utc(self.accepted_at),
            completed_at=as_utc(self.completed_at),
        )

    def __repr__(self) -> str:
        return f"<CounsellorAssignment(id={self.id}, status={self.status})>"
