"""
Assignment Domain Model

An assignment links a flagged student to a staff responder
(counsellor or trained listener). Status only moves forward:
pending -> active -> completed.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from unmute.domain.enums.risk_stage import RiskLevel
from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.domain.models.risk_profile import utc_now


@dataclass(frozen=True)
class Assignment:
    """
    Unit of crisis-response work.

    Attributes:
        student_user_id: Student who needs support
        reason: Why the assignment was opened
        risk_level_at_creation: Student's risk level when opened
        assignee_user_id: Responder; None while unclaimed
        priority: normal, high or urgent
        status: pending, active or completed
    """

    student_user_id: UUID
    reason: str
    risk_level_at_creation: RiskLevel
    assignee_user_id: Optional[UUID] = None
    institution_id: Optional[UUID] = None
    priority: AssignmentPriority = AssignmentPriority.NORMAL
    status: AssignmentStatus = AssignmentStatus.PENDING
    id: UUID = field(default_factory=uuid4)
    assigned_at: datetime = field(default_factory=utc_now)
    accepted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    def evolve(self, **changes) -> "Assignment":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "student_user_id": str(self.student_user_id),
            "assignee_user_id": str(self.assignee_user_id) if self.assignee_user_id else None,
            "institution_id": str(self.institution_id) if self.institution_id else None,
            "priority": self.priority.value,
            "status": self.status.value,
            "reason": self.reason,
            "risk_level_at_creation": self.risk_level_at_creation.label,
            "assigned_at": self.assigned_at.isoformat(),
            "accepted_at": self.accepted_at.isoformat() if self.accepted_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "notes": self.notes,
        }
