"""
Risk Profile Domain Model

One durable risk record per student. Profiles are immutable
values: every change produces a new RiskProfile with the next
version, written back by compare-and-swap.

SAFETY-CRITICAL: risk_level and needs_counselling are derived
from the stage and can never be set independently of it.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from unmute.domain.enums.risk_stage import RiskLevel, Stage, risk_level_for_stage


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RiskProfile:
    """
    Per-student crisis risk state.

    Attributes:
        user_id: Student the profile belongs to
        institution_id: Institution the student is enrolled in
        stage: Current crisis-progression stage
        crisis_count: Number of flagged messages ever seen
        last_crisis_at: Time of the latest flagged message
        assigned_counsellor_id: Counsellor responsible for the student
        assigned_listener_id: Peer listener responsible for the student
        notes: Free-text notes from the latest stage review
        version: Optimistic-concurrency token, 0 until first write
    """

    user_id: UUID
    institution_id: Optional[UUID] = None
    stage: Stage = Stage.NONE
    crisis_count: int = 0
    last_crisis_at: Optional[datetime] = None
    assigned_counsellor_id: Optional[UUID] = None
    assigned_listener_id: Optional[UUID] = None
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    version: int = 0

    def __post_init__(self) -> None:
        if self.crisis_count < 0:
            raise ValueError("crisis_count cannot be negative")

    @property
    def risk_level(self) -> RiskLevel:
        """Risk level fixed by the stage."""
        return risk_level_for_stage(self.stage)

    @property
    def needs_counselling(self) -> bool:
        """True from ideation onwards."""
        return self.stage >= Stage.IDEATION

    def evolve(self, **changes) -> "RiskProfile":
        """Copy with changes; version is managed by the store."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "user_id": str(self.user_id),
            "institution_id": str(self.institution_id) if self.institution_id else None,
            "stage": self.stage.label,
            "stage_index": int(self.stage),
            "risk_level": self.risk_level.label,
            "needs_counselling": self.needs_counselling,
            "crisis_count": self.crisis_count,
            "last_crisis_at": self.last_crisis_at.isoformat() if self.last_crisis_at else None,
            "assigned_counsellor_id": (
                str(self.assigned_counsellor_id) if self.assigned_counsellor_id else None
            ),
            "assigned_listener_id": (
                str(self.assigned_listener_id) if self.assigned_listener_id else None
            ),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }
