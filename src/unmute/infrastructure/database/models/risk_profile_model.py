"""
Student Risk Profile Database Model

SQLAlchemy ORM model for per-student crisis risk state.

SAFETY-CRITICAL: risk_level and needs_counselling are stored for
querying only. They are always written from the stage, never from
caller input.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from unmute.domain.enums.risk_stage import Stage
from unmute.domain.models.risk_profile import RiskProfile
from unmute.infrastructure.database.connection import Base


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes returned by SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class StudentRiskProfileModel(Base):
    """
    Student risk profile table ORM model.

    One row per student, updated by version-checked writes.

    Table: student_risk_profiles
    """

    __tablename__ = "student_risk_profiles"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
        doc="Row identifier"
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        unique=True,
        nullable=False,
        doc="Student the profile belongs to"
    )
    institution_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
        doc="Institution the student is enrolled in"
    )

    # Risk state
    stage: Mapped[str] = mapped_column(
        String(20),
        default=Stage.NONE.label,
        nullable=False,
        doc="Crisis-progression stage label"
    )
    risk_level: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        doc="Risk level derived from the stage"
    )
    needs_counselling: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
        doc="Derived: stage is ideation or later"
    )
    crisis_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        doc="Number of flagged messages"
    )
    last_crisis_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Time of the latest flagged message"
    )

    # Responders
    assigned_counsellor_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        doc="Responsible counsellor"
    )
    assigned_listener_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        doc="Responsible peer listener"
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Notes from the latest stage review"
    )

    # Concurrency
    version: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
        doc="Optimistic-concurrency token"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @staticmethod
    def column_values(profile: RiskProfile) -> dict:
        """Column values for a domain profile, excluding id and version."""
        return {
            "user_id": profile.user_id,
            "institution_id": profile.institution_id,
            "stage": profile.stage.label,
            "risk_level": profile.risk_level.label,
            "needs_counselling": profile.needs_counselling,
            "crisis_count": profile.crisis_count,
            "last_crisis_at": profile.last_crisis_at,
            "assigned_counsellor_id": profile.assigned_counsellor_id,
            "assigned_listener_id": profile.assigned_listener_id,
            "notes": profile.notes,
            "updated_at": profile.updated_at,
        }

    def to_domain(self) -> RiskProfile:
        return RiskProfile(
            user_id=self.user_id,
            institution_id=self.institution_id,
            stage=Stage.parse(self.stage),
            crisis_count=self.crisis_count,
            last_crisis_at=as_utc(self.last_crisis_at),
            assigned_counsellor_id=self.assigned_counsellor_id,
            assigned_listener_id=self.assigned_listener_id,
            notes=self.notes,
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<StudentRiskProfile(user_id={self.user_id}, stage={self.stage}, v={self.version})>"
