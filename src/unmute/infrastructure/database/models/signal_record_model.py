"""
Crisis Signal Record Database Model

Audit row for every flagged message.

SECURITY: Only a SHA-256 hash of the scanned text is stored. The
message stays in the conversation store, referenced by
source_type and source_id.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from unmute.domain.enums.risk_stage import CrisisCategory, Severity, Stage
from unmute.domain.models.crisis_signal import CrisisSignalRecord
from unmute.infrastructure.database.connection import Base
from unmute.infrastructure.database.models.risk_profile_model import as_utc


class CrisisSignalRecordModel(Base):
    """
    Crisis signal record table ORM model.

    Table: crisis_signal_records
    """

    __tablename__ = "crisis_signal_records"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    institution_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)

    source_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Kind of message (chat, room, journal, ...)"
    )
    source_id: Mapped[str] = mapped_column(String(100), nullable=False)

    category: Mapped[str] = mapped_column(String(20), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    matched_terms: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    text_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    stage_before: Mapped[str] = mapped_column(String(20), nullable=False)
    stage_after: Mapped[str] = mapped_column(String(20), nullable=False)

    is_reviewed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    reviewed_by: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    @classmethod
    def from_domain(cls, record: CrisisSignalRecord) -> "CrisisSignalRecordModel":
        return cls(
            id=record.id,
            user_id=record.user_id,
            institution_id=record.institution_id,
            source_type=record.source_type,
            source_id=record.source_id,
            category=record.category.value,
            severity=record.severity.label,
            matched_terms=list(record.matched_terms),
            text_hash=record.text_hash,
            stage_before=record.stage_before.label,
            stage_after=record.stage_after.label,
            is_reviewed=record.is_reviewed,
            reviewed_by=record.reviewed_by,
            reviewed_at=record.reviewed_at,
            created_at=record.created_at,
        )

    def to_domain(self) -> CrisisSignalRecord:
        return CrisisSignalRecord(
            id=self.id,
            user_id=self.user_id,
            institution_id=self.institution_id,
            source_type=self.source_type,
            source_id=self.source_id,
            category=CrisisCategory(self.category),
            severity=Severity.parse(self.severity),
            matched_terms=tuple(self.matched_terms or ()),
            text_hash=self.text_hash,
            stage_before=Stage.parse(self.stage_before),
            stage_after=Stage.parse(self.stage_after),
            is_reviewed=self.is_reviewed,
            reviewed_by=self.reviewed_by,
            reviewed_at=as_utc(self.reviewed_at),
            created_at=as_utc(self.created_at),
        )
