"""
Crisis Signal Models

CrisisSignal is the ephemeral output of the classifier, consumed
once by the pipeline. CrisisSignalRecord is the durable audit row
written for every flagged message.

SECURITY: Records keep a hash of the scanned text, never the text.
The message itself stays with the conversation store, referenced
by source_type/source_id.
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from unmute.domain.enums.risk_stage import (
    CrisisCategory,
    Severity,
    Stage,
    implied_stage,
)
from unmute.domain.models.risk_profile import utc_now


@dataclass(frozen=True)
class CrisisSignal:
    """
    Risk assessment of a single message.

    Attributes:
        text: The scanned (possibly truncated) text
        category: Category of the highest-severity match
        severity: Maximum severity across all matches
        matched_terms: Matched phrases that counted
        negated_terms: Matched phrases found under a negation cue
        show_resources: Whether crisis resources should be shown
        truncated: Whether the input exceeded the scan limit
    """

    text: str
    category: CrisisCategory = CrisisCategory.NONE
    severity: Severity = Severity.LOW
    matched_terms: frozenset[str] = field(default_factory=frozenset)
    negated_terms: frozenset[str] = field(default_factory=frozenset)
    show_resources: bool = False
    truncated: bool = False

    @property
    def is_flagged(self) -> bool:
        return self.category != CrisisCategory.NONE

    @property
    def implied_stage(self) -> Stage:
        return implied_stage(self.category, self.severity)

    @property
    def text_hash(self) -> str:
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()

    def to_dict(self) -> dict:
        """Serialise without the raw text."""
        return {
            "category": self.category.value,
            "severity": self.severity.label,
            "matched_terms": sorted(self.matched_terms),
            "negated_terms": sorted(self.negated_terms),
            "show_resources": self.show_resources,
            "flagged": self.is_flagged,
            "implied_stage": self.implied_stage.label,
            "truncated": self.truncated,
        }


@dataclass(frozen=True)
class CrisisSignalRecord:
    """
    Durable audit record of a flagged message.

    Staff review these from the institution dashboard; marking a
    record reviewed never changes the student's stage.
    """

    user_id: UUID
    source_type: str
    source_id: str
    category: CrisisCategory
    severity: Severity
    matched_terms: tuple[str, ...]
    text_hash: str
    stage_before: Stage
    stage_after: Stage
    institution_id: Optional[UUID] = None
    id: UUID = field(default_factory=uuid4)
    is_reviewed: bool = False
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_signal(
        cls,
        signal: CrisisSignal,
        *,
        user_id: UUID,
        institution_id: Optional[UUID],
        source_type: str,
        source_id: str,
        stage_before: Stage,
        stage_after: Stage,
    ) -> "CrisisSignalRecord":
        return cls(
            user_id=user_id,
            institution_id=institution_id,
            source_type=source_type,
            source_id=source_id,
            category=signal.category,
            severity=signal.severity,
            matched_terms=tuple(sorted(signal.matched_terms)),
            text_hash=signal.text_hash,
            stage_before=stage_before,
            stage_after=stage_after,
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "institution_id": str(self.institution_id) if self.institution_id else None,
            "source_type": self.source_type,
            "source_id": self.source_id,
            "category": self.category.value,
            "severity": self.severity.label,
            "matched_terms": list(self.matched_terms),
            "stage_before": self.stage_before.label,
            "stage_after": self.stage_after.label,
            "is_reviewed": self.is_reviewed,
            "reviewed_by": str(self.reviewed_by) if self.reviewed_by else None,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "created_at": self.created_at.isoformat(),
        }
