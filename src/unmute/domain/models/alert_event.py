"""
Alert Event Model

Transient notification of a risk-stage transition, fanned out to
staff dashboards by the AlertBus. Not persisted: the pending
assignment is the durable record of an unacknowledged crisis.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from unmute.domain.enums.risk_stage import RiskLevel, Stage
from unmute.domain.models.risk_profile import RiskProfile, utc_now


@dataclass(frozen=True)
class AlertEvent:
    """
    Stage transition alert.

    Attributes:
        profile_snapshot: Profile as written by the transition
        transition_from: Stage before the message
        transition_to: Stage after the message
        emitted_at: Creation time of the event
    """

    profile_snapshot: RiskProfile
    transition_from: Stage
    transition_to: Stage
    emitted_at: datetime = field(default_factory=utc_now)
    event_id: UUID = field(default_factory=uuid4)

    @property
    def user_id(self) -> UUID:
        return self.profile_snapshot.user_id

    @property
    def institution_id(self) -> Optional[UUID]:
        return self.profile_snapshot.institution_id

    @property
    def risk_level(self) -> RiskLevel:
        return self.profile_snapshot.risk_level

    @property
    def dedupe_key(self) -> tuple[UUID, Stage, RiskLevel]:
        return (self.user_id, self.transition_to, self.risk_level)

    @property
    def is_critical(self) -> bool:
        return self.risk_level >= RiskLevel.CRITICAL

    def to_dict(self) -> dict:
        return {
            "event_id": str(self.event_id),
            "type": "crisis_alert",
            "user_id": str(self.user_id),
            "institution_id": str(self.institution_id) if self.institution_id else None,
            "transition_from": self.transition_from.label,
            "transition_to": self.transition_to.label,
            "risk_level": self.risk_level.label,
            "critical": self.is_critical,
            "emitted_at": self.emitted_at.isoformat(),
            "profile": self.profile_snapshot.to_dict(),
        }
