"""
Aggregation View

Read-only institution rollups of student risk profiles for the
staff dashboard.

Each call reads one snapshot from the store, so every count in a
single result is consistent with the others. Every enum member
appears as a key, zero-filled.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import RiskLevel, Stage
from unmute.domain.models.risk_profile import RiskProfile
from unmute.infrastructure.stores.base import RiskProfileStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstitutionSummary:
    """Dashboard headline numbers for one institution."""

    institution_id: Optional[UUID]
    total_profiles: int
    needs_counselling: int
    critical: int
    by_stage: dict[Stage, int]
    by_risk_level: dict[RiskLevel, int]

    def to_dict(self) -> dict:
        return {
            "institution_id": str(self.institution_id) if self.institution_id else None,
            "total_profiles": self.total_profiles,
            "needs_counselling": self.needs_counselling,
            "critical": self.critical,
            "by_stage": {stage.label: n for stage, n in self.by_stage.items()},
            "by_risk_level": {level.label: n for level, n in self.by_risk_level.items()},
        }


def _count_stages(profiles: list[RiskProfile]) -> dict[Stage, int]:
    counts = {stage: 0 for stage in Stage}
    for profile in profiles:
        counts[profile.stage] += 1
    return counts


def _count_risk_levels(profiles: list[RiskProfile]) -> dict[RiskLevel, int]:
    counts = {level: 0 for level in RiskLevel}
    for profile in profiles:
        counts[profile.risk_level] += 1
    return counts


class AggregationView:
    """Stage and risk-level counts per institution."""

    def __init__(self, profiles: RiskProfileStore) -> None:
        self._profiles = profiles

    async def counts_by_stage(self, institution_id: Optional[UUID] = None) -> dict[Stage, int]:
        return _count_stages(await self._profiles.snapshot(institution_id))

    async def counts_by_risk_level(
        self,
        institution_id: Optional[UUID] = None,
    ) -> dict[RiskLevel, int]:
        return _count_risk_levels(await self._profiles.snapshot(institution_id))

    async def summary(self, institution_id: Optional[UUID] = None) -> InstitutionSummary:
        profiles = await self._profiles.snapshot(institution_id)
        by_risk_level = _count_risk_levels(profiles)

        summary = InstitutionSummary(
            institution_id=institution_id,
            total_profiles=len(profiles),
            needs_counselling=sum(1 for p in profiles if p.needs_counselling),
            critical=by_risk_level[RiskLevel.CRITICAL],
            by_stage=_count_stages(profiles),
            by_risk_level=by_risk_level,
        )
        logger.debug(
            "Institution summary computed",
            institution_id=str(institution_id) if institution_id else None,
            total_profiles=summary.total_profiles,
        )
        return summary
