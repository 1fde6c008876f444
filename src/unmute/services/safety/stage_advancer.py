"""
Stage Advancer

Pure state transitions for RiskProfile. The advancer computes the
next profile; persisting it (compare-and-swap on version) is the
caller's job.

SAFETY-CRITICAL: advance() never lowers a stage. The only way down
is review(), an explicit, attributed human decision.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import Stage
from unmute.domain.models.crisis_signal import CrisisSignal
from unmute.domain.models.risk_profile import RiskProfile, utc_now

logger = get_logger(__name__)


class StageAdvancer:
    """Applies classified signals and staff decisions to profiles."""

    def advance(
        self,
        profile: RiskProfile,
        signal: CrisisSignal,
        now: Optional[datetime] = None,
    ) -> RiskProfile:
        """
        Apply a classified message to a profile.

        Unflagged signals return the profile unchanged. A flagged
        signal counts a crisis and moves the stage to the higher
        of the current and implied stage.

        Args:
            profile: Current profile (as read from the store)
            signal: Classifier output for the message
            now: Transition time, defaults to the current UTC time

        Returns:
            The next profile; version is left for the store to bump
        """
        if not signal.is_flagged:
            return profile

        now = now or utc_now()
        stage = max(profile.stage, signal.implied_stage)

        return profile.evolve(
            stage=stage,
            crisis_count=profile.crisis_count + 1,
            last_crisis_at=now,
            updated_at=now,
        )

    def review(
        self,
        profile: RiskProfile,
        stage: Stage,
        reviewer_id: Optional[UUID],
        reason: str,
        now: Optional[datetime] = None,
    ) -> RiskProfile:
        """
        Set a stage by human review.

        The only operation that may lower a stage. crisis_count is
        left as is.

        Raises:
            ValueError: Without a reviewer or a reason
        """
        if reviewer_id is None:
            raise ValueError("Stage review requires a reviewer")
        if not reason or not reason.strip():
            raise ValueError("Stage review requires a reason")

        now = now or utc_now()

        logger.warning(
            "Risk stage set by review",
            user_id=str(profile.user_id),
            reviewer_id=str(reviewer_id),
            stage_before=profile.stage.label,
            stage_after=stage.label,
            lowered=stage < profile.stage,
        )

        return profile.evolve(stage=stage, notes=reason.strip(), updated_at=now)

    def assign_responders(
        self,
        profile: RiskProfile,
        counsellor_id: Optional[UUID] = None,
        listener_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> RiskProfile:
        """Record the counsellor and/or listener responsible for the student."""
        if counsellor_id is None and listener_id is None:
            return profile

        changes: dict = {"updated_at": now or utc_now()}
        if counsellor_id is not None:
            changes["assigned_counsellor_id"] = counsellor_id
        if listener_id is not None:
            changes["assigned_listener_id"] = listener_id
        return profile.evolve(**changes)
