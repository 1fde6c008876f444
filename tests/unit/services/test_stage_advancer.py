"""
Unit Tests for Stage Advancer

Tests monotonic stage progression, human review and responder
assignment on risk profiles.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from unmute.domain.enums.risk_stage import CrisisCategory, RiskLevel, Severity, Stage
from unmute.domain.models.crisis_signal import CrisisSignal
from unmute.domain.models.risk_profile import RiskProfile
from unmute.services.safety.stage_advancer import StageAdvancer


def make_signal(category: CrisisCategory, severity: Severity) -> CrisisSignal:
    return CrisisSignal(text="...", category=category, severity=severity)


class TestAdvance:
    """Tests for applying classified messages."""

    @pytest.fixture
    def advancer(self) -> StageAdvancer:
        return StageAdvancer()

    @pytest.fixture
    def now(self) -> datetime:
        return datetime(2025, 3, 1, 22, 15, tzinfo=timezone.utc)

    def test_unflagged_signal_leaves_profile(self, advancer: StageAdvancer, student_id) -> None:
        """No match means no change at all."""
        profile = RiskProfile(user_id=student_id)
        assert advancer.advance(profile, CrisisSignal(text="hello")) is profile

    def test_critical_self_harm_moves_to_action(
        self, advancer: StageAdvancer, student_id, now: datetime
    ) -> None:
        """A critical self-harm message lands on the action stage."""
        profile = RiskProfile(user_id=student_id)
        result = advancer.advance(
            profile, make_signal(CrisisCategory.SELF_HARM, Severity.CRITICAL), now=now
        )

        assert result.stage == Stage.ACTION
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.needs_counselling
        assert result.crisis_count == 1
        assert result.last_crisis_at == now

    def test_low_distress_stays_below_counselling(self, advancer: StageAdvancer, student_id) -> None:
        """A trigger event never sets needs_counselling."""
        result = advancer.advance(
            RiskProfile(user_id=student_id),
            make_signal(CrisisCategory.GENERIC_DISTRESS, Severity.LOW),
        )

        assert result.stage == Stage.TRIGGER
        assert result.risk_level == RiskLevel.MEDIUM
        assert not result.needs_counselling

    def test_stage_never_lowered(self, advancer: StageAdvancer, student_id) -> None:
        """A milder message keeps the higher stage but still counts."""
        profile = RiskProfile(user_id=student_id, stage=Stage.PLANNING, crisis_count=3)
        result = advancer.advance(profile, make_signal(CrisisCategory.GENERIC_DISTRESS, Severity.LOW))

        assert result.stage == Stage.PLANNING
        assert result.crisis_count == 4

    def test_conversation_only_climbs(self, advancer: StageAdvancer, student_id) -> None:
        """Folding a mixed conversation keeps the highest stage seen so far."""
        conversation = [
            (make_signal(CrisisCategory.GENERIC_DISTRESS, Severity.LOW), Stage.TRIGGER, RiskLevel.MEDIUM),
            (make_signal(CrisisCategory.GENERIC_DISTRESS, Severity.MEDIUM), Stage.SPIRAL, RiskLevel.MEDIUM),
            (make_signal(CrisisCategory.GENERIC_DISTRESS, Severity.LOW), Stage.SPIRAL, RiskLevel.MEDIUM),
            (make_signal(CrisisCategory.ABUSE, Severity.HIGH), Stage.ISOLATION, RiskLevel.HIGH),
            (make_signal(CrisisCategory.GENERIC_DISTRESS, Severity.HIGH), Stage.ISOLATION, RiskLevel.HIGH),
            (make_signal(CrisisCategory.SELF_HARM, Severity.MEDIUM), Stage.IDEATION, RiskLevel.CRITICAL),
            (make_signal(CrisisCategory.SELF_HARM, Severity.LOW), Stage.IDEATION, RiskLevel.CRITICAL),
            (CrisisSignal(text="thanks for listening"), Stage.IDEATION, RiskLevel.CRITICAL),
            (make_signal(CrisisCategory.SELF_HARM, Severity.HIGH), Stage.PLANNING, RiskLevel.CRITICAL),
        ]
        profile = RiskProfile(user_id=student_id)

        for signal, stage, level in conversation:
            previous = profile.stage
            profile = advancer.advance(profile, signal)

            assert profile.stage >= previous
            assert profile.stage == stage
            assert profile.risk_level == level
            assert profile.needs_counselling == (stage >= Stage.IDEATION)

        assert profile.crisis_count == 8

    def test_abuse_implies_isolation(self, advancer: StageAdvancer, student_id) -> None:
        """Abuse disclosures move to isolation."""
        result = advancer.advance(
            RiskProfile(user_id=student_id, stage=Stage.SPIRAL),
            make_signal(CrisisCategory.ABUSE, Severity.HIGH),
        )
        assert result.stage == Stage.ISOLATION

    def test_version_left_for_store(self, advancer: StageAdvancer, student_id) -> None:
        """The advancer does not bump versions."""
        profile = RiskProfile(user_id=student_id, version=4)
        result = advancer.advance(profile, make_signal(CrisisCategory.SELF_HARM, Severity.MEDIUM))
        assert result.version == 4


class TestReview:
    """Tests for human stage review."""

    @pytest.fixture
    def advancer(self) -> StageAdvancer:
        return StageAdvancer()

    def test_review_can_lower_stage(self, advancer: StageAdvancer, student_id) -> None:
        """A reviewer may move a student down."""
        profile = RiskProfile(user_id=student_id, stage=Stage.ACTION, crisis_count=2)
        result = advancer.review(profile, Stage.SPIRAL, uuid4(), "  Spoke with student, safe  ")

        assert result.stage == Stage.SPIRAL
        assert result.crisis_count == 2
        assert result.notes == "Spoke with student, safe"
        assert not result.needs_counselling

    def test_review_requires_reviewer(self, advancer: StageAdvancer, student_id) -> None:
        """Anonymous reviews are rejected."""
        with pytest.raises(ValueError):
            advancer.review(RiskProfile(user_id=student_id), Stage.NONE, None, "reason")

    @pytest.mark.parametrize("reason", ["", "   "])
    def test_review_requires_reason(self, advancer: StageAdvancer, student_id, reason: str) -> None:
        """Blank reasons are rejected."""
        with pytest.raises(ValueError):
            advancer.review(RiskProfile(user_id=student_id), Stage.NONE, uuid4(), reason)


class TestAssignResponders:
    """Tests for recording responders on a profile."""

    def test_nothing_to_assign(self, student_id) -> None:
        """No ids leaves the profile as is."""
        profile = RiskProfile(user_id=student_id)
        assert StageAdvancer().assign_responders(profile) is profile

    def test_counsellor_only(self, student_id) -> None:
        """Assigning a counsellor keeps the listener."""
        listener = uuid4()
        counsellor = uuid4()
        profile = RiskProfile(user_id=student_id, assigned_listener_id=listener)

        result = StageAdvancer().assign_responders(profile, counsellor_id=counsellor)

        assert result.assigned_counsellor_id == counsellor
        assert result.assigned_listener_id == listener


class TestRiskProfile:
    """Tests for derived profile fields."""

    @pytest.mark.parametrize(
        "stage,level",
        [
            (Stage.NONE, RiskLevel.LOW),
            (Stage.DISTORTIONS, RiskLevel.MEDIUM),
            (Stage.ISOLATION, RiskLevel.HIGH),
            (Stage.IDEATION, RiskLevel.CRITICAL),
        ],
    )
    def test_risk_level_follows_stage(self, student_id, stage: Stage, level: RiskLevel) -> None:
        """Risk level is fixed by the stage."""
        assert RiskProfile(user_id=student_id, stage=stage).risk_level == level

    def test_negative_crisis_count_rejected(self, student_id) -> None:
        """crisis_count cannot go below zero."""
        with pytest.raises(ValueError):
            RiskProfile(user_id=student_id, crisis_count=-1)

    def test_to_dict_uses_labels(self, student_id) -> None:
        """Serialised stages and levels are lower-case names."""
        data = RiskProfile(user_id=student_id, stage=Stage.IDEATION).to_dict()

        assert data["stage"] == "ideation"
        assert data["stage_index"] == 6
        assert data["risk_level"] == "critical"
        assert data["needs_counselling"] is True

    def test_stage_parse(self) -> None:
        """Labels parse case-insensitively; unknown labels raise."""
        assert Stage.parse(" Planning ") == Stage.PLANNING
        assert RiskLevel.parse(3) == RiskLevel.HIGH
        with pytest.raises(ValueError):
            Stage.parse("panic")
