"""
Unit Tests for Crisis Resources and Stage Guidance
"""

import json

import pytest

from unmute.domain.enums.risk_stage import CrisisCategory, Stage
from unmute.services.safety import CrisisResourceResolver, RecommendedAction, guidance_for


class TestCrisisResourceResolver:
    """Test suite for CrisisResourceResolver."""

    @pytest.fixture
    def resolver(self) -> CrisisResourceResolver:
        return CrisisResourceResolver()

    def test_self_harm_resources(self, resolver: CrisisResourceResolver) -> None:
        """Self-harm shows the suicide line first."""
        bundle = resolver.for_category(CrisisCategory.SELF_HARM)

        assert [r.key for r in bundle.resources] == ["suicide", "counselling"]
        assert bundle.resources[0].available_24_7

    def test_abuse_resources(self, resolver: CrisisResourceResolver) -> None:
        """Abuse shows child and women helplines."""
        keys = [r.key for r in resolver.for_category(CrisisCategory.ABUSE).resources]
        assert keys[:2] == ["abuse", "women"]

    def test_no_resources_for_unflagged(self, resolver: CrisisResourceResolver) -> None:
        """Unflagged messages get an empty bundle."""
        bundle = resolver.for_category(CrisisCategory.NONE)

        assert bundle.resources == []
        assert bundle.format_for_user() == ""

    def test_format_for_user(self, resolver: CrisisResourceResolver) -> None:
        """Formatted bundles list each helpline."""
        text = resolver.for_category(CrisisCategory.SELF_HARM).format_for_user()

        assert "AASRA" in text
        assert "(24/7)" in text

    def test_override_file(self, tmp_path) -> None:
        """Entries from the config file replace built-ins."""
        path = tmp_path / "resources.json"
        path.write_text(json.dumps({
            "suicide": {"name": "Samaritans", "phone": "116 123", "available_24_7": True},
        }))

        resolver = CrisisResourceResolver(str(path))

        assert resolver.get("suicide").name == "Samaritans"
        assert resolver.get("abuse").phone == "1098"

    def test_invalid_override_keeps_built_ins(self, tmp_path) -> None:
        """A malformed file is ignored."""
        path = tmp_path / "resources.json"
        path.write_text("{not json")

        resolver = CrisisResourceResolver(str(path))

        assert resolver.get("suicide").name == "AASRA"

    def test_missing_override_file(self, tmp_path) -> None:
        """A missing file leaves the built-in entries."""
        resolver = CrisisResourceResolver(str(tmp_path / "missing.json"))
        assert len(resolver.list_resources()) == 4


class TestStageGuidance:
    """Tests for staff guidance per stage."""

    def test_every_stage_has_guidance(self) -> None:
        """Guidance covers the whole stage model."""
        for stage in Stage:
            assert guidance_for(stage).stage == stage

    def test_critical_band_requires_intervention(self) -> None:
        """Ideation and above need immediate intervention."""
        for stage in Stage:
            assert guidance_for(stage).requires_immediate_intervention == stage.is_critical_band

    def test_action_is_emergency(self) -> None:
        """Imminent action calls for emergency services."""
        guidance = guidance_for(Stage.ACTION).to_dict()

        assert guidance["recommended_action"] == RecommendedAction.EMERGENCY.value
        assert guidance["stage"] == "action"
        assert guidance["interventions"]
