"""Safety services package - stage progression, helplines and staff guidance."""

from unmute.services.safety.crisis_resources import (
    CrisisResource,
    CrisisResourceResolver,
    ResourceBundle,
)
from unmute.services.safety.stage_advancer import StageAdvancer
from unmute.services.safety.stage_guidance import (
    RecommendedAction,
    StageGuidance,
    guidance_for,
)

__all__ = [
    # Stage progression
    "StageAdvancer",
    # Helplines
    "CrisisResource",
    "CrisisResourceResolver",
    "ResourceBundle",
    # Staff guidance
    "StageGuidance",
    "RecommendedAction",
    "guidance_for",
]
