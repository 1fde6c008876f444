"""
Stage Guidance

Display names, descriptions, recommended actions and intervention
guidance for each crisis stage, shown to staff next to a profile.

CLINICAL_REVIEW_REQUIRED: All guidance text.
"""

from dataclasses import dataclass
from enum import StrEnum

from unmute.domain.enums.risk_stage import Stage


class RecommendedAction(StrEnum):
    """Level of support recommended for a stage."""

    NONE = "none"
    SELF_HELP = "self-help"
    PEER_SUPPORT = "peer-support"
    COUNSELLOR = "counsellor"
    EMERGENCY = "emergency"


@dataclass(frozen=True)
class StageGuidance:
    stage: Stage
    name: str
    description: str
    recommended_action: RecommendedAction
    requires_immediate_intervention: bool
    interventions: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.label,
            "name": self.name,
            "description": self.description,
            "recommended_action": self.recommended_action.value,
            "requires_immediate_intervention": self.requires_immediate_intervention,
            "interventions": list(self.interventions),
        }


STAGE_GUIDANCE: dict[Stage, StageGuidance] = {
    Stage.NONE: StageGuidance(
        stage=Stage.NONE,
        name="No Concern",
        description="No crisis indicators have been detected",
        recommended_action=RecommendedAction.NONE,
        requires_immediate_intervention=False,
        interventions=(),
    ),
    Stage.TRIGGER: StageGuidance(
        stage=Stage.TRIGGER,
        name="Trigger Event",
        description="A triggering event like failure, rejection, or trauma has occurred",
        recommended_action=RecommendedAction.SELF_HELP,
        requires_immediate_intervention=False,
        interventions=(
            "Acknowledge the difficult situation",
            "Offer wellness tools like breathing exercises",
            "Encourage journaling to process feelings",
            "Suggest connecting with support rooms",
        ),
    ),
    Stage.SPIRAL: StageGuidance(
        stage=Stage.SPIRAL,
        name="Negative Spiral",
        description="Negative thought patterns are forming and building",
        recommended_action=RecommendedAction.PEER_SUPPORT,
        requires_immediate_intervention=False,
        interventions=(
            "Validate feelings without reinforcing negative thoughts",
            "Gently challenge negative self-talk",
            "Connect with peer listeners",
            "Recommend cognitive exercises",
        ),
    ),
    Stage.DISTORTIONS: StageGuidance(
        stage=Stage.DISTORTIONS,
        name="Cognitive Distortions",
        description="Thinking patterns are becoming distorted and catastrophic",
        recommended_action=RecommendedAction.PEER_SUPPORT,
        requires_immediate_intervention=False,
        interventions=(
            "Help identify cognitive distortions",
            "Offer CBT-based exercises",
            "Connect with trained peer listener",
            "Consider counsellor referral",
        ),
    ),
    Stage.OVERLOAD: StageGuidance(
        stage=Stage.OVERLOAD,
        name="Emotional Overload",
        description="Fear is turning into helplessness and hopelessness",
        recommended_action=RecommendedAction.COUNSELLOR,
        requires_immediate_intervention=False,
        interventions=(
            "Urgent peer listener connection needed",
            "Recommend counsellor session",
            "Monitor closely for escalation",
        ),
    ),
    Stage.ISOLATION: StageGuidance(
        stage=Stage.ISOLATION,
        name="Isolation",
        description="Withdrawal from support systems",
        recommended_action=RecommendedAction.COUNSELLOR,
        requires_immediate_intervention=False,
        interventions=(
            "Urgent peer listener connection needed",
            "Recommend counsellor session",
            "Monitor closely for escalation",
            "Alert support network if consented",
        ),
    ),
    Stage.IDEATION: StageGuidance(
        stage=Stage.IDEATION,
        name="Suicidal Ideation",
        description="Thoughts of ending life are present",
        recommended_action=RecommendedAction.COUNSELLOR,
        requires_immediate_intervention=True,
        interventions=(
            "Immediate counsellor referral required",
            "Show crisis resources prominently",
            "Stay engaged until help is connected",
            "Create safety plan together",
        ),
    ),
    Stage.PLANNING: StageGuidance(
        stage=Stage.PLANNING,
        name="Active Planning",
        description="Active planning or preparation is occurring",
        recommended_action=RecommendedAction.EMERGENCY,
        requires_immediate_intervention=True,
        interventions=(
            "EMERGENCY: Connect to crisis helpline immediately",
            "Do not leave person alone if possible",
            "Alert emergency contacts",
            "Professional intervention critical",
        ),
    ),
    Stage.ACTION: StageGuidance(
        stage=Stage.ACTION,
        name="Imminent Action",
        description="Immediate intervention required, attempt may be imminent",
        recommended_action=RecommendedAction.EMERGENCY,
        requires_immediate_intervention=True,
        interventions=(
            "CALL EMERGENCY SERVICES IMMEDIATELY",
            "Stay on the line with the person",
            "Keep them talking until help arrives",
            "Do not hang up or leave",
        ),
    ),
}


def guidance_for(stage: Stage) -> StageGuidance:
    return STAGE_GUIDANCE[stage]
