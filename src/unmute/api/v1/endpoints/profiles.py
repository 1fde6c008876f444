"""
Risk Profile Endpoints

Staff view of a student's risk state and the human stage review.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from unmute.api.dependencies import get_orchestrator, parse_label
from unmute.domain.enums.risk_stage import Stage
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator
from unmute.services.safety.stage_guidance import guidance_for

router = APIRouter()


class StageReviewRequest(BaseModel):
    """Human review setting a student's stage."""

    stage: str = Field(..., description="Stage label, e.g. 'spiral'")
    reviewer_id: UUID
    reason: str = Field(..., min_length=1, max_length=1000)


@router.get("/{user_id}", summary="Get a student's risk profile")
async def get_profile(
    user_id: UUID,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    profile = await orchestrator.pipeline.get_profile(user_id)
    return {
        "profile": profile.to_dict(),
        "guidance": guidance_for(profile.stage).to_dict(),
    }


@router.post("/{user_id}/stage-review", summary="Set a student's stage by review")
async def review_stage(
    user_id: UUID,
    request: StageReviewRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    """
    The only way to lower a stage. Requires a reviewer and a reason,
    both kept in the audit log.
    """
    stage = parse_label(Stage, request.stage, "stage")
    try:
        profile = await orchestrator.pipeline.review_stage(
            user_id=user_id,
            stage=stage,
            reviewer_id=request.reviewer_id,
            reason=request.reason,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from None
    return {
        "profile": profile.to_dict(),
        "guidance": guidance_for(profile.stage).to_dict(),
    }
