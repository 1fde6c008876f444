"""
Report Endpoints

Institution dashboard rollups. Every stage and risk level appears
in the result, zero-filled.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from unmute.api.dependencies import get_orchestrator
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

router = APIRouter()


@router.get("/institutions/{institution_id}/stages", summary="Student counts per stage")
async def counts_by_stage(
    institution_id: UUID,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict[str, int]:
    counts = await orchestrator.aggregation.counts_by_stage(institution_id)
    return {stage.label: n for stage, n in counts.items()}


@router.get("/institutions/{institution_id}/risk-levels", summary="Student counts per risk level")
async def counts_by_risk_level(
    institution_id: UUID,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict[str, int]:
    counts = await orchestrator.aggregation.counts_by_risk_level(institution_id)
    return {level.label: n for level, n in counts.items()}


@router.get("/institutions/{institution_id}/summary", summary="Institution risk summary")
async def summary(
    institution_id: UUID,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    result = await orchestrator.aggregation.summary(institution_id)
    return result.to_dict()
