"""
Signal Record Endpoints

Staff review queue of flagged messages. Reviewing a record is an
acknowledgement only; it never changes the student's stage.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from unmute.api.dependencies import get_orchestrator
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

router = APIRouter()


class ReviewRecordRequest(BaseModel):
    reviewer_id: UUID


@router.get("", summary="List unreviewed signal records")
async def list_unreviewed(
    institution_id: Optional[UUID] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> list[dict]:
    records = await orchestrator.pipeline.list_unreviewed_records(institution_id, limit)
    return [r.to_dict() for r in records]


@router.post("/{record_id}/review", summary="Mark a signal record reviewed")
async def review_record(
    record_id: UUID,
    request: ReviewRecordRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    record = await orchestrator.pipeline.review_record(record_id, request.reviewer_id)
    return record.to_dict()
