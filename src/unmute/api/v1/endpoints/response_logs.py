"""
Response Log Endpoints

Append-only audit of staff crisis responses. Entries are never
edited or deleted.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from unmute.api.dependencies import get_orchestrator
from unmute.domain.enums.workflow import (
    NotificationChannel,
    ResponseActionType,
    ResponseOutcome,
)
from unmute.domain.models.response_log import ResponseLogRequest
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

router = APIRouter()


class CreateResponseLogRequest(BaseModel):
    """A response action taken by staff."""

    student_user_id: UUID
    responder_user_id: UUID
    action_type: ResponseActionType
    assignment_id: Optional[UUID] = None
    institution_id: Optional[UUID] = None
    outcome: Optional[ResponseOutcome] = None
    details: Optional[str] = None
    follow_up_required: bool = False
    follow_up_at: Optional[datetime] = None
    notify: Optional[NotificationChannel] = Field(
        default=None,
        description="Also alert on-call staff by email, sms or both",
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Log a response action")
async def log_response(
    request: CreateResponseLogRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    entry = await orchestrator.workflow.log_response(
        ResponseLogRequest(**request.model_dump())
    )
    return entry.to_dict()


@router.get("", summary="List response log entries")
async def list_responses(
    student_user_id: Optional[UUID] = Query(default=None),
    assignment_id: Optional[UUID] = Query(default=None),
    institution_id: Optional[UUID] = Query(default=None),
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> list[dict]:
    entries = await orchestrator.workflow.list_responses(
        student_user_id=student_user_id,
        assignment_id=assignment_id,
        institution_id=institution_id,
    )
    return [e.to_dict() for e in entries]
