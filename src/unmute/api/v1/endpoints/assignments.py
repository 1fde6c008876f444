"""
Assignment Endpoints

Counsellor/listener assignment lifecycle:
pending -> active (accept) -> completed (complete).

Conflicts (duplicate open assignment, already accepted, illegal
transition) return 409 and leave the assignment unchanged.
"""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from unmute.api.dependencies import get_orchestrator, parse_label
from unmute.domain.enums.risk_stage import RiskLevel
from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

router = APIRouter()


class CreateAssignmentRequest(BaseModel):
    """Staff-created assignment."""

    student_user_id: UUID
    reason: str = Field(..., min_length=1, max_length=1000)
    risk_level: str = Field(..., description="low, medium, high or critical")
    assignee_user_id: Optional[UUID] = None
    institution_id: Optional[UUID] = None
    priority: Optional[AssignmentPriority] = None


class AcceptAssignmentRequest(BaseModel):
    assignee_user_id: UUID
    responder_role: Literal["counsellor", "listener"] = "counsellor"


class CompleteAssignmentRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=5000)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Open an assignment")
async def create_assignment(
    request: CreateAssignmentRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    risk_level = parse_label(RiskLevel, request.risk_level, "risk_level")
    try:
        assignment = await orchestrator.workflow.create_assignment(
            student_user_id=request.student_user_id,
            reason=request.reason,
            risk_level=risk_level,
            assignee_user_id=request.assignee_user_id,
            institution_id=request.institution_id,
            priority=request.priority,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from None
    return assignment.to_dict()


@router.get("", summary="List assignments")
async def list_assignments(
    assignee_user_id: Optional[UUID] = Query(default=None),
    student_user_id: Optional[UUID] = Query(default=None),
    status_filter: Optional[AssignmentStatus] = Query(default=None, alias="status"),
    institution_id: Optional[UUID] = Query(default=None),
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> list[dict]:
    assignments = await orchestrator.workflow.list_assignments(
        assignee_user_id=assignee_user_id,
        student_user_id=student_user_id,
        status=status_filter,
        institution_id=institution_id,
    )
    return [a.to_dict() for a in assignments]


@router.get("/{assignment_id}", summary="Get an assignment")
async def get_assignment(
    assignment_id: UUID,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    assignment = await orchestrator.workflow.get_assignment(assignment_id)
    return assignment.to_dict()


@router.post("/{assignment_id}/accept", summary="Accept a pending assignment")
async def accept_assignment(
    assignment_id: UUID,
    request: AcceptAssignmentRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Exactly one responder wins; others get 409."""
    assignment = await orchestrator.workflow.accept(
        assignment_id,
        request.assignee_user_id,
        responder_role=request.responder_role,
    )
    return assignment.to_dict()


@router.post("/{assignment_id}/complete", summary="Complete an active assignment")
async def complete_assignment(
    assignment_id: UUID,
    request: CompleteAssignmentRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> dict:
    assignment = await orchestrator.workflow.complete(assignment_id, notes=request.notes)
    return assignment.to_dict()
