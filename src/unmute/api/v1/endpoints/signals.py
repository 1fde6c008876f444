"""
Signal Endpoints

Stateless classification and the message ingestion hook.

SECURITY: Message text is never echoed back or logged; responses
carry the classification only.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from unmute.api.dependencies import get_orchestrator
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

router = APIRouter()


# Request/Response Models

class ClassifyRequest(BaseModel):
    """Text to classify."""

    text: str = Field(..., description="Message text; only the leading characters are scanned")


class SignalResponse(BaseModel):
    """Classification result, without the text."""

    category: str
    severity: str
    matched_terms: list[str]
    negated_terms: list[str]
    show_resources: bool
    flagged: bool
    implied_stage: str
    truncated: bool


class ClassifyResponse(BaseModel):
    """Classification with helplines when they should be shown."""

    signal: SignalResponse
    resources: Optional[dict] = None


class MessageRequest(BaseModel):
    """A student message forwarded by the message store."""

    user_id: UUID
    institution_id: Optional[UUID] = None
    text: str = Field(..., min_length=1)
    source_type: str = Field(default="message", max_length=50)
    source_id: str = Field(default="", max_length=100)


class MessageAccepted(BaseModel):
    """Acknowledgement of an ingested message."""

    accepted: bool
    flagged: bool
    category: str
    severity: str
    show_resources: bool
    resources: Optional[dict] = None


@router.post(
    "/signals/classify",
    response_model=ClassifyResponse,
    summary="Classify text without recording anything",
)
async def classify_text(
    request: ClassifyRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> ClassifyResponse:
    signal = orchestrator.pipeline.classify(request.text)
    resources = None
    if signal.show_resources:
        resources = orchestrator.resources.for_category(signal.category).to_dict()
    return ClassifyResponse(signal=SignalResponse(**signal.to_dict()), resources=resources)


@router.post(
    "/messages",
    response_model=MessageAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Ingest a student message",
)
async def ingest_message(
    request: MessageRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> MessageAccepted:
    """
    Classify a message and schedule the risk update.

    Always 202: risk updates, alerts and escalation happen in the
    background and never fail the message.
    """
    signal = orchestrator.pipeline.on_user_message(
        user_id=request.user_id,
        institution_id=request.institution_id,
        text=request.text,
        source_type=request.source_type,
        source_id=request.source_id,
    )
    resources = None
    if signal.show_resources:
        resources = orchestrator.resources.for_category(signal.category).to_dict()

    return MessageAccepted(
        accepted=True,
        flagged=signal.is_flagged,
        category=signal.category.value,
        severity=signal.severity.label,
        show_resources=signal.show_resources,
        resources=resources,
    )
