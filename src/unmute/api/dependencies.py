"""
API Dependencies

FastAPI dependencies resolving the process-wide orchestrator
(created by the application lifespan) and request value parsing.
"""

from enum import Enum
from typing import TypeVar

from fastapi import HTTPException, status
from starlette.requests import HTTPConnection

from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

EnumT = TypeVar("EnumT", bound=Enum)


def get_orchestrator(connection: HTTPConnection) -> CrisisOrchestrator:
    """Orchestrator of the running application (HTTP and WebSocket)."""
    orchestrator = getattr(connection.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Crisis pipeline not initialized",
        )
    return orchestrator


def parse_label(enum_class: type[EnumT], value: str, field: str) -> EnumT:
    """Parse a stage/risk-level label or raise 422."""
    try:
        return enum_class.parse(value)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid {field}: {e}",
        ) from None
