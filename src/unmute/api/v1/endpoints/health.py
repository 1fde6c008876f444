"""
Health Check Endpoints

Provides system health and readiness endpoints for:
- Load balancer health checks
- Kubernetes probes
- Monitoring systems
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from unmute import __version__
from unmute.api.dependencies import get_orchestrator
from unmute.domain.enums.workflow import NotificationChannel
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component health."""

    ready: bool
    components: dict[str, bool]
    alert_subscribers: int
    deferred_updates: int


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check(
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> HealthResponse:
    """Returns 200 while the application is running."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=orchestrator.settings.env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Detailed readiness check including all components",
)
async def readiness_check(
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> ReadinessResponse:
    """
    Detailed readiness check.

    Ready when the pipeline is initialized and the record store
    is reachable. Notification sinks are reported but optional.
    """
    components = {
        "pipeline": orchestrator.is_initialized,
        "store": await orchestrator.health_check(),
        "email": orchestrator.dispatcher.can_dispatch(NotificationChannel.EMAIL),
        "sms": orchestrator.dispatcher.can_dispatch(NotificationChannel.SMS),
    }

    return ReadinessResponse(
        ready=components["pipeline"] and components["store"],
        components=components,
        alert_subscribers=orchestrator.bus.subscriber_count,
        deferred_updates=orchestrator.pipeline.deferred_count,
    )


@router.get(
    "/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Kubernetes liveness probe endpoint",
)
async def liveness_check(
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> HealthResponse:
    """Returns 200 if the application process is alive."""
    return HealthResponse(
        status="alive",
        version=__version__,
        environment=orchestrator.settings.env,
    )
