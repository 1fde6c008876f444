"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from unmute.api.v1.endpoints.assignments import router as assignments_router
from unmute.api.v1.endpoints.health import router as health_router
from unmute.api.v1.endpoints.profiles import router as profiles_router
from unmute.api.v1.endpoints.reports import router as reports_router
from unmute.api.v1.endpoints.response_logs import router as response_logs_router
from unmute.api.v1.endpoints.signal_records import router as signal_records_router
from unmute.api.v1.endpoints.signals import router as signals_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    signals_router,
    tags=["Signals"],
)

api_router.include_router(
    profiles_router,
    prefix="/profiles",
    tags=["Profiles"],
)

api_router.include_router(
    assignments_router,
    prefix="/assignments",
    tags=["Assignments"],
)

api_router.include_router(
    response_logs_router,
    prefix="/response-logs",
    tags=["Response Logs"],
)

api_router.include_router(
    signal_records_router,
    prefix="/signal-records",
    tags=["Signal Records"],
)

api_router.include_router(
    reports_router,
    prefix="/reports",
    tags=["Reports"],
)
