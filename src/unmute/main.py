"""
UNMUTE FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (crisis pipeline startup/shutdown)
- CORS configuration
- Error handling middleware and domain exception handlers
- Router registration (REST v1, alert WebSocket, metrics)

This is the production entry point for the UNMUTE crisis backend.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from unmute import __version__
from unmute.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from unmute.api.routes.alert_stream import router as alert_stream_router
from unmute.api.v1.router import api_router
from unmute.config import Settings, get_settings
from unmute.config.logging_config import configure_logging, get_logger
from unmute.infrastructure.metrics import metrics_router, update_system_info
from unmute.infrastructure.monitoring import init_sentry
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

logger = get_logger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Application settings, defaults to get_settings()

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Start the crisis pipeline and shut it down on exit."""
        logger.info(
            "Starting UNMUTE crisis pipeline",
            env=settings.env,
            version=__version__,
            store_backend=settings.store_backend,
        )

        init_sentry(
            dsn=settings.sentry.dsn,
            environment=settings.env,
            traces_sample_rate=settings.sentry.traces_sample_rate,
        )
        update_system_info(settings.env)

        orchestrator = CrisisOrchestrator(settings)
        try:
            # Production schemas are managed by Alembic migrations
            await orchestrator.initialize(create_schema=not settings.is_production())
            app.state.orchestrator = orchestrator
            yield
        finally:
            logger.info("Shutting down UNMUTE crisis pipeline")
            app.state.orchestrator = None
            await orchestrator.shutdown()
            logger.info("UNMUTE shutdown complete")

    app = FastAPI(
        title="UNMUTE Crisis Pipeline API",
        description="Crisis signal detection and escalation backend",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router, prefix=f"/api/{settings.api_version}")
    app.include_router(alert_stream_router)
    app.include_router(metrics_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "UNMUTE Crisis Pipeline API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "unmute.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.env == "development",
        log_level=_settings.log_level.lower(),
    )
