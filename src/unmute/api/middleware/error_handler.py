"""
Error Handler Middleware

Provides consistent error handling and response formatting.
Logs errors with correlation IDs for debugging.

Domain errors map to HTTP statuses through exception handlers:
    not found                       -> 404
    workflow conflicts              -> 409
    invalid response log            -> 422
    concurrent profile update       -> 503 (transient, retry)
Anything else is caught by ErrorHandlerMiddleware as a sanitized 500.
"""

import traceback
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from unmute.config.logging_config import bind_correlation_id, clear_context, get_logger
from unmute.domain.exceptions import (
    AssignmentNotFound,
    ConcurrentUpdateConflict,
    InvalidResponseLog,
    ProfileNotFound,
    SignalRecordNotFound,
    WorkflowError,
)
from unmute.infrastructure.metrics import HTTP_REQUESTS_TOTAL
from unmute.infrastructure.monitoring import capture_exception_with_context

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Provides:
    - Correlation ID tracking for all requests
    - Consistent error response format
    - Error logging with context
    - Sensitive data protection in errors
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request with error handling."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=_endpoint_label(request),
                status_code=response.status_code,
            ).inc()
            return response

        except Exception as e:
            logger.error(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
                traceback=traceback.format_exc(),
            )
            capture_exception_with_context(
                e,
                correlation_id=correlation_id,
                extra={"path": request.url.path, "method": request.method},
            )

            # Sanitized: no exception text leaves the service
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "correlation_id": correlation_id,
                    "message": "An unexpected error occurred. Please try again.",
                },
                headers={CORRELATION_HEADER: correlation_id},
            )

        finally:
            clear_context()


def _endpoint_label(request: Request) -> str:
    # Route template keeps label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


def _error_response(
    request: Request,
    status_code: int,
    exc: Exception,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
            "correlation_id": getattr(request.state, "correlation_id", None),
        },
        headers=headers,
    )


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(request, status.HTTP_404_NOT_FOUND, exc)


async def _conflict(request: Request, exc: Exception) -> JSONResponse:
    logger.info("Workflow conflict", error_type=type(exc).__name__, path=request.url.path)
    return _error_response(request, status.HTTP_409_CONFLICT, exc)


async def _unprocessable(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, exc)


async def _transient(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("Concurrent update conflict surfaced", path=request.url.path)
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        exc,
        headers={"Retry-After": "1"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions to HTTP responses."""
    for exc_class in (ProfileNotFound, AssignmentNotFound, SignalRecordNotFound):
        app.add_exception_handler(exc_class, _not_found)
    app.add_exception_handler(WorkflowError, _conflict)
    app.add_exception_handler(InvalidResponseLog, _unprocessable)
    app.add_exception_handler(ConcurrentUpdateConflict, _transient)
