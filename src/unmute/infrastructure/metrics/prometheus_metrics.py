"""
Prometheus Metrics

Metrics for crisis pipeline observability, exposed at /metrics for
Prometheus scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.

SECURITY: Labels carry enum values only. Never label by user,
institution or message content.
"""

import time
from functools import wraps
from typing import Callable

from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from unmute import __version__
from unmute.config.logging_config import get_logger

logger = get_logger(__name__)

# =============================================================================
# CLASSIFICATION METRICS
# =============================================================================

SIGNALS_CLASSIFIED_TOTAL = Counter(
    "unmute_signals_classified_total",
    "Messages classified by category and severity",
    ["category", "severity"],
)

CLASSIFICATION_DURATION = Histogram(
    "unmute_classification_duration_seconds",
    "Time spent classifying one message",
    buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05],
)

# =============================================================================
# RISK STATE METRICS
# =============================================================================

STAGE_TRANSITIONS_TOTAL = Counter(
    "unmute_stage_transitions_total",
    "Risk stage transitions",
    ["from_stage", "to_stage", "source"],  # source: message, review
)

PROFILE_WRITE_CONFLICTS_TOTAL = Counter(
    "unmute_profile_write_conflicts_total",
    "Optimistic-concurrency conflicts writing risk profiles",
    ["outcome"],  # retried, exhausted
)

DEFERRED_UPDATES = Gauge(
    "unmute_deferred_risk_updates",
    "Risk updates waiting for the background sweep",
)

DEFERRED_UPDATES_ABANDONED_TOTAL = Counter(
    "unmute_deferred_risk_updates_abandoned_total",
    "Deferred risk updates given up on",
    ["reason"],  # backlog_full, sweeps_exhausted
)

# =============================================================================
# ALERT METRICS
# =============================================================================

ALERTS_TOTAL = Counter(
    "unmute_alerts_total",
    "Alert events by publish outcome",
    ["outcome"],  # emitted, below_threshold, deduplicated
)

ALERTS_DROPPED_TOTAL = Counter(
    "unmute_alerts_dropped_total",
    "Buffered alerts dropped for slow subscribers",
    ["reason"],  # overflow, disconnected
)

ALERT_SUBSCRIBERS = Gauge(
    "unmute_alert_subscribers",
    "Connected alert subscribers",
)

# =============================================================================
# ESCALATION WORKFLOW METRICS
# =============================================================================

ASSIGNMENT_TRANSITIONS_TOTAL = Counter(
    "unmute_assignment_transitions_total",
    "Assignment lifecycle transitions",
    ["transition"],  # created, accepted, completed, priority_raised
)

RESPONSE_LOGS_TOTAL = Counter(
    "unmute_response_logs_total",
    "Response log entries by action type",
    ["action_type"],
)

NOTIFICATIONS_TOTAL = Counter(
    "unmute_notifications_total",
    "Notification deliveries by channel and status",
    ["channel", "status"],  # status: delivered, failed
)

NOTIFICATION_LATENCY = Histogram(
    "unmute_notification_latency_seconds",
    "Notification provider latency",
    ["channel"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# =============================================================================
# API METRICS
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "unmute_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

WEBSOCKET_CONNECTIONS = Gauge(
    "unmute_websocket_connections",
    "Active alert WebSocket connections",
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "unmute_system",
    "UNMUTE crisis pipeline information",
)

SYSTEM_INFO.info({
    "version": __version__,
    "environment": "development",  # Updated at runtime
})


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_notification(channel: str) -> Callable:
    """Decorator to track notification delivery metrics."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
                NOTIFICATIONS_TOTAL.labels(channel=channel, status="delivered").inc()
                return result
            except Exception:
                NOTIFICATIONS_TOTAL.labels(channel=channel, status="failed").inc()
                raise
            finally:
                NOTIFICATION_LATENCY.labels(channel=channel).observe(time.time() - start_time)
        return wrapper
    return decorator


def track_classification(category: str, severity: str) -> None:
    """Record a classified message."""
    SIGNALS_CLASSIFIED_TOTAL.labels(category=category, severity=severity).inc()


def track_stage_transition(from_stage: str, to_stage: str, source: str) -> None:
    """Record a stage change."""
    STAGE_TRANSITIONS_TOTAL.labels(from_stage=from_stage, to_stage=to_stage, source=source).inc()


def track_alert(outcome: str) -> None:
    ALERTS_TOTAL.labels(outcome=outcome).inc()


def track_assignment(transition: str) -> None:
    ASSIGNMENT_TRANSITIONS_TOTAL.labels(transition=transition).inc()


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str = __version__) -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
