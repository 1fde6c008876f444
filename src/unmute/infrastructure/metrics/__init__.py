"""Metrics infrastructure package."""

from unmute.infrastructure.metrics.prometheus_metrics import (
    # Classification metrics
    SIGNALS_CLASSIFIED_TOTAL,
    CLASSIFICATION_DURATION,
    # Risk state metrics
    STAGE_TRANSITIONS_TOTAL,
    PROFILE_WRITE_CONFLICTS_TOTAL,
    DEFERRED_UPDATES,
    DEFERRED_UPDATES_ABANDONED_TOTAL,
    # Alert metrics
    ALERTS_TOTAL,
    ALERTS_DROPPED_TOTAL,
    ALERT_SUBSCRIBERS,
    # Workflow metrics
    ASSIGNMENT_TRANSITIONS_TOTAL,
    RESPONSE_LOGS_TOTAL,
    NOTIFICATIONS_TOTAL,
    NOTIFICATION_LATENCY,
    # API metrics
    HTTP_REQUESTS_TOTAL,
    WEBSOCKET_CONNECTIONS,
    # Helpers
    track_alert,
    track_assignment,
    track_classification,
    track_notification,
    track_stage_transition,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "SIGNALS_CLASSIFIED_TOTAL",
    "CLASSIFICATION_DURATION",
    "STAGE_TRANSITIONS_TOTAL",
    "PROFILE_WRITE_CONFLICTS_TOTAL",
    "DEFERRED_UPDATES",
    "DEFERRED_UPDATES_ABANDONED_TOTAL",
    "ALERTS_TOTAL",
    "ALERTS_DROPPED_TOTAL",
    "ALERT_SUBSCRIBERS",
    "ASSIGNMENT_TRANSITIONS_TOTAL",
    "RESPONSE_LOGS_TOTAL",
    "NOTIFICATIONS_TOTAL",
    "NOTIFICATION_LATENCY",
    "HTTP_REQUESTS_TOTAL",
    "WEBSOCKET_CONNECTIONS",
    "track_alert",
    "track_assignment",
    "track_classification",
    "track_notification",
    "track_stage_transition",
    "update_system_info",
    "metrics_router",
]
