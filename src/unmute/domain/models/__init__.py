"""Domain models package."""

from unmute.domain.models.alert_event import AlertEvent
from unmute.domain.models.assignment import Assignment
from unmute.domain.models.crisis_signal import CrisisSignal, CrisisSignalRecord
from unmute.domain.models.response_log import ResponseLogEntry, ResponseLogRequest
from unmute.domain.models.risk_profile import RiskProfile, utc_now

__all__ = [
    # Risk state
    "RiskProfile",
    "utc_now",
    # Classification
    "CrisisSignal",
    "CrisisSignalRecord",
    # Alerts
    "AlertEvent",
    # Workflow
    "Assignment",
    "ResponseLogEntry",
    "ResponseLogRequest",
]
