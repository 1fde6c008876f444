"""
UNMUTE Domain Layer

Core crisis-pipeline entities, enums and errors.
These models represent the domain logic independent of infrastructure.
"""

from unmute.domain.enums import (
    AssignmentPriority,
    AssignmentStatus,
    CrisisCategory,
    NotificationChannel,
    ResponseActionType,
    ResponseOutcome,
    RiskLevel,
    Severity,
    Stage,
)
from unmute.domain.models import (
    AlertEvent,
    Assignment,
    CrisisSignal,
    CrisisSignalRecord,
    ResponseLogEntry,
    ResponseLogRequest,
    RiskProfile,
)

__all__ = [
    # Enums
    "AssignmentPriority",
    "AssignmentStatus",
    "CrisisCategory",
    "NotificationChannel",
    "ResponseActionType",
    "ResponseOutcome",
    "RiskLevel",
    "Severity",
    "Stage",
    # Models
    "AlertEvent",
    "Assignment",
    "CrisisSignal",
    "CrisisSignalRecord",
    "ResponseLogEntry",
    "ResponseLogRequest",
    "RiskProfile",
]
