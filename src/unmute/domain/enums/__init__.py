"""Domain enums package."""

from unmute.domain.enums.risk_stage import (
    CATEGORY_PRIORITY,
    CrisisCategory,
    RiskLevel,
    Severity,
    Stage,
    implied_stage,
    risk_level_for_stage,
)
from unmute.domain.enums.workflow import (
    AssignmentPriority,
    AssignmentStatus,
    NotificationChannel,
    ResponseActionType,
    ResponseOutcome,
)

__all__ = [
    "CATEGORY_PRIORITY",
    "CrisisCategory",
    "RiskLevel",
    "Severity",
    "Stage",
    "implied_stage",
    "risk_level_for_stage",
    "AssignmentPriority",
    "AssignmentStatus",
    "NotificationChannel",
    "ResponseActionType",
    "ResponseOutcome",
]
