"""
Escalation Workflow Enumerations

Assignment lifecycle, priorities and response-log vocabularies
used by staff-facing operations.
"""

from enum import StrEnum

from unmute.domain.enums.risk_stage import RiskLevel


class AssignmentStatus(StrEnum):
    """
    Assignment lifecycle state.

    pending -> active -> completed. No other transition exists.
    """

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"

    @property
    def is_open(self) -> bool:
        return self in (AssignmentStatus.PENDING, AssignmentStatus.ACTIVE)


class AssignmentPriority(StrEnum):
    """Responder priority for an assignment."""

    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def from_risk_level(cls, level: RiskLevel) -> "AssignmentPriority":
        """
        Advisory priority for a risk level.

        critical -> urgent, high -> high, otherwise normal.
        """
        if level >= RiskLevel.CRITICAL:
            return cls.URGENT
        if level >= RiskLevel.HIGH:
            return cls.HIGH
        return cls.NORMAL


_PRIORITY_RANK: dict[AssignmentPriority, int] = {
    AssignmentPriority.NORMAL: 0,
    AssignmentPriority.HIGH: 1,
    AssignmentPriority.URGENT: 2,
}


class ResponseActionType(StrEnum):
    """Action a staff member took in response to a crisis."""

    CONTACTED_STUDENT = "contacted-student"
    CONTACTED_GUARDIAN = "contacted-guardian"
    ASSIGNED_COUNSELLOR = "assigned-counsellor"
    EMERGENCY_SERVICES = "emergency-services"
    FOLLOW_UP = "follow-up"
    RESOLVED = "resolved"
    ESCALATED = "escalated"


class ResponseOutcome(StrEnum):
    """Outcome recorded for a response action."""

    SUCCESSFUL = "successful"
    NO_RESPONSE = "no-response"
    REQUIRES_FOLLOW_UP = "requires-follow-up"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


class NotificationChannel(StrEnum):
    """Outbound notification channel."""

    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"

    def includes(self, channel: "NotificationChannel") -> bool:
        return self == NotificationChannel.BOTH or self == channel
