"""
Repository pattern implementations package.
"""

from unmute.infrastructure.database.repositories.assignment_repository import AssignmentRepository
from unmute.infrastructure.database.repositories.audit_repositories import (
    ResponseLogRepository,
    SignalRecordRepository,
)
from unmute.infrastructure.database.repositories.base import BaseRepository
from unmute.infrastructure.database.repositories.risk_profile_repository import (
    RiskProfileRepository,
)

__all__ = [
    "BaseRepository",
    "RiskProfileRepository",
    "AssignmentRepository",
    "ResponseLogRepository",
    "SignalRecordRepository",
]
