"""
Database ORM models package.
"""

from unmute.infrastructure.database.models.assignment_model import CounsellorAssignmentModel
from unmute.infrastructure.database.models.response_log_model import CrisisResponseLogModel
from unmute.infrastructure.database.models.risk_profile_model import StudentRiskProfileModel
from unmute.infrastructure.database.models.signal_record_model import CrisisSignalRecordModel

__all__ = [
    "StudentRiskProfileModel",
    "CounsellorAssignmentModel",
    "CrisisResponseLogModel",
    "CrisisSignalRecordModel",
]
