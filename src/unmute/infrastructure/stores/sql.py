"""
SQL Stores

SQLAlchemy-backed implementations of the store interfaces. Each
call runs in its own short transaction from DatabaseManager.

Atomicity comes from the database:
- profile writes are UPDATE ... WHERE version = expected
- open-assignment uniqueness is a partial unique index
- status changes are UPDATE ... WHERE status = expected
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import RiskLevel
from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.domain.exceptions import (
    ConcurrentUpdateConflict,
    DuplicateActiveAssignment,
    SignalRecordNotFound,
)
from unmute.domain.models.assignment import Assignment
from unmute.domain.models.crisis_signal import CrisisSignalRecord
from unmute.domain.models.response_log import ResponseLogEntry
from unmute.domain.models.risk_profile import RiskProfile
from unmute.infrastructure.database.connection import DatabaseManager
from unmute.infrastructure.database.models.assignment_model import CounsellorAssignmentModel
from unmute.infrastructure.database.models.response_log_model import CrisisResponseLogModel
from unmute.infrastructure.database.models.signal_record_model import CrisisSignalRecordModel
from unmute.infrastructure.database.repositories import (
    AssignmentRepository,
    ResponseLogRepository,
    RiskProfileRepository,
    SignalRecordRepository,
)
from unmute.infrastructure.stores.base import (
    AssignmentStore,
    ResponseLogStore,
    RiskProfileStore,
    SignalRecordStore,
)

logger = get_logger(__name__)


def _column_values(changes: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in changes.items()}


class SqlRiskProfileStore(RiskProfileStore):
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get(self, user_id: UUID) -> Optional[RiskProfile]:
        async with self._db.session() as session:
            model = await RiskProfileRepository(session).get_by_user_id(user_id)
            return model.to_domain() if model else None

    async def compare_and_set(
        self,
        profile: RiskProfile,
        expected_version: int,
    ) -> RiskProfile:
        try:
            async with self._db.session() as session:
                repo = RiskProfileRepository(session)
                if expected_version == 0:
                    model = await repo.insert_first_version(profile)
                else:
                    if not await repo.update_if_version(profile, expected_version):
                        raise ConcurrentUpdateConflict(profile.user_id, expected_version)
                    model = await repo.get_by_user_id(profile.user_id)
                return model.to_domain()
        except IntegrityError as e:
            # Another writer created the first version
            raise ConcurrentUpdateConflict(profile.user_id, expected_version) from e

    async def snapshot(self, institution_id: Optional[UUID] = None) -> list[RiskProfile]:
        async with self._db.session() as session:
            models = await RiskProfileRepository(session).get_for_institution(institution_id)
            return [m.to_domain() for m in models]

    async def list_by_risk_level(
        self,
        risk_level: RiskLevel,
        institution_id: Optional[UUID] = None,
    ) -> list[RiskProfile]:
        async with self._db.session() as session:
            models = await RiskProfileRepository(session).get_by_risk_level(
                risk_level.label, institution_id
            )
            return [m.to_domain() for m in models]


class SqlAssignmentStore(AssignmentStore):
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def insert(self, assignment: Assignment) -> Assignment:
        try:
            async with self._db.session() as session:
                await AssignmentRepository(session).create(
                    CounsellorAssignmentModel.from_domain(assignment)
                )
        except IntegrityError as e:
            existing = await self.get_open_for_student(assignment.student_user_id)
            raise DuplicateActiveAssignment(
                assignment.student_user_id,
                existing.id if existing else None,
            ) from e
        return assignment

    async def get(self, assignment_id: UUID) -> Optional[Assignment]:
        async with self._db.session() as session:
            model = await AssignmentRepository(session).get_by_id(assignment_id)
            return model.to_domain() if model else None

    async def get_open_for_student(self, student_user_id: UUID) -> Optional[Assignment]:
        async with self._db.session() as session:
            model = await AssignmentRepository(session).get_open_for_student(student_user_id)
            return model.to_domain() if model else None

    async def transition(
        self,
        assignment_id: UUID,
        expected_status: AssignmentStatus,
        changes: dict[str, Any],
    ) -> Optional[Assignment]:
        async with self._db.session() as session:
            repo = AssignmentRepository(session)
            if not await repo.update_if_status(
                assignment_id, expected_status, _column_values(changes)
            ):
                return None
            model = await repo.get_by_id(assignment_id)
            return model.to_domain() if model else None

    async def raise_priority(
        self,
        assignment_id: UUID,
        priority: AssignmentPriority,
    ) -> Optional[Assignment]:
        async with self._db.session() as session:
            repo = AssignmentRepository(session)
            await repo.raise_priority(assignment_id, priority)
            model = await repo.get_by_id(assignment_id)
            if model is None:
                return None
            assignment = model.to_domain()
            return assignment if assignment.is_open else None

    async def query(
        self,
        *,
        assignee_user_id: Optional[UUID] = None,
        student_user_id: Optional[UUID] = None,
        status: Optional[AssignmentStatus] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[Assignment]:
        async with self._db.session() as session:
            models = await AssignmentRepository(session).search(
                assignee_user_id=assignee_user_id,
                student_user_id=student_user_id,
                status=status,
                institution_id=institution_id,
            )
            return [m.to_domain() for m in models]


class SqlResponseLogStore(ResponseLogStore):
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def append(self, entry: ResponseLogEntry) -> ResponseLogEntry:
        async with self._db.session() as session:
            await ResponseLogRepository(session).create(CrisisResponseLogModel.from_domain(entry))
        return entry

    async def query(
        self,
        *,
        student_user_id: Optional[UUID] = None,
        assignment_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[ResponseLogEntry]:
        async with self._db.session() as session:
            models = await ResponseLogRepository(session).search(
                student_user_id=student_user_id,
                assignment_id=assignment_id,
                institution_id=institution_id,
            )
            return [m.to_domain() for m in models]


class SqlSignalRecordStore(SignalRecordStore):
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def append(self, record: CrisisSignalRecord) -> CrisisSignalRecord:
        async with self._db.session() as session:
            await SignalRecordRepository(session).create(CrisisSignalRecordModel.from_domain(record))
        return record

    async def list_unreviewed(
        self,
        institution_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[CrisisSignalRecord]:
        async with self._db.session() as session:
            models = await SignalRecordRepository(session).get_unreviewed(institution_id, limit)
            return [m.to_domain() for m in models]

    async def mark_reviewed(
        self,
        record_id: UUID,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> CrisisSignalRecord:
        async with self._db.session() as session:
            repo = SignalRecordRepository(session)
            if not await repo.mark_reviewed(record_id, reviewer_id, reviewed_at):
                raise SignalRecordNotFound(record_id)
            model = await repo.get_by_id(record_id)
            return model.to_domain()
