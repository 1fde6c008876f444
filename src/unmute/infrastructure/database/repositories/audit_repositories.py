"""
Audit Repositories

Data access for the append-only response log and crisis signal
records.
"""

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from unmute.infrastructure.database.models.response_log_model import CrisisResponseLogModel
from unmute.infrastructure.database.models.signal_record_model import CrisisSignalRecordModel
from unmute.infrastructure.database.repositories.base import BaseRepository


class ResponseLogRepository(BaseRepository[CrisisResponseLogModel]):
    """Repository for crisis response logs."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CrisisResponseLogModel, session)

    async def search(
        self,
        *,
        student_user_id: Optional[UUID] = None,
        assignment_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
    ) -> Sequence[CrisisResponseLogModel]:
        criteria = []
        if student_user_id is not None:
            criteria.append(CrisisResponseLogModel.student_user_id == student_user_id)
        if assignment_id is not None:
            criteria.append(CrisisResponseLogModel.assignment_id == assignment_id)
        if institution_id is not None:
            criteria.append(CrisisResponseLogModel.institution_id == institution_id)
        return await self.find(*criteria, order_by=CrisisResponseLogModel.created_at.asc())


class SignalRecordRepository(BaseRepository[CrisisSignalRecordModel]):
    """Repository for crisis signal records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CrisisSignalRecordModel, session)

    async def get_unreviewed(
        self,
        institution_id: Optional[UUID],
        limit: int,
    ) -> Sequence[CrisisSignalRecordModel]:
        criteria = [CrisisSignalRecordModel.is_reviewed.is_(False)]
        if institution_id is not None:
            criteria.append(CrisisSignalRecordModel.institution_id == institution_id)
        return await self.find(
            *criteria,
            order_by=CrisisSignalRecordModel.created_at.desc(),
            limit=limit,
        )

    async def mark_reviewed(
        self,
        record_id: UUID,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> bool:
        updated = await self.update_where(
            [CrisisSignalRecordModel.id == record_id],
            {"is_reviewed": True, "reviewed_by": reviewer_id, "reviewed_at": reviewed_at},
        )
        return updated == 1
