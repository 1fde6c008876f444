"""
Assignment Repository

Data access for counsellor assignments. Status changes are
conditional single-statement updates.
"""

from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.infrastructure.database.models.assignment_model import CounsellorAssignmentModel
from unmute.infrastructure.database.repositories.base import BaseRepository


OPEN_STATUSES = (AssignmentStatus.PENDING.value, AssignmentStatus.ACTIVE.value)


class AssignmentRepository(BaseRepository[CounsellorAssignmentModel]):
    """Repository for counsellor assignments."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CounsellorAssignmentModel, session)

    async def get_open_for_student(
        self,
        student_user_id: UUID,
    ) -> Optional[CounsellorAssignmentModel]:
        results = await self.find(
            CounsellorAssignmentModel.student_user_id == student_user_id,
            CounsellorAssignmentModel.status.in_(OPEN_STATUSES),
            limit=1,
        )
        return results[0] if results else None

    async def update_if_status(
        self,
        assignment_id: UUID,
        expected_status: AssignmentStatus,
        values: dict[str, Any],
    ) -> bool:
        updated = await self.update_where(
            [
                CounsellorAssignmentModel.id == assignment_id,
                CounsellorAssignmentModel.status == expected_status.value,
            ],
            values,
        )
        return updated == 1

    async def raise_priority(
        self,
        assignment_id: UUID,
        priority: AssignmentPriority,
    ) -> bool:
        """Raise priority of an open assignment if currently lower."""
        lower = [p.value for p in AssignmentPriority if p.rank < priority.rank]
        if not lower:
            return False
        updated = await self.update_where(
            [
                CounsellorAssignmentModel.id == assignment_id,
                CounsellorAssignmentModel.status.in_(OPEN_STATUSES),
                CounsellorAssignmentModel.priority.in_(lower),
            ],
            {"priority": priority.value},
        )
        return updated == 1

    async def search(
        self,
        *,
        assignee_user_id: Optional[UUID] = None,
        student_user_id: Optional[UUID] = None,
        status: Optional[AssignmentStatus] = None,
        institution_id: Optional[UUID] = None,
    ) -> Sequence[CounsellorAssignmentModel]:
        criteria = []
        if assignee_user_id is not None:
            criteria.append(CounsellorAssignmentModel.assignee_user_id == assignee_user_id)
        if student_user_id is not None:
            criteria.append(CounsellorAssignmentModel.student_user_id == student_user_id)
        if status is not None:
            criteria.append(CounsellorAssignmentModel.status == status.value)
        if institution_id is not None:
            criteria.append(CounsellorAssignmentModel.institution_id == institution_id)
        return await self.find(*criteria, order_by=CounsellorAssignmentModel.assigned_at.desc())
