"""
Risk Profile Repository

Data access for student risk profiles with version-checked writes.
"""

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from unmute.domain.models.risk_profile import RiskProfile
from unmute.infrastructure.database.models.risk_profile_model import StudentRiskProfileModel
from unmute.infrastructure.database.repositories.base import BaseRepository


class RiskProfileRepository(BaseRepository[StudentRiskProfileModel]):
    """Repository for student risk profiles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(StudentRiskProfileModel, session)

    async def get_by_user_id(self, user_id: UUID) -> Optional[StudentRiskProfileModel]:
        result = await self._session.execute(
            select(StudentRiskProfileModel).where(StudentRiskProfileModel.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def insert_first_version(self, profile: RiskProfile) -> StudentRiskProfileModel:
        """
        Insert a profile at version 1.

        A concurrent first write violates the unique user_id and
        raises IntegrityError on flush.
        """
        model = StudentRiskProfileModel(
            **StudentRiskProfileModel.column_values(profile),
            created_at=profile.created_at,
            version=1,
        )
        return await self.create(model)

    async def update_if_version(self, profile: RiskProfile, expected_version: int) -> bool:
        """
        Write a profile only if its stored version is expected_version.

        Returns:
            True if the row was updated
        """
        updated = await self.update_where(
            [
                StudentRiskProfileModel.user_id == profile.user_id,
                StudentRiskProfileModel.version == expected_version,
            ],
            {
                **StudentRiskProfileModel.column_values(profile),
                "version": expected_version + 1,
            },
        )
        return updated == 1

    async def get_for_institution(
        self,
        institution_id: Optional[UUID],
    ) -> Sequence[StudentRiskProfileModel]:
        criteria = []
        if institution_id is not None:
            criteria.append(StudentRiskProfileModel.institution_id == institution_id)
        return await self.find(*criteria)

    async def get_by_risk_level(
        self,
        risk_level: str,
        institution_id: Optional[UUID],
    ) -> Sequence[StudentRiskProfileModel]:
        criteria = [StudentRiskProfileModel.risk_level == risk_level]
        if institution_id is not None:
            criteria.append(StudentRiskProfileModel.institution_id == institution_id)
        return await self.find(*criteria, order_by=StudentRiskProfileModel.updated_at.desc())
