"""
Base Repository Pattern

Generic async data access shared by all repositories. Repositories
work on ORM models inside a caller-owned session; converting to and
from domain objects is left to the stores.
"""

from typing import Any, Generic, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from unmute.infrastructure.database.connection import Base

# Type variable for model types
ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Generic base repository with async operations.

    Usage:
        class AssignmentRepository(BaseRepository[CounsellorAssignmentModel]):
            pass

        repo = AssignmentRepository(session)
        assignment = await repo.get_by_id(assignment_id)
    """

    def __init__(self, model: Type[ModelT], session: AsyncSession) -> None:
        """
        Initialize repository with model class and session.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self._model = model
        self._session = session

    async def get_by_id(self, id: UUID) -> Optional[ModelT]:
        """
        Get entity by primary key ID.

        Returns:
            Entity if found, None otherwise
        """
        result = await self._session.execute(
            select(self._model).where(self._model.id == id)
        )
        return result.scalar_one_or_none()

    async def find(
        self,
        *criteria: ColumnElement[bool],
        order_by: Optional[Any] = None,
        limit: Optional[int] = None,
    ) -> Sequence[ModelT]:
        """
        Get entities matching all criteria.

        Args:
            criteria: SQLAlchemy boolean expressions
            order_by: Optional ordering expression
            limit: Maximum records to return
        """
        query = select(self._model).where(*criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        if limit is not None:
            query = query.limit(limit)

        result = await self._session.execute(query)
        return result.scalars().all()

    async def create(self, entity: ModelT) -> ModelT:
        """
        Create a new entity.

        Flushes so constraint violations surface here.
        """
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def update_where(
        self,
        criteria: Sequence[ColumnElement[bool]],
        values: dict[str, Any],
    ) -> int:
        """
        Conditional update in a single statement.

        Returns:
            Number of rows updated
        """
        result = await self._session.execute(
            update(self._model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        """Count entities matching all criteria."""
        result = await self._session.execute(
            select(func.count()).select_from(self._model).where(*criteria)
        )
        return result.scalar_one()
