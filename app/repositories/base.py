"""
Base repository.

Generic CRUD operations for all repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic CRUD operations.

    Provides async database operations for any SQLAlchemy model.
    Repositories only flush; committing is the caller's decision.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class StakeRepository(BaseRepository[Stake]):
            def __init__(self, session: AsyncSession):
                super().__init__(Stake, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def get_by_id_for_update(self, id: int) -> ModelType | None:
        """
        Get entity by ID with a row lock (SELECT ... FOR UPDATE).

        Args:
            id: Entity ID

        Returns:
            Locked entity or None if not found
        """
        stmt = select(self.model).where(self.model.id == id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(
        self, id: int, for_update: bool = False, **data: Any
    ) -> ModelType | None:
        """
        Update entity by ID.

        Args:
            id: Entity ID
            for_update: Lock the row before updating
            **data: Updated data

        Returns:
            Updated entity or None if not found
        """
        if for_update:
            entity = await self.get_by_id_for_update(id)
        else:
            entity = await self.get_by_id(id)

        if not entity:
            return None

        for key, value in data.items():
            setattr(entity, key, value)

        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete_by(self, **filters: Any) -> int:
        """
        Delete all entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Number of deleted rows
        """
        stmt = delete(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)

        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """
        Check if entity exists.

        Args:
            **filters: Column filters

        Returns:
            True if exists, False otherwise
        """
        count = await self.count(**filters)
        return count > 0
