"""
User rank repository.

Data access layer for UserRank model.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.rank_ladder import UNRANKED
from app.models.user_rank import UserRank
from app.repositories.base import BaseRepository


class UserRankRepository(BaseRepository[UserRank]):
    """User rank repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user rank repository."""
        super().__init__(UserRank, session)

    async def get_by_user(self, user_id: int) -> UserRank | None:
        """Rank row of a user."""
        return await self.get_by(user_id=user_id)

    async def ensure(self, user_id: int) -> UserRank:
        """
        Get or create the rank row, defaulting to unranked.

        Args:
            user_id: User ID

        Returns:
            UserRank row
        """
        row = await self.get_by_user(user_id)
        if row is not None:
            return row
        return await self.create(
            user_id=user_id, rank=UNRANKED, override_percent=Decimal("0")
        )

    async def get_percent(self, user_id: int) -> Decimal:
        """Override percent of a user (0 when no row)."""
        stmt = select(UserRank.override_percent).where(
            UserRank.user_id == user_id
        )
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        return Decimal(str(value)) if value is not None else Decimal("0")

    async def get_percent_map(self, user_ids: list[int]) -> dict[int, Decimal]:
        """
        Override percents for many users in one query.

        Args:
            user_ids: User IDs

        Returns:
            Dict of user_id -> percent; missing users are absent
        """
        if not user_ids:
            return {}
        stmt = select(UserRank.user_id, UserRank.override_percent).where(
            UserRank.user_id.in_(set(user_ids))
        )
        result = await self.session.execute(stmt)
        return {
            user_id: Decimal(str(percent)) for user_id, percent in result.all()
        }
