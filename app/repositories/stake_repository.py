"""
Stake repository.

Data access layer for Stake model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import StakeStatus
from app.models.stake import Stake
from app.repositories.base import BaseRepository


class StakeRepository(BaseRepository[Stake]):
    """Stake repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stake repository."""
        super().__init__(Stake, session)

    async def get_user_stakes(
        self,
        user_id: int,
        pack_type: str | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Stake]:
        """
        Get stakes of a user, newest first.

        Args:
            user_id: User ID
            pack_type: Optional pack filter
            status: Optional status filter
            limit: Max rows
            offset: Rows to skip

        Returns:
            List of stakes
        """
        stmt = select(Stake).where(Stake.user_id == user_id)
        if pack_type:
            stmt = stmt.where(Stake.pack_type == pack_type)
        if status:
            stmt = stmt.where(Stake.status == status)
        stmt = stmt.order_by(Stake.created_at.desc(), Stake.id.desc())
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_stakes(self) -> list[Stake]:
        """All active stakes in creation order."""
        stmt = (
            select(Stake)
            .where(Stake.status == StakeStatus.ACTIVE.value)
            .order_by(Stake.created_at, Stake.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_pack_types(self, user_id: int) -> list[str]:
        """Distinct pack types of a user's active stakes."""
        stmt = (
            select(Stake.pack_type)
            .where(Stake.user_id == user_id)
            .where(Stake.status == StakeStatus.ACTIVE.value)
            .distinct()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_active_amount(self, user_id: int) -> Decimal:
        """
        Total principal in a user's active stakes.

        Args:
            user_id: User ID

        Returns:
            Sum of active stake amounts
        """
        stmt = (
            select(func.coalesce(func.sum(Stake.amount), 0))
            .where(Stake.user_id == user_id)
            .where(Stake.status == StakeStatus.ACTIVE.value)
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def sum_amount_for_users(self, user_ids: list[int]) -> Decimal:
        """
        Total principal of every stake (any status) held by the users.

        Args:
            user_ids: User IDs

        Returns:
            Sum of stake amounts
        """
        if not user_ids:
            return Decimal("0")
        stmt = select(func.coalesce(func.sum(Stake.amount), 0)).where(
            Stake.user_id.in_(set(user_ids))
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def sum_active_shares(self) -> int:
        """Shares across all active stakes on the platform."""
        stmt = select(func.coalesce(func.sum(Stake.shares), 0)).where(
            Stake.status == StakeStatus.ACTIVE.value
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def has_active_stake(self, user_id: int) -> bool:
        """Check if a user holds at least one active stake."""
        stmt = (
            select(Stake.id)
            .where(Stake.user_id == user_id)
            .where(Stake.status == StakeStatus.ACTIVE.value)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def users_with_active_stake(self, user_ids: list[int]) -> set[int]:
        """Subset of user_ids holding an active stake."""
        if not user_ids:
            return set()
        stmt = (
            select(Stake.user_id)
            .where(Stake.user_id.in_(set(user_ids)))
            .where(Stake.status == StakeStatus.ACTIVE.value)
            .distinct()
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())
