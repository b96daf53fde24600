"""
Stake reward repository.

Data access layer for daily stake reward accruals.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import RewardStatus
from app.models.stake import Stake
from app.models.stake_reward import StakeReward
from app.repositories.base import BaseRepository


class StakeRewardRepository(BaseRepository[StakeReward]):
    """Stake reward repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stake reward repository."""
        super().__init__(StakeReward, session)

    async def get_for_date(
        self, stake_id: int, reward_date: date
    ) -> StakeReward | None:
        """
        Get the accrual of a stake for a date.

        Args:
            stake_id: Stake ID
            reward_date: Calendar date

        Returns:
            Reward or None
        """
        return await self.get_by(stake_id=stake_id, reward_date=reward_date)

    async def get_pending(
        self, stake_id: int, reward_ids: list[int] | None = None
    ) -> list[StakeReward]:
        """
        Pending rewards of a stake, oldest first.

        Args:
            stake_id: Stake ID
            reward_ids: Optional explicit reward filter

        Returns:
            Pending rewards
        """
        stmt = (
            select(StakeReward)
            .where(StakeReward.stake_id == stake_id)
            .where(StakeReward.status == RewardStatus.PENDING.value)
        )
        if reward_ids:
            stmt = stmt.where(StakeReward.id.in_(reward_ids))
        stmt = stmt.order_by(StakeReward.reward_date, StakeReward.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_stake_ids_with_pending(self) -> list[int]:
        """Stakes that still have pending rewards."""
        stmt = (
            select(StakeReward.stake_id)
            .where(StakeReward.status == RewardStatus.PENDING.value)
            .distinct()
            .order_by(StakeReward.stake_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def expire_before(self, run_date: date) -> int:
        """
        Expire every pending reward dated before run_date.

        Args:
            run_date: Current batch date

        Returns:
            Number of expired rewards
        """
        stmt = (
            update(StakeReward)
            .where(StakeReward.status == RewardStatus.PENDING.value)
            .where(StakeReward.reward_date < run_date)
            .values(status=RewardStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_stake_rewards(
        self,
        stake_id: int,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 30,
    ) -> list[StakeReward]:
        """
        Reward history of a stake, newest first.

        Args:
            stake_id: Stake ID
            status: Optional status filter
            start_date: Inclusive lower bound
            end_date: Inclusive upper bound
            limit: Max rows

        Returns:
            Rewards
        """
        stmt = select(StakeReward).where(StakeReward.stake_id == stake_id)
        if status:
            stmt = stmt.where(StakeReward.status == status)
        if start_date:
            stmt = stmt.where(StakeReward.reward_date >= start_date)
        if end_date:
            stmt = stmt.where(StakeReward.reward_date <= end_date)
        stmt = stmt.order_by(StakeReward.reward_date.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pending_totals_by_pack(
        self, user_id: int
    ) -> list[tuple[str, Decimal, Decimal, Decimal, int]]:
        """
        Pending reward totals of a user grouped by pack.

        Returns:
            Rows of (pack_type, core, harvest, total, count)
        """
        stmt = (
            select(
                Stake.pack_type,
                func.coalesce(func.sum(StakeReward.core_reward), 0),
                func.coalesce(func.sum(StakeReward.harvest_reward), 0),
                func.coalesce(func.sum(StakeReward.total_reward), 0),
                func.count(StakeReward.id),
            )
            .join(Stake, Stake.id == StakeReward.stake_id)
            .where(Stake.user_id == user_id)
            .where(StakeReward.status == RewardStatus.PENDING.value)
            .group_by(Stake.pack_type)
        )
        result = await self.session.execute(stmt)
        return [
            (
                pack_type,
                Decimal(str(core)),
                Decimal(str(harvest)),
                Decimal(str(total)),
                int(count),
            )
            for pack_type, core, harvest, total, count in result.all()
        ]

    async def get_pending_core_by_user(
        self, user_ids: list[int]
    ) -> dict[int, tuple[Decimal, int]]:
        """
        Pending core totals per staker.

        Args:
            user_ids: Stakers to include

        Returns:
            Dict of user_id -> (core total, pending count)
        """
        if not user_ids:
            return {}
        stmt = (
            select(
                Stake.user_id,
                func.coalesce(func.sum(StakeReward.core_reward), 0),
                func.count(StakeReward.id),
            )
            .join(Stake, Stake.id == StakeReward.stake_id)
            .where(Stake.user_id.in_(set(user_ids)))
            .where(StakeReward.status == RewardStatus.PENDING.value)
            .group_by(Stake.user_id)
        )
        result = await self.session.execute(stmt)
        return {
            user_id: (Decimal(str(core)), int(count))
            for user_id, core, count in result.all()
        }

    async def delete_for_date(self, reward_date: date) -> int:
        """Delete every accrual of a date (operator reset only)."""
        return await self.delete_by(reward_date=reward_date)
