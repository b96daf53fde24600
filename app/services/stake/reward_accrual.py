"""
Reward accrual manager.

Creates the daily pending reward of each active stake: a fixed core
component plus a share of the harvest pool. Accrual is idempotent per
(stake, date) and never checks the lifetime cap; crediting does.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import HarvestSalesSource, RewardStatus, StakeStatus
from app.models.stake import Stake
from app.models.stake_reward import StakeReward
from app.repositories.stake_repository import StakeRepository
from app.repositories.stake_reward_repository import StakeRewardRepository
from app.repositories.transaction_repository import TransactionRepository
from app.services.base_service import BaseService
from app.services.stake.stake_calculator import (
    calculate_core_reward,
    calculate_harvest_reward,
)
from app.utils.datetime_utils import utc_now, utc_today


@dataclass
class HarvestSnapshot:
    """Inputs of the harvest formula for one date."""

    sales: Decimal
    total_active_shares: int


class RewardAccrualManager(BaseService):
    """Daily core and harvest accrual."""

    def __init__(
        self,
        session: AsyncSession,
        sales_source: HarvestSalesSource | None = None,
    ) -> None:
        """
        Initialize reward accrual manager.

        Args:
            session: Database session
            sales_source: Sales measure for the harvest pool
                (default from settings)
        """
        super().__init__(session)
        self.sales_source = sales_source or settings.harvest_sales_source
        self.stake_repo = StakeRepository(session)
        self.reward_repo = StakeRewardRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self._snapshots: dict[date, HarvestSnapshot] = {}

    async def harvest_snapshot(self, reward_date: date) -> HarvestSnapshot:
        """
        Sales and active shares for a date, read once per manager.

        Args:
            reward_date: UTC calendar date

        Returns:
            HarvestSnapshot
        """
        snapshot = self._snapshots.get(reward_date)
        if snapshot is None:
            snapshot = HarvestSnapshot(
                sales=await self.transaction_repo.sum_sales_for_date(
                    reward_date, HarvestSalesSource(self.sales_source)
                ),
                total_active_shares=await self.stake_repo.sum_active_shares(),
            )
            self._snapshots[reward_date] = snapshot
        return snapshot

    async def harvest_for_date(self, stake: Stake, reward_date: date) -> Decimal:
        """Harvest reward of a stake for a date."""
        snapshot = await self.harvest_snapshot(reward_date)
        return calculate_harvest_reward(
            snapshot.sales,
            snapshot.total_active_shares,
            stake.shares,
            Decimal(str(stake.amount)),
        )

    async def calculate_daily_reward(
        self, stake: Stake, reward_date: date | None = None
    ) -> StakeReward | None:
        """
        Accrue the pending reward of a stake for a date.

        Args:
            stake: Stake to accrue
            reward_date: UTC calendar date (default today)

        Returns:
            Existing or new reward; None for a stake that is not active
        """
        if stake.status != StakeStatus.ACTIVE.value:
            return None

        reward_date = reward_date or utc_today()
        existing = await self.reward_repo.get_for_date(stake.id, reward_date)
        if existing is not None:
            return existing

        core = calculate_core_reward(
            Decimal(str(stake.amount)), Decimal(str(stake.daily_roi_rate))
        )
        harvest = await self.harvest_for_date(stake, reward_date)

        reward = await self.reward_repo.create(
            stake_id=stake.id,
            reward_date=reward_date,
            core_reward=core,
            harvest_reward=harvest,
            total_reward=core + harvest,
            status=RewardStatus.PENDING.value,
        )
        stake.last_reward_calculation = utc_now()
        await self.session.flush()
        return reward

    async def expire_pending_rewards(self, run_date: date) -> int:
        """
        Expire every pending reward dated before run_date.

        Returns:
            Number of expired rewards
        """
        expired = await self.reward_repo.expire_before(run_date)
        if expired:
            self.logger.info(
                "Pending rewards expired",
                extra={"run_date": run_date.isoformat(), "expired": expired},
            )
        return expired

    async def accrue_all(self, run_date: date | None = None) -> dict:
        """
        Expire stale rewards, then accrue every active stake.

        Commits after the expiry and after each stake; a failing stake is
        rolled back, logged and collected.

        Args:
            run_date: UTC calendar date (default today)

        Returns:
            Dict with processed, rewards_created, cap_hits, expired and
            errors
        """
        run_date = run_date or utc_today()
        expired = await self.expire_pending_rewards(run_date)
        await self.commit()

        stake_ids = [s.id for s in await self.stake_repo.get_active_stakes()]
        processed = rewards_created = cap_hits = 0
        errors: list[dict] = []

        for stake_id in stake_ids:
            try:
                stake = await self.stake_repo.get_by_id(stake_id)
                if stake is None:
                    continue
                reward = await self.calculate_daily_reward(stake, run_date)
                await self.commit()
            except Exception as e:
                await self.rollback()
                self.logger.exception(
                    "Reward accrual failed", extra={"stake_id": stake_id}
                )
                errors.append({"stake_id": stake_id, "error": str(e)})
                continue

            if reward is not None:
                rewards_created += 1
            elif stake.status == StakeStatus.COMPLETED.value:
                cap_hits += 1
            processed += 1

        return {
            "processed": processed,
            "rewards_created": rewards_created,
            "cap_hits": cap_hits,
            "expired": expired,
            "errors": errors,
        }
