"""
Reward credit processor.

Claims a stake's pending rewards into the owner's wallet. Each reward is
checked against the claim window and the stake's lifetime cap, scaled to
the remaining headroom, and split: the staker keeps the harvest plus
their rank share of core, the rest of core goes up as power pass-up.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import REWARD_CLAIM_WINDOW_HOURS
from app.models.enums import RewardStatus, StakeStatus, TransactionType
from app.repositories.stake_repository import StakeRepository
from app.repositories.stake_reward_repository import StakeRewardRepository
from app.repositories.transaction_repository import TransactionRepository
from app.services.base_service import ZERO, BaseService, transaction
from app.services.bonus.power_passup_distributor import PowerPassUpDistributor
from app.services.rank_service import RankService
from app.services.stake.stake_calculator import (
    scale_to_remaining_cap,
    split_core_reward,
)
from app.services.wallet_service import WalletService
from app.utils.datetime_utils import start_of_day, utc_now
from app.utils.exceptions import StakeNotFoundError


CLAIM_WINDOW = timedelta(hours=REWARD_CLAIM_WINDOW_HOURS)


@dataclass
class CreditResult:
    """Outcome of a claim."""

    credited: int = 0
    expired: int = 0
    total_amount: Decimal = ZERO
    passup_allocations: int = 0
    passup_skips: int = 0
    stake_completed: bool = False

    def to_dict(self) -> dict:
        return {
            "credited": self.credited,
            "expired": self.expired,
            "total_amount": self.total_amount,
            "passup_allocations": self.passup_allocations,
            "passup_skips": self.passup_skips,
            "stake_completed": self.stake_completed,
        }


class RewardCreditProcessor(BaseService):
    """Pending reward crediting with lifetime-cap enforcement."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward credit processor."""
        super().__init__(session)
        self.stake_repo = StakeRepository(session)
        self.reward_repo = StakeRewardRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.wallet_service = WalletService(session)
        self.rank_service = RankService(session)
        self.passup = PowerPassUpDistributor(session)

    @transaction
    async def credit_pending_rewards(
        self,
        stake_id: int,
        reward_ids: list[int] | None = None,
        now: datetime | None = None,
    ) -> CreditResult:
        """
        Credit the pending rewards of a stake, oldest first.

        Rewards older than the claim window, or arriving after the lifetime
        cap is exhausted, are expired instead of paid.

        Args:
            stake_id: Stake ID
            reward_ids: Restrict to these rewards
            now: Clock override

        Returns:
            CreditResult

        Raises:
            StakeNotFoundError: Unknown stake
        """
        now = now or utc_now()
        stake = await self.stake_repo.get_by_id_for_update(stake_id)
        if stake is None:
            raise StakeNotFoundError(f"Stake {stake_id} not found")

        result = CreditResult()
        pending = await self.reward_repo.get_pending(stake_id, reward_ids)
        if not pending:
            return result

        max_rewards = stake.max_rewards
        earned = Decimal(str(stake.total_rewards_earned or 0))
        rank_percent = await self.rank_service.get_rank_percent(stake.user_id)

        for reward in pending:
            if now - start_of_day(reward.reward_date) > CLAIM_WINDOW:
                reward.status = RewardStatus.EXPIRED.value
                result.expired += 1
                continue

            remaining_cap = max_rewards - earned
            if remaining_cap <= 0:
                reward.status = RewardStatus.EXPIRED.value
                result.expired += 1
                continue

            scaled = scale_to_remaining_cap(
                Decimal(str(reward.core_reward)),
                Decimal(str(reward.harvest_reward)),
                Decimal(str(reward.total_reward)),
                remaining_cap,
            )
            staker_core, passup_core = split_core_reward(scaled.core, rank_percent)
            staker_amount = scaled.harvest + staker_core

            if staker_amount > 0:
                await self.wallet_service.credit(stake.user_id, staker_amount)
                await self.transaction_repo.record(
                    stake.user_id,
                    TransactionType.STAKE_REWARD,
                    staker_amount,
                    reference_type="stake_reward",
                    reference_id=reward.id,
                    description=(
                        f"Stake reward for {stake.pack_type} pack "
                        f"({rank_percent}% core share) - "
                        f"{reward.reward_date.isoformat()}"
                    ),
                    meta={
                        "stake_id": stake.id,
                        "core": str(scaled.core),
                        "harvest": str(scaled.harvest),
                        "passup_core": str(passup_core),
                    },
                )

            if passup_core > 0:
                passup = await self.passup.distribute(
                    stake.user_id, passup_core, reward.id
                )
                result.passup_allocations += len(passup.allocations)
                if passup.distributed <= 0:
                    result.passup_skips += 1

            reward.core_reward = scaled.core
            reward.harvest_reward = scaled.harvest
            reward.total_reward = scaled.total
            reward.status = RewardStatus.CREDITED.value
            reward.credited_at = now

            earned += scaled.total
            result.credited += 1
            result.total_amount += scaled.total

        if result.total_amount > 0:
            stake.total_rewards_earned = earned
            if earned >= max_rewards:
                stake.status = StakeStatus.COMPLETED.value
                result.stake_completed = True

        await self.session.flush()

        self.logger.info(
            "Stake rewards credited",
            extra={
                "stake_id": stake_id,
                "user_id": stake.user_id,
                **{k: str(v) for k, v in result.to_dict().items()},
            },
        )
        return result

    async def credit_all_pending(self, now: datetime | None = None) -> dict:
        """
        Credit every stake that still has pending rewards.

        Each stake commits on its own; a failing stake is rolled back,
        logged and collected while the sweep moves on.

        Args:
            now: Clock override

        Returns:
            Dict with processed, credited, expired, total_amount,
            completed and errors
        """
        now = now or utc_now()
        stake_ids = await self.reward_repo.get_stake_ids_with_pending()
        processed = credited = expired = completed = 0
        total_amount = ZERO
        errors: list[dict] = []

        for stake_id in stake_ids:
            try:
                result = await self.credit_pending_rewards(stake_id, now=now)
            except Exception as e:
                self.logger.exception(
                    "Reward crediting failed", extra={"stake_id": stake_id}
                )
                errors.append({"stake_id": stake_id, "error": str(e)})
                continue

            processed += 1
            credited += result.credited
            expired += result.expired
            total_amount += result.total_amount
            if result.stake_completed:
                completed += 1

        return {
            "processed": processed,
            "credited": credited,
            "expired": expired,
            "total_amount": str(total_amount),
            "completed": completed,
            "errors": errors,
        }
