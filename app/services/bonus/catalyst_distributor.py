"""
Catalyst distributor.

Pays a flat, level-dependent percentage of a new stake to each sponsor up
to nine levels up the referral chain. A sponsor without an active pack is
skipped but still consumes its level.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import CATALYST_LEVEL_RATES
from app.models.enums import TransactionType
from app.repositories.stake_repository import StakeRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import ZERO, BaseService
from app.services.placement.tree_walker import TreeWalker
from app.services.reward_cap_service import RewardCapService
from app.services.wallet_service import WalletService
from app.utils.money import to_money


@dataclass
class CatalystStats:
    """Per-stake catalyst distribution counters."""

    paid: int = 0
    skipped_no_pack: int = 0
    zeroed_by_cap: int = 0
    total_paid: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "paid": self.paid,
            "skipped_no_pack": self.skipped_no_pack,
            "zeroed_by_cap": self.zeroed_by_cap,
            "total_paid": str(self.total_paid),
        }


class CatalystDistributor(BaseService):
    """Referral-chain bonus on new stakes."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize catalyst distributor."""
        super().__init__(session)
        self.walker = TreeWalker(session)
        self.cap_service = RewardCapService(session)
        self.wallet_service = WalletService(session)
        self.stake_repo = StakeRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.user_repo = UserRepository(session)

    async def distribute(
        self,
        origin_user_id: int,
        stake_amount: Decimal,
        stake_id: int,
    ) -> CatalystStats:
        """
        Distribute the catalyst bonus of a stake.

        Runs inside the caller's stake-creation transaction.

        Args:
            origin_user_id: Staker
            stake_amount: Principal of the new stake
            stake_id: New stake ID (ledger reference)

        Returns:
            CatalystStats
        """
        stats = CatalystStats()
        names = await self.user_repo.get_names([origin_user_id])
        staker_label = names.get(origin_user_id, f"user #{origin_user_id}")

        chain = await self.walker.sponsor_chain(
            origin_user_id, len(CATALYST_LEVEL_RATES)
        )

        for level, (sponsor_id, rate) in enumerate(
            zip(chain, CATALYST_LEVEL_RATES), start=1
        ):
            if not await self.stake_repo.has_active_stake(sponsor_id):
                stats.skipped_no_pack += 1
                continue

            raw = to_money(stake_amount * rate)
            allowed = await self.cap_service.clamp_incentive(sponsor_id, raw)
            if allowed <= 0:
                stats.zeroed_by_cap += 1
                continue

            await self.wallet_service.credit(sponsor_id, allowed)
            await self.transaction_repo.record(
                sponsor_id,
                TransactionType.CATALYST_BONUS,
                allowed,
                reference_type="stake",
                reference_id=stake_id,
                description=(
                    f"Catalyst bonus (level {level}) from {staker_label} "
                    f"stake #{stake_id}"
                ),
                meta={"level": level, "rate": str(rate), "raw": str(raw)},
            )
            stats.paid += 1
            stats.total_paid += allowed

        self.logger.info(
            "Catalyst bonus distributed",
            extra={
                "origin_user_id": origin_user_id,
                "stake_id": stake_id,
                **stats.to_dict(),
            },
        )
        return stats
