"""
Stake service.

Entry point for energy pack positions: creating a stake (debit, catalyst
bonus and binary volume in one transaction), claiming its rewards and
the read models around a participant's stakes.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import RANK_PROMOTION_CHAIN_DEPTH
from app.config.energy_packs import (
    PackType,
    SHARE_PRICE,
    calculate_shares,
    get_highest_pack,
    get_pack_config,
    get_pack_for_shares,
    validate_stake_amount,
)
from app.models.enums import StakeStatus, TransactionType
from app.models.stake import Stake
from app.models.stake_reward import StakeReward
from app.repositories.stake_repository import StakeRepository
from app.repositories.stake_reward_repository import StakeRewardRepository
from app.repositories.transaction_repository import TransactionRepository
from app.services.base_service import ZERO, BaseService, transaction
from app.services.bonus.catalyst_distributor import (
    CatalystDistributor,
    CatalystStats,
)
from app.services.placement.tree_walker import TreeWalker
from app.services.rank_service import RankService
from app.services.reward_cap_service import RewardCapService
from app.services.stake.reward_crediting import (
    CreditResult,
    RewardCreditProcessor,
)
from app.services.synergy.synergy_service import SynergyService
from app.services.synergy.volume_propagator import VolumePropagator
from app.services.wallet_service import WalletService
from app.utils.exceptions import (
    InsufficientFundsError,
    StakeNotFoundError,
    StakeValidationError,
)
from app.utils.money import to_money


@dataclass
class StakeCreationResult:
    """New stake and the catalyst payouts it triggered."""

    stake: Stake
    catalyst: CatalystStats
    volume_ancestors: int = 0


class StakeService(BaseService):
    """Energy pack stakes."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stake service."""
        super().__init__(session)
        self.stake_repo = StakeRepository(session)
        self.reward_repo = StakeRewardRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.wallet_service = WalletService(session)
        self.catalyst = CatalystDistributor(session)
        self.volume_propagator = VolumePropagator(session)
        self.credit_processor = RewardCreditProcessor(session)
        self.rank_service = RankService(session)
        self.walker = TreeWalker(session)

    # ---- creation -------------------------------------------------------

    def resolve_pack(self, amount: Decimal) -> tuple[int, PackType]:
        """
        Shares and pack tier for a stake amount.

        Raises:
            StakeValidationError: Below one share or outside the band
        """
        shares = calculate_shares(amount)
        if shares < 1:
            raise StakeValidationError(
                f"Minimum stake amount is ${SHARE_PRICE} (1 share)"
            )
        pack_type = get_pack_for_shares(shares)
        if pack_type is None:
            raise StakeValidationError(
                "Invalid share count. Minimum 1 share required."
            )
        valid, error = validate_stake_amount(pack_type, amount)
        if not valid:
            raise StakeValidationError(error)
        return shares, pack_type

    async def create_stake(
        self, user_id: int, amount: Decimal
    ) -> StakeCreationResult:
        """
        Stake capital into the pack its share count falls into.

        Validation and the balance check happen before any write. After
        the commit the staker and up to 20 sponsor levels are re-ranked on
        a best-effort basis.

        Args:
            user_id: Staker
            amount: Capital in USD

        Returns:
            StakeCreationResult

        Raises:
            StakeValidationError: Invalid amount
            InsufficientFundsError: Balance below amount
        """
        amount = to_money(amount)
        if amount <= 0:
            raise StakeValidationError("Invalid amount")
        shares, pack_type = self.resolve_pack(amount)

        if not await self.wallet_service.has_sufficient_balance(user_id, amount):
            raise InsufficientFundsError(
                user_id=user_id,
                required=amount,
                available=await self.wallet_service.get_balance(user_id),
            )

        result = await self._create_stake_atomic(
            user_id, amount, shares, pack_type
        )
        await self.promote_rank_chain(user_id)
        return result

    @transaction
    async def _create_stake_atomic(
        self,
        user_id: int,
        amount: Decimal,
        shares: int,
        pack_type: PackType,
    ) -> StakeCreationResult:
        config = get_pack_config(pack_type)
        stake = await self.stake_repo.create(
            user_id=user_id,
            pack_type=pack_type.value,
            shares=shares,
            amount=amount,
            daily_roi_rate=config.daily_roi_rate,
            max_reward_limit=Decimal(config.max_reward_limit),
            total_rewards_earned=ZERO,
            status=StakeStatus.ACTIVE.value,
        )

        await self.wallet_service.debit(user_id, amount)
        await self.transaction_repo.record(
            user_id,
            TransactionType.STAKE,
            -amount,
            reference_type="stake",
            reference_id=stake.id,
            description=(
                f"Staked {shares} share{'s' if shares > 1 else ''} "
                f"(${amount:.2f}) to {pack_type.value} pack"
            ),
        )

        catalyst = await self.catalyst.distribute(user_id, amount, stake.id)
        ancestors = await self.volume_propagator.add_volume_to_uplines(
            user_id, amount
        )

        self.logger.info(
            "Stake created",
            extra={
                "user_id": user_id,
                "stake_id": stake.id,
                "pack_type": pack_type.value,
                "shares": shares,
                "amount": str(amount),
            },
        )
        return StakeCreationResult(
            stake=stake, catalyst=catalyst, volume_ancestors=ancestors
        )

    async def promote_rank_chain(self, user_id: int) -> int:
        """
        Re-rank the staker and their sponsors, committing each one.

        Failures are logged and never raised.

        Returns:
            Number of participants re-evaluated successfully
        """
        try:
            uplines = await self.walker.sponsor_chain(
                user_id, RANK_PROMOTION_CHAIN_DEPTH
            )
        except Exception:
            self.logger.exception(
                "Rank promotion chain failed", extra={"user_id": user_id}
            )
            return 0

        promoted = 0
        for target_id in [user_id, *uplines]:
            try:
                await self.rank_service.auto_promote(target_id)
                await self.commit()
                promoted += 1
            except Exception as e:
                await self.rollback()
                self.logger.warning(
                    "Rank promotion failed",
                    extra={"user_id": target_id, "error": str(e)},
                )
        return promoted

    # ---- claiming -------------------------------------------------------

    async def get_user_stake(self, user_id: int, stake_id: int) -> Stake:
        """
        A stake owned by user_id.

        Raises:
            StakeNotFoundError: Unknown stake or another owner
        """
        stake = await self.stake_repo.get_by_id(stake_id)
        if stake is None or stake.user_id != user_id:
            raise StakeNotFoundError(f"Stake {stake_id} not found")
        return stake

    async def claim_rewards(
        self,
        user_id: int,
        stake_id: int,
        reward_ids: list[int] | None = None,
    ) -> CreditResult:
        """
        Claim pending rewards of one of the participant's stakes.

        Args:
            user_id: Claiming participant
            stake_id: Stake ID
            reward_ids: Restrict to these rewards

        Returns:
            CreditResult
        """
        await self.get_user_stake(user_id, stake_id)
        return await self.credit_processor.credit_pending_rewards(
            stake_id, reward_ids
        )

    @transaction
    async def update_status(self, stake_id: int, status: str) -> Stake:
        """
        Set a stake's status.

        Raises:
            StakeValidationError: Unknown status
            StakeNotFoundError: Unknown stake
        """
        try:
            status = StakeStatus(status).value
        except ValueError as e:
            raise StakeValidationError(f"Invalid stake status: {status}") from e
        stake = await self.stake_repo.update(stake_id, status=status)
        if stake is None:
            raise StakeNotFoundError(f"Stake {stake_id} not found")
        return stake

    # ---- read models ----------------------------------------------------

    async def get_user_stakes(
        self,
        user_id: int,
        pack_type: str | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Stake]:
        """Stakes of a participant, newest first."""
        return await self.stake_repo.get_user_stakes(
            user_id, pack_type=pack_type, status=status, limit=limit, offset=offset
        )

    async def get_user_stake_summary(self, user_id: int) -> dict:
        """
        Totals over a participant's active stakes.

        Returns:
            Dict with total_staked, total_shares, total_rewards_earned,
            pack_counts and active_packs (stake IDs per pack)
        """
        stakes = await self.stake_repo.get_user_stakes(
            user_id, status=StakeStatus.ACTIVE.value
        )
        summary = {
            "total_staked": ZERO,
            "total_shares": 0,
            "total_rewards_earned": ZERO,
            "pack_counts": {pack.value: 0 for pack in PackType},
            "active_packs": {},
        }
        for stake in stakes:
            summary["total_staked"] += Decimal(str(stake.amount))
            summary["total_shares"] += stake.shares
            summary["total_rewards_earned"] += Decimal(
                str(stake.total_rewards_earned or 0)
            )
            summary["pack_counts"][stake.pack_type] = (
                summary["pack_counts"].get(stake.pack_type, 0) + 1
            )
            summary["active_packs"].setdefault(stake.pack_type, []).append(stake.id)
        return summary

    async def get_user_active_pack_info(self, user_id: int) -> dict:
        """Highest active pack and total active principal."""
        highest = get_highest_pack(
            await self.stake_repo.get_active_pack_types(user_id)
        )
        return {
            "highest_pack": highest.value if highest else None,
            "total_amount": await self.stake_repo.sum_active_amount(user_id),
        }

    async def get_pending_rewards_summary(self, user_id: int) -> dict:
        """
        Pending reward totals across a participant's stakes.

        Returns:
            Dict with core, harvest, total, pending_count and per_pack
        """
        rows = await self.reward_repo.get_pending_totals_by_pack(user_id)
        summary = {
            "core": ZERO,
            "harvest": ZERO,
            "total": ZERO,
            "pending_count": 0,
            "per_pack": {},
        }
        for pack_type, core, harvest, total, count in rows:
            summary["core"] += core
            summary["harvest"] += harvest
            summary["total"] += total
            summary["pending_count"] += count
            summary["per_pack"][pack_type] = {
                "core": core,
                "harvest": harvest,
                "total": total,
                "pending_count": count,
            }
        return summary

    async def get_stake_rewards(
        self,
        stake_id: int,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 30,
    ) -> list[StakeReward]:
        """Reward history of a stake, newest first."""
        return await self.reward_repo.get_stake_rewards(
            stake_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )

    async def get_stake_overview(self, user_id: int) -> dict:
        """
        Everything a participant's stake dashboard shows.

        Returns:
            Dict with rank, synergy, stake_summary, active_info,
            pending_rewards and incentive_cap
        """
        rank = await self.rank_service.get_rank_progress(user_id)
        synergy = await SynergyService(self.session).get_user_summary(user_id)
        cap = await RewardCapService(self.session).get_cap_info(user_id)
        return {
            "rank": rank,
            "synergy": synergy,
            "stake_summary": await self.get_user_stake_summary(user_id),
            "active_info": await self.get_user_active_pack_info(user_id),
            "pending_rewards": await self.get_pending_rewards_summary(user_id),
            "incentive_cap": cap.to_dict(),
        }
