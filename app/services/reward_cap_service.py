"""
Reward cap service.

Lifetime incentive ceiling shared by catalyst, synergy and power pass-up
payouts. The ceiling is the participant's active principal times the
lifetime percent of their highest active pack; "used" is re-read from the
ledger on every call, so clamping twice without an intervening credit
returns the same allowance.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.energy_packs import get_highest_pack, get_pack_config
from app.config.settings import settings
from app.repositories.stake_repository import StakeRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.wallet_repository import WalletRepository
from app.services.base_service import ZERO, BaseService


@dataclass
class CapInfo:
    """Incentive cap snapshot of a participant."""

    cap_amount: Decimal
    max_percent: Decimal
    used: Decimal
    available: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "cap_amount": str(self.cap_amount),
            "max_percent": str(self.max_percent),
            "used": str(self.used),
            "available": str(self.available),
        }


def clamp_amount(proposed: Decimal, available: Decimal) -> Decimal:
    """max(0, min(proposed, available))."""
    return max(ZERO, min(proposed, available))


class RewardCapService(BaseService):
    """Read-mostly query service for the shared incentive cap."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward cap service."""
        super().__init__(session)
        self.stake_repo = StakeRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.wallet_repo = WalletRepository(session)

    async def get_cap_info(self, user_id: int) -> CapInfo:
        """
        Compute the incentive cap of a participant.

        Args:
            user_id: Participant ID

        Returns:
            CapInfo; all zeros when the participant has no active pack
        """
        pack_types = await self.stake_repo.get_active_pack_types(user_id)
        highest = get_highest_pack(pack_types)
        total_active = await self.stake_repo.sum_active_amount(user_id)

        if highest is None or total_active <= 0:
            return CapInfo(ZERO, ZERO, ZERO, ZERO)

        config = get_pack_config(highest)
        max_percent = Decimal(config.max_reward_limit)
        cap_amount = total_active * max_percent / Decimal("100")
        used = await self.transaction_repo.sum_incentives_used(user_id)

        return CapInfo(
            cap_amount=cap_amount,
            max_percent=max_percent,
            used=used,
            available=max(ZERO, cap_amount - used),
        )

    async def clamp_incentive(
        self, user_id: int, proposed_amount: Decimal
    ) -> Decimal:
        """
        Clamp a proposed incentive to the remaining headroom.

        With incentive_cap_lock enabled the recipient's wallet row is locked
        first, so concurrent payouts to one participant serialise.

        Args:
            user_id: Recipient
            proposed_amount: Raw incentive

        Returns:
            Allowed amount (0 when the cap is exhausted)
        """
        if proposed_amount <= 0:
            return ZERO

        if settings.incentive_cap_lock:
            await self.wallet_repo.get_wallet(user_id, for_update=True)

        info = await self.get_cap_info(user_id)
        allowed = clamp_amount(proposed_amount, info.available)

        if allowed < proposed_amount:
            self.logger.debug(
                "Incentive clamped by cap",
                extra={
                    "user_id": user_id,
                    "proposed": str(proposed_amount),
                    "allowed": str(allowed),
                    "available": str(info.available),
                },
            )
        return allowed
