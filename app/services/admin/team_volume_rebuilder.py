"""
Team volume rebuilder.

Recomputes the binary volume ledger from scratch: every tree member gets
a zeroed row and every active stake is replayed through propagation.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.genealogy_repository import GenealogyRepository
from app.repositories.stake_repository import StakeRepository
from app.repositories.team_volume_repository import TeamVolumeRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.services.synergy.volume_propagator import VolumePropagator


class TeamVolumeRebuilder(BaseService):
    """Operator procedure: rebuild team volumes."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team volume rebuilder."""
        super().__init__(session)
        self.genealogy_repo = GenealogyRepository(session)
        self.stake_repo = StakeRepository(session)
        self.volume_repo = TeamVolumeRepository(session)
        self.propagator = VolumePropagator(session)

    @log_operation
    @transaction
    async def rebuild(self) -> dict:
        """
        Rebuild every team volume row in one transaction.

        Carries, daily payouts and reset dates are cleared as well.

        Returns:
            Dict with users, stakes, total_volume, left_total and
            right_total
        """
        member_ids = await self.genealogy_repo.get_tree_member_ids()
        for user_id in member_ids:
            await self.volume_repo.ensure(user_id)

        await self.volume_repo.reset_all()

        stakes = await self.stake_repo.get_active_stakes()
        total_volume = Decimal("0")
        for index, stake in enumerate(stakes, start=1):
            amount = Decimal(str(stake.amount))
            await self.propagator.add_volume_to_uplines(stake.user_id, amount)
            total_volume += amount
            if index % 100 == 0:
                self.logger.info(
                    f"Replayed {index}/{len(stakes)} stakes"
                )

        left_total, right_total = await self.volume_repo.get_totals()
        summary = {
            "users": len(member_ids),
            "stakes": len(stakes),
            "total_volume": total_volume,
            "left_total": left_total,
            "right_total": right_total,
        }
        self.logger.info(
            "Team volumes rebuilt",
            extra={k: str(v) for k, v in summary.items()},
        )
        return summary
