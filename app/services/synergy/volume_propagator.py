"""
Volume propagator.

Adds a new stake's principal to the left or right leg of every binary
ancestor, up to the root.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.team_volume_repository import TeamVolumeRepository
from app.services.base_service import BaseService
from app.services.placement.tree_walker import TreeWalker


class VolumePropagator(BaseService):
    """Binary volume propagation."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize volume propagator."""
        super().__init__(session)
        self.walker = TreeWalker(session)
        self.volume_repo = TeamVolumeRepository(session)

    async def add_volume_to_uplines(
        self, user_id: int, amount: Decimal
    ) -> int:
        """
        Credit amount to each ancestor on the side the walk arrived from.

        Args:
            user_id: Staker
            amount: Stake principal

        Returns:
            Number of ancestors updated
        """
        if amount <= 0:
            return 0

        ancestors = await self.walker.binary_ancestors(user_id)
        for ancestor_id, side in ancestors:
            await self.volume_repo.add_volume(ancestor_id, side, amount)

        self.logger.debug(
            "Volume propagated",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "ancestors": len(ancestors),
            },
        )
        return len(ancestors)
