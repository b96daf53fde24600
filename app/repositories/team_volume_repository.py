"""
Team volume repository.

Data access layer for the binary volume ledger.
"""

from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import PlacementPosition
from app.models.team_volume import TeamVolume
from app.repositories.base import BaseRepository


class TeamVolumeRepository(BaseRepository[TeamVolume]):
    """Team volume repository with ledger updates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team volume repository."""
        super().__init__(TeamVolume, session)

    async def get_by_user(
        self, user_id: int, for_update: bool = False
    ) -> TeamVolume | None:
        """
        Get the volume row of a user.

        Args:
            user_id: User ID
            for_update: Lock the row

        Returns:
            TeamVolume or None
        """
        stmt = select(TeamVolume).where(TeamVolume.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure(self, user_id: int) -> TeamVolume:
        """
        Get or lazily create a zeroed volume row.

        Args:
            user_id: User ID

        Returns:
            TeamVolume row
        """
        row = await self.get_by_user(user_id)
        if row is not None:
            return row
        return await self.create(
            user_id=user_id,
            left_volume=Decimal("0"),
            right_volume=Decimal("0"),
            left_carry=Decimal("0"),
            right_carry=Decimal("0"),
            daily_paid=Decimal("0"),
        )

    async def add_volume(
        self, user_id: int, side: str, amount: Decimal
    ) -> None:
        """
        Atomically add amount to one leg.

        Args:
            user_id: Ancestor receiving the volume
            side: left or right
            amount: Stake amount
        """
        await self.ensure(user_id)
        column = (
            TeamVolume.left_volume
            if side == PlacementPosition.LEFT.value
            else TeamVolume.right_volume
        )
        stmt = (
            update(TeamVolume)
            .where(TeamVolume.user_id == user_id)
            .values({column: column + amount})
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)

    async def get_all_user_ids(self) -> list[int]:
        """Users with a volume row."""
        stmt = select(TeamVolume.user_id).order_by(TeamVolume.user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def reset_all(self) -> int:
        """
        Zero every counter and clear the reset date.

        Returns:
            Number of rows reset
        """
        stmt = (
            update(TeamVolume)
            .values(
                left_volume=Decimal("0"),
                right_volume=Decimal("0"),
                left_carry=Decimal("0"),
                right_carry=Decimal("0"),
                daily_paid=Decimal("0"),
                last_reset_date=None,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_totals(self) -> tuple[Decimal, Decimal]:
        """Platform-wide (left, right) volume."""
        stmt = select(
            func.coalesce(func.sum(TeamVolume.left_volume), 0),
            func.coalesce(func.sum(TeamVolume.right_volume), 0),
        )
        result = await self.session.execute(stmt)
        left, right = result.one()
        return Decimal(str(left)), Decimal(str(right))
