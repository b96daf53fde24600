"""
Team cycle repository.

Data access layer for synergy settlement history.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.team_cycle import TeamCycle
from app.models.user import User
from app.repositories.base import BaseRepository


class TeamCycleRepository(BaseRepository[TeamCycle]):
    """Team cycle repository with history queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team cycle repository."""
        super().__init__(TeamCycle, session)

    async def get_user_history(
        self, user_id: int, limit: int = 20, offset: int = 0
    ) -> list[TeamCycle]:
        """
        Settlements of a user, newest first.

        Args:
            user_id: User ID
            limit: Max rows
            offset: Rows to skip

        Returns:
            Team cycles
        """
        stmt = (
            select(TeamCycle)
            .where(TeamCycle.user_id == user_id)
            .order_by(TeamCycle.cycle_date.desc(), TeamCycle.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all_history(
        self, limit: int = 50, offset: int = 0
    ) -> list[tuple[TeamCycle, str, str]]:
        """
        Platform-wide settlements with participant name and email.

        Args:
            limit: Max rows
            offset: Rows to skip

        Returns:
            Rows of (cycle, name, email), newest first
        """
        stmt = (
            select(TeamCycle, User.name, User.email)
            .join(User, User.id == TeamCycle.user_id)
            .order_by(TeamCycle.cycle_date.desc(), TeamCycle.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(cycle, name, email) for cycle, name, email in result.all()]
