"""
User repository.

Data access layer for User model.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_referral_code(
        self, referral_code: str
    ) -> User | None:
        """
        Get user by referral code (case-insensitive).

        Args:
            referral_code: Referral code

        Returns:
            User or None
        """
        if not referral_code:
            return None
        stmt = select(User).where(
            func.upper(User.referral_code) == referral_code.strip().upper()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email.

        Args:
            email: Email address

        Returns:
            User or None
        """
        return await self.get_by(email=email.strip().lower())

    async def referral_code_exists(self, referral_code: str) -> bool:
        """Check whether a referral code is already taken."""
        return await self.exists(referral_code=referral_code)

    async def get_all_ids(self) -> list[int]:
        """IDs of every user, oldest first."""
        stmt = select(User.id).order_by(User.created_at, User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all_by_creation(self) -> list[User]:
        """
        Get all users ordered by creation time (oldest first).

        Returns:
            List of users
        """
        stmt = select(User).order_by(User.created_at, User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_names(self, user_ids: list[int]) -> dict[int, str]:
        """
        Map user IDs to display labels.

        Args:
            user_ids: User IDs

        Returns:
            Dict of user_id -> label
        """
        if not user_ids:
            return {}
        stmt = select(User).where(User.id.in_(set(user_ids)))
        result = await self.session.execute(stmt)
        return {user.id: user.display_label for user in result.scalars().all()}
