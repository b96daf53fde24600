"""
Genealogy repository.

Data access layer for placement edges. Every query answers a single
tree-level question so walks stay one query per level.
"""

from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.genealogy import Genealogy
from app.models.user import User
from app.repositories.base import BaseRepository


# Which participants count as occupying a node during placement searches
MemberFilter = Literal["verified", "active"] | None


def _member_condition(member_filter: MemberFilter):
    if member_filter == "verified":
        return User.is_verified.is_(True)
    if member_filter == "active":
        return User.is_active.is_(True)
    return None


class GenealogyRepository(BaseRepository[Genealogy]):
    """Genealogy repository with tree queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize genealogy repository."""
        super().__init__(Genealogy, session)

    async def get_by_user(self, user_id: int) -> Genealogy | None:
        """
        Get placement edge of a user.

        Args:
            user_id: User ID

        Returns:
            Genealogy row or None
        """
        return await self.get_by(user_id=user_id)

    async def is_position_available(
        self, parent_id: int, position: str
    ) -> bool:
        """
        Check whether a slot under parent is free.

        Args:
            parent_id: Binary parent user ID
            position: left or right

        Returns:
            True if nobody occupies the slot
        """
        stmt = (
            select(Genealogy.id)
            .where(Genealogy.parent_id == parent_id)
            .where(Genealogy.position == position)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is None

    async def get_child_id(
        self,
        parent_id: int,
        position: str,
        member_filter: MemberFilter = None,
    ) -> int | None:
        """
        Get the user occupying a slot.

        Args:
            parent_id: Binary parent user ID
            position: left or right
            member_filter: Only count verified/active users

        Returns:
            Child user ID or None
        """
        stmt = (
            select(Genealogy.user_id)
            .join(User, User.id == Genealogy.user_id)
            .where(Genealogy.parent_id == parent_id)
            .where(Genealogy.position == position)
        )
        condition = _member_condition(member_filter)
        if condition is not None:
            stmt = stmt.where(condition)
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def get_children(
        self, parent_id: int, member_filter: MemberFilter = None
    ) -> list[Genealogy]:
        """
        Get direct binary children of a node.

        Args:
            parent_id: Binary parent user ID
            member_filter: Only count verified/active users

        Returns:
            Child edges, left before right
        """
        stmt = (
            select(Genealogy)
            .join(User, User.id == Genealogy.user_id)
            .where(Genealogy.parent_id == parent_id)
            .order_by(Genealogy.position, Genealogy.id)
        )
        condition = _member_condition(member_filter)
        if condition is not None:
            stmt = stmt.where(condition)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_root_ids(self, member_filter: MemberFilter = "verified") -> list[int]:
        """
        Get users placed without a binary parent.

        Args:
            member_filter: Only count verified/active users

        Returns:
            Root user IDs in creation order
        """
        stmt = (
            select(Genealogy.user_id)
            .join(User, User.id == Genealogy.user_id)
            .where(Genealogy.parent_id.is_(None))
            .order_by(Genealogy.id)
        )
        condition = _member_condition(member_filter)
        if condition is not None:
            stmt = stmt.where(condition)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_sponsor_id(self, user_id: int) -> int | None:
        """Sponsor of a user, or None."""
        stmt = select(Genealogy.sponsor_id).where(Genealogy.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_sponsor_pointers(
        self, user_ids: list[int]
    ) -> dict[int, int | None]:
        """
        Map users to their sponsors in one query.

        Args:
            user_ids: User IDs

        Returns:
            Dict of user_id -> sponsor_id (None for no sponsor)
        """
        if not user_ids:
            return {}
        stmt = select(Genealogy.user_id, Genealogy.sponsor_id).where(
            Genealogy.user_id.in_(set(user_ids))
        )
        result = await self.session.execute(stmt)
        return {row.user_id: row.sponsor_id for row in result.all()}

    async def count_direct_referrals(self, sponsor_id: int) -> int:
        """
        Count users sponsored directly by a user.

        Args:
            sponsor_id: Sponsor user ID

        Returns:
            Number of direct referrals
        """
        stmt = (
            select(func.count(Genealogy.id))
            .where(Genealogy.sponsor_id == sponsor_id)
            .where(Genealogy.user_id != sponsor_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_sponsored_user_ids(self, sponsor_ids: list[int]) -> list[int]:
        """
        Users whose sponsor is any of sponsor_ids.

        Args:
            sponsor_ids: Sponsor user IDs

        Returns:
            Sponsored user IDs
        """
        if not sponsor_ids:
            return []
        stmt = select(Genealogy.user_id).where(
            Genealogy.sponsor_id.in_(set(sponsor_ids))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all_edges(self) -> list[Genealogy]:
        """All placement edges in insertion order."""
        stmt = select(Genealogy).order_by(Genealogy.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_tree_member_ids(self) -> list[int]:
        """Every user appearing in the tree as a node or as a parent."""
        users = select(Genealogy.user_id.label("id"))
        parents = select(Genealogy.parent_id.label("id")).where(
            Genealogy.parent_id.is_not(None)
        )
        stmt = users.union(parents)
        result = await self.session.execute(stmt)
        return sorted(result.scalars().all())

    async def delete_all(self) -> int:
        """Remove every placement edge."""
        return await self.delete_by()
