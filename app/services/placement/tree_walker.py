"""
Tree walker.

Bounded, cycle-safe traversals over the two pointer structures kept in
the genealogy table: the binary placement tree (parent_id/position) and
the referral lineage (sponsor_id). Every walk issues one query per level
and carries a visited set.
"""

from collections import deque
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import SPONSOR_CHAIN_DEPTH
from app.repositories.genealogy_repository import (
    GenealogyRepository,
    MemberFilter,
)
from app.services.base_service import BaseService


@dataclass
class DownlineMember:
    """Descendant found by a binary downline walk."""

    user_id: int
    parent_id: int | None
    sponsor_id: int | None
    position: str | None
    level: int


@dataclass
class TreeStats:
    """Shape of a participant's binary downline."""

    total_downline: int = 0
    left_count: int = 0
    right_count: int = 0
    levels: dict[int, int] = field(default_factory=dict)


class TreeWalker(BaseService):
    """Upline and downline traversals."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize tree walker."""
        super().__init__(session)
        self.genealogy_repo = GenealogyRepository(session)

    async def sponsor_chain(
        self, user_id: int, max_levels: int = SPONSOR_CHAIN_DEPTH
    ) -> list[int]:
        """
        Sponsors of a participant, closest first.

        Stops at a missing sponsor, a self-sponsored root, a revisited
        node or after max_levels.

        Args:
            user_id: Origin participant
            max_levels: Maximum chain length

        Returns:
            Sponsor user IDs, level 1 first
        """
        chain: list[int] = []
        visited = {user_id}
        current = user_id

        while len(chain) < max_levels:
            sponsor_id = await self.genealogy_repo.get_sponsor_id(current)
            if sponsor_id is None or sponsor_id == current:
                break
            if sponsor_id in visited:
                self.logger.warning(
                    "Cycle detected in sponsor chain",
                    extra={"origin_user_id": user_id, "node": sponsor_id},
                )
                break
            visited.add(sponsor_id)
            chain.append(sponsor_id)
            current = sponsor_id

        return chain

    async def binary_ancestors(self, user_id: int) -> list[tuple[int, str]]:
        """
        Binary ancestors with the side the walk arrived from.

        Args:
            user_id: Starting participant

        Returns:
            List of (ancestor_id, side), closest first, up to the root
        """
        ancestors: list[tuple[int, str]] = []
        visited = {user_id}
        edge = await self.genealogy_repo.get_by_user(user_id)

        while edge is not None and edge.parent_id is not None:
            if edge.parent_id in visited:
                self.logger.warning(
                    "Cycle detected in placement tree",
                    extra={"origin_user_id": user_id, "node": edge.parent_id},
                )
                break
            if edge.position is None:
                self.logger.warning(
                    "Placement edge without position",
                    extra={"user_id": edge.user_id},
                )
                break
            visited.add(edge.parent_id)
            ancestors.append((edge.parent_id, edge.position))
            edge = await self.genealogy_repo.get_by_user(edge.parent_id)

        return ancestors

    async def get_upline(
        self, user_id: int, levels: int | None = None
    ) -> list[tuple[int, str | None, int]]:
        """
        Binary upline as (parent_id, position_of_child, level).

        Level 0 is the edge linking user_id to its own parent.
        """
        upline: list[tuple[int, str | None, int]] = []
        for level, (parent_id, side) in enumerate(
            await self.binary_ancestors(user_id)
        ):
            if levels is not None and level >= levels:
                break
            upline.append((parent_id, side, level))
        return upline

    async def get_user_level(self, user_id: int) -> int:
        """Depth of a participant in the binary tree (roots are 0)."""
        return len(await self.binary_ancestors(user_id))

    async def get_downline(
        self,
        user_id: int,
        max_level: int | None = None,
        member_filter: MemberFilter = None,
    ) -> list[DownlineMember]:
        """
        Binary descendants, breadth-first.

        Args:
            user_id: Subtree root
            max_level: Deepest level to include (None = unlimited)
            member_filter: Only walk verified/active members

        Returns:
            Descendants with their level (children are level 1)
        """
        downline: list[DownlineMember] = []
        visited = {user_id}
        queue: deque[tuple[int, int]] = deque([(user_id, 0)])

        while queue:
            current_id, level = queue.popleft()
            if max_level is not None and level >= max_level:
                continue

            children = await self.genealogy_repo.get_children(
                current_id, member_filter
            )
            for child in children:
                if child.user_id in visited:
                    self.logger.warning(
                        "Cycle detected in placement tree",
                        extra={"root_user_id": user_id, "node": child.user_id},
                    )
                    continue
                visited.add(child.user_id)
                downline.append(
                    DownlineMember(
                        user_id=child.user_id,
                        parent_id=child.parent_id,
                        sponsor_id=child.sponsor_id,
                        position=child.position,
                        level=level + 1,
                    )
                )
                queue.append((child.user_id, level + 1))

        return downline

    async def count_downline(
        self, user_id: int, member_filter: MemberFilter = None
    ) -> int:
        """Number of binary descendants."""
        return len(await self.get_downline(user_id, member_filter=member_filter))

    async def get_tree_stats(self, user_id: int) -> TreeStats:
        """
        Downline size and shape.

        left_count/right_count count descendants by the slot they occupy
        under their own parent.
        """
        stats = TreeStats()
        for member in await self.get_downline(user_id):
            stats.total_downline += 1
            if member.position == "left":
                stats.left_count += 1
            elif member.position == "right":
                stats.right_count += 1
            stats.levels[member.level] = stats.levels.get(member.level, 0) + 1
        return stats

    async def sponsor_downline_ids(self, user_id: int) -> list[int]:
        """
        Transitive referral downline.

        Args:
            user_id: Sponsor at the top

        Returns:
            Every participant whose sponsor chain reaches user_id
        """
        visited = {user_id}
        downline: list[int] = []
        frontier = [user_id]

        while frontier:
            sponsored = await self.genealogy_repo.get_sponsored_user_ids(frontier)
            frontier = []
            for member_id in sponsored:
                if member_id in visited:
                    continue
                visited.add(member_id)
                downline.append(member_id)
                frontier.append(member_id)

        return downline
