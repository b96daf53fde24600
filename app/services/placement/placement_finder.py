"""
Placement finder.

Finds the binary slot for a new participant under a sponsor:

1. the sponsor's own left slot, then right slot;
2. otherwise alternate between the sponsor's left and right subtrees on
   the parity of (downline size - 2), even going left;
3. inside the chosen subtree, follow the same-side spine down from the
   subtree root to the first free same-side slot.

Without a sponsor, a breadth-first search over the existing roots finds
the outermost free slot. An empty tree makes the newcomer a root.
"""

from collections import deque
from typing import NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import PlacementPosition
from app.repositories.genealogy_repository import (
    GenealogyRepository,
    MemberFilter,
)
from app.services.base_service import BaseService
from app.services.placement.tree_walker import TreeWalker
from app.utils.exceptions import TreeInconsistencyError


LEFT = PlacementPosition.LEFT.value
RIGHT = PlacementPosition.RIGHT.value


class Placement(NamedTuple):
    """Binary slot: parent and side, both None for a root."""

    parent_id: int | None
    position: str | None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


ROOT_PLACEMENT = Placement(None, None)


class PlacementFinder(BaseService):
    """
    Slot search for registration and tree regeneration.

    member_filter restricts which occupants the spine and tree searches
    walk through ("verified" at registration, "active" when the tree is
    regenerated). count_filter restricts the downline count that decides
    the subtree parity.
    """

    def __init__(
        self,
        session: AsyncSession,
        member_filter: MemberFilter = "verified",
        count_filter: MemberFilter = None,
    ) -> None:
        """Initialize placement finder."""
        super().__init__(session)
        self.genealogy_repo = GenealogyRepository(session)
        self.walker = TreeWalker(session)
        self.member_filter = member_filter
        self.count_filter = count_filter

    async def find_under_sponsor(self, sponsor_id: int) -> Placement:
        """
        Slot for a newcomer sponsored by sponsor_id.

        Args:
            sponsor_id: Sponsor user ID

        Returns:
            Placement (parent_id, position)

        Raises:
            TreeInconsistencyError: The spine contains an occupied slot
                whose occupant is filtered out, or loops back on itself
        """
        for side in (LEFT, RIGHT):
            if await self.genealogy_repo.is_position_available(sponsor_id, side):
                return Placement(sponsor_id, side)

        downline_count = await self.walker.count_downline(
            sponsor_id, member_filter=self.count_filter
        )
        side = LEFT if (downline_count - 2) % 2 == 0 else RIGHT
        return await self._follow_spine(sponsor_id, side)

    async def _follow_spine(self, sponsor_id: int, side: str) -> Placement:
        current_id = await self.genealogy_repo.get_child_id(
            sponsor_id, side, self.member_filter
        )
        if current_id is None:
            raise TreeInconsistencyError(
                f"Subtree root {side} of {sponsor_id} is occupied but not eligible"
            )

        visited = {sponsor_id}
        while True:
            if current_id in visited:
                raise TreeInconsistencyError(
                    f"Cycle on {side} spine under {sponsor_id} at {current_id}"
                )
            visited.add(current_id)

            if await self.genealogy_repo.is_position_available(current_id, side):
                return Placement(current_id, side)

            child_id = await self.genealogy_repo.get_child_id(
                current_id, side, self.member_filter
            )
            if child_id is None:
                raise TreeInconsistencyError(
                    f"Slot {side} of {current_id} is occupied but not eligible"
                )
            current_id = child_id

    async def find_in_tree(self) -> Placement:
        """
        Outermost free slot in the whole tree, breadth-first over roots.

        Returns:
            Placement, or a root placement for an empty tree
        """
        if await self.genealogy_repo.count() == 0:
            return ROOT_PLACEMENT

        roots = await self.genealogy_repo.get_root_ids(self.member_filter)
        visited: set[int] = set()
        queue = deque(roots)

        while queue:
            node_id = queue.popleft()
            if node_id in visited:
                continue
            visited.add(node_id)

            for side in (LEFT, RIGHT):
                if await self.genealogy_repo.is_position_available(node_id, side):
                    return Placement(node_id, side)

            children = await self.genealogy_repo.get_children(
                node_id, self.member_filter
            )
            queue.extend(child.user_id for child in children)

        return ROOT_PLACEMENT

    async def find_position(self, sponsor_id: int | None) -> Placement:
        """
        Slot for a newcomer, falling back to a root on inconsistency.

        Args:
            sponsor_id: Resolved sponsor, or None

        Returns:
            Placement
        """
        try:
            if sponsor_id is None:
                return await self.find_in_tree()
            return await self.find_under_sponsor(sponsor_id)
        except TreeInconsistencyError as e:
            self.logger.warning(
                "Placement search failed, placing as root",
                extra={"sponsor_id": sponsor_id, "error": str(e)},
            )
            return ROOT_PLACEMENT
