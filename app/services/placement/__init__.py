"""
Placement services package.

- tree_walker: bounded upline/downline traversals
- placement_finder: binary slot search for new participants
"""

from app.services.placement.placement_finder import (
    ROOT_PLACEMENT,
    Placement,
    PlacementFinder,
)
from app.services.placement.tree_walker import (
    DownlineMember,
    TreeStats,
    TreeWalker,
)


__all__ = [
    "DownlineMember",
    "Placement",
    "PlacementFinder",
    "ROOT_PLACEMENT",
    "TreeStats",
    "TreeWalker",
]
