"""
Administrative procedures package.

- team_volume_rebuilder: rebuild the binary volume ledger from stakes
- placement_regenerator: regenerate the tree with backup and restore
- daily_reset: clear daily job runs so batches can run again
"""

from app.services.admin.daily_reset import DailyResetService
from app.services.admin.placement_regenerator import (
    PlacementRegenerator,
    RegenerationResult,
)
from app.services.admin.team_volume_rebuilder import TeamVolumeRebuilder


__all__ = [
    "DailyResetService",
    "PlacementRegenerator",
    "RegenerationResult",
    "TeamVolumeRebuilder",
]
