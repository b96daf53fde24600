"""
Bonus services package.

- catalyst_distributor: level bonus on new stakes along the sponsor chain
- power_passup_distributor: rank-difference overrides on core rewards
"""

from app.services.bonus.catalyst_distributor import (
    CatalystDistributor,
    CatalystStats,
)
from app.services.bonus.power_passup_distributor import (
    PassUpAllocation,
    PassUpResult,
    PowerPassUpDistributor,
    compute_override_percent_for_target,
    compute_passup_allocations,
)


__all__ = [
    # Catalyst
    "CatalystDistributor",
    "CatalystStats",
    # Power pass-up
    "PassUpAllocation",
    "PassUpResult",
    "PowerPassUpDistributor",
    "compute_override_percent_for_target",
    "compute_passup_allocations",
]
