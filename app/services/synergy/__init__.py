"""
Synergy services package.

- cycle_settlement: pure cycle, carry and flush arithmetic
- volume_propagator: binary volume propagation on new stakes
- synergy_service: daily settlement, eligibility and history
"""

from app.services.synergy.cycle_settlement import (
    CycleSettlement,
    cycles_available,
    flush_weaker_leg,
    plan_settlement,
)
from app.services.synergy.synergy_service import (
    CycleResult,
    Eligibility,
    SynergyService,
)
from app.services.synergy.volume_propagator import VolumePropagator


__all__ = [
    # Settlement math
    "CycleSettlement",
    "cycles_available",
    "flush_weaker_leg",
    "plan_settlement",
    # Services
    "CycleResult",
    "Eligibility",
    "SynergyService",
    "VolumePropagator",
]
