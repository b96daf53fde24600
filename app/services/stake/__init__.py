"""
Stake services package.

This package provides the energy pack stake lifecycle:
- stake_calculator: Pure core, harvest and cap-scaling formulas
- reward_accrual: Daily pending reward creation and expiry
- reward_crediting: Claiming pending rewards with pass-up split
- stake_service: Stake creation, claims and read models
"""

from app.services.stake.reward_accrual import (
    HarvestSnapshot,
    RewardAccrualManager,
)
from app.services.stake.reward_crediting import (
    CreditResult,
    RewardCreditProcessor,
)
from app.services.stake.stake_calculator import (
    ScaledReward,
    calculate_core_reward,
    calculate_harvest_reward,
    scale_to_remaining_cap,
    split_core_reward,
)
from app.services.stake.stake_service import StakeCreationResult, StakeService


__all__ = [
    # Calculations
    "ScaledReward",
    "calculate_core_reward",
    "calculate_harvest_reward",
    "scale_to_remaining_cap",
    "split_core_reward",
    # Accrual and crediting
    "CreditResult",
    "HarvestSnapshot",
    "RewardAccrualManager",
    "RewardCreditProcessor",
    # Stakes
    "StakeCreationResult",
    "StakeService",
]
