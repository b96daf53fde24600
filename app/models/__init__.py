"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.enums import (
    INCENTIVE_TYPES,
    HarvestSalesSource,
    JobStatus,
    PlacementPosition,
    RewardStatus,
    StakeStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
)
from app.models.genealogy import Genealogy
from app.models.job_run import JobRun
from app.models.stake import Stake
from app.models.stake_reward import StakeReward
from app.models.team_cycle import TeamCycle
from app.models.team_volume import TeamVolume
from app.models.transaction import Transaction
from app.models.user import User
from app.models.user_rank import UserRank
from app.models.wallet import Wallet


__all__ = [
    "Base",
    # Enums
    "INCENTIVE_TYPES",
    "HarvestSalesSource",
    "JobStatus",
    "PlacementPosition",
    "RewardStatus",
    "StakeStatus",
    "TransactionStatus",
    "TransactionType",
    "UserRole",
    # Models
    "Genealogy",
    "JobRun",
    "Stake",
    "StakeReward",
    "TeamCycle",
    "TeamVolume",
    "Transaction",
    "User",
    "UserRank",
    "Wallet",
]
