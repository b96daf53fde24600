"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)

# Admin Procedures
from app.services.admin import (
    DailyResetService,
    PlacementRegenerator,
    TeamVolumeRebuilder,
)

# Bonus Distributors
from app.services.bonus import (
    CatalystDistributor,
    PowerPassUpDistributor,
)
from app.services.daily_jobs_service import DailyJobsService
from app.services.job_run_service import JobRunService
from app.services.participant_service import ParticipantService

# Placement
from app.services.placement import PlacementFinder, TreeWalker
from app.services.rank_service import RankService
from app.services.reward_cap_service import RewardCapService

# Stake Services
from app.services.stake import (
    RewardAccrualManager,
    RewardCreditProcessor,
    StakeService,
)

# Synergy Services
from app.services.synergy import SynergyService, VolumePropagator
from app.services.wallet_service import WalletService


__all__ = [
    # Base Infrastructure
    "BaseService",
    "transaction",
    "log_operation",
    # Placement Package
    "PlacementFinder",
    "TreeWalker",
    # Stake Package
    "RewardAccrualManager",
    "RewardCreditProcessor",
    "StakeService",
    # Bonus Package
    "CatalystDistributor",
    "PowerPassUpDistributor",
    # Synergy Package
    "SynergyService",
    "VolumePropagator",
    # Admin Package
    "DailyResetService",
    "PlacementRegenerator",
    "TeamVolumeRebuilder",
    # Core
    "DailyJobsService",
    "JobRunService",
    "ParticipantService",
    "RankService",
    "RewardCapService",
    "WalletService",
]
