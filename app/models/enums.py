"""
Model enumerations.

String-valued enums stored as plain strings in the database.
"""

from enum import StrEnum


class UserRole(StrEnum):
    """Participant role."""

    USER = "user"
    ADMIN = "admin"


class PlacementPosition(StrEnum):
    """Slot under a binary-tree parent."""

    LEFT = "left"
    RIGHT = "right"


class StakeStatus(StrEnum):
    """Stake lifecycle."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RewardStatus(StrEnum):
    """Daily stake reward lifecycle."""

    PENDING = "pending"
    CREDITED = "credited"
    EXPIRED = "expired"


class JobStatus(StrEnum):
    """Daily batch run state."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class TransactionType(StrEnum):
    """Ledger transaction type."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    STAKE = "stake"
    STAKE_REWARD = "stake_reward"
    CATALYST_BONUS = "catalyst_bonus"
    SYNERGY_FLOW = "synergy_flow"
    POWER_PASSUP = "power_passup"


class TransactionStatus(StrEnum):
    """Ledger transaction status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class HarvestSalesSource(StrEnum):
    """Which completed transactions count as daily platform sales."""

    STAKES = "stakes"
    DEPOSITS = "deposits"
    COMBINED = "combined"


# Transaction types consuming a participant's shared reward cap
INCENTIVE_TYPES: tuple[TransactionType, ...] = (
    TransactionType.CATALYST_BONUS,
    TransactionType.SYNERGY_FLOW,
    TransactionType.POWER_PASSUP,
)
