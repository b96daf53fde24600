"""
Single source of truth for energy pack configuration.

A stake's tier is resolved from its share count (capital / share price).
Each tier fixes the daily core rate, the lifetime reward limit and the
share-count band a stake must fall into.
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple


# Fixed price of a single share in USD
SHARE_PRICE = Decimal("25")


class PackType(str, Enum):
    """Energy pack tiers, ordered by capital."""

    SPARK = "spark"
    PULSE = "pulse"
    CHARGE = "charge"
    QUANTUM = "quantum"


class EnergyPackConfig(NamedTuple):
    """Energy pack tier configuration."""

    pack_type: PackType
    min_shares: int
    max_shares: int | None  # None = unlimited
    daily_roi_rate: Decimal  # fraction of principal per day
    max_reward_limit: int  # lifetime limit, percent of principal
    priority: int  # higher wins when picking a participant's top tier


ENERGY_PACKS: dict[PackType, EnergyPackConfig] = {
    PackType.SPARK: EnergyPackConfig(
        pack_type=PackType.SPARK,
        min_shares=1,
        max_shares=9,
        daily_roi_rate=Decimal("0.0030"),  # 0.3%
        max_reward_limit=200,
        priority=1,
    ),
    PackType.PULSE: EnergyPackConfig(
        pack_type=PackType.PULSE,
        min_shares=10,
        max_shares=99,
        daily_roi_rate=Decimal("0.0050"),  # 0.5%
        max_reward_limit=300,
        priority=2,
    ),
    PackType.CHARGE: EnergyPackConfig(
        pack_type=PackType.CHARGE,
        min_shares=100,
        max_shares=999,
        daily_roi_rate=Decimal("0.0070"),  # 0.7%
        max_reward_limit=400,
        priority=3,
    ),
    PackType.QUANTUM: EnergyPackConfig(
        pack_type=PackType.QUANTUM,
        min_shares=1000,
        max_shares=None,
        daily_roi_rate=Decimal("0.0100"),  # 1.0%
        max_reward_limit=500,
        priority=4,
    ),
}


def get_pack_config(pack_type: str | PackType | None) -> EnergyPackConfig | None:
    """
    Get pack configuration by type.

    Args:
        pack_type: Pack type (string or enum)

    Returns:
        Pack configuration or None if unknown
    """
    if pack_type is None:
        return None
    if isinstance(pack_type, str) and not isinstance(pack_type, PackType):
        try:
            pack_type = PackType(pack_type)
        except ValueError:
            return None
    return ENERGY_PACKS.get(pack_type)


def calculate_shares(amount: Decimal) -> int:
    """Whole shares purchasable with amount."""
    if amount <= 0:
        return 0
    return int(amount // SHARE_PRICE)


def get_pack_for_shares(shares: int) -> PackType | None:
    """
    Resolve the pack tier for a share count.

    Args:
        shares: Number of shares

    Returns:
        Pack type or None if shares < 1
    """
    if shares >= 1000:
        return PackType.QUANTUM
    if shares >= 100:
        return PackType.CHARGE
    if shares >= 10:
        return PackType.PULSE
    if shares >= 1:
        return PackType.SPARK
    return None


def format_share_band(config: EnergyPackConfig) -> str:
    """Human readable share band, e.g. '10-99' or '1000+'."""
    if config.max_shares is None:
        return f"{config.min_shares}+"
    return f"{config.min_shares}-{config.max_shares}"


def validate_stake_amount(
    pack_type: str | PackType, amount: Decimal
) -> tuple[bool, str | None]:
    """
    Validate a stake amount against a pack's share band.

    Args:
        pack_type: Target pack type
        amount: Stake amount in USD

    Returns:
        Tuple of (is_valid, error_message)
    """
    config = get_pack_config(pack_type)
    if config is None:
        return False, "Invalid pack type"

    shares = calculate_shares(amount)
    if shares < 1:
        return False, f"Minimum stake amount is ${SHARE_PRICE} (1 share)"

    if shares < config.min_shares or (
        config.max_shares is not None and shares > config.max_shares
    ):
        return False, (
            f"Invalid share count for {config.pack_type.value} pack. "
            f"Required: {format_share_band(config)} shares"
        )

    return True, None


def get_highest_pack(pack_types: list[str]) -> PackType | None:
    """Pick the highest-priority pack among the given types."""
    highest: EnergyPackConfig | None = None
    for pack_type in pack_types:
        config = get_pack_config(pack_type)
        if config is None:
            continue
        if highest is None or config.priority > highest.priority:
            highest = config
    return highest.pack_type if highest else None


def get_available_packs() -> list[dict]:
    """List all packs with their parameters."""
    return [
        {
            "type": config.pack_type.value,
            "min_shares": config.min_shares,
            "max_shares": config.max_shares,
            "daily_roi_rate": config.daily_roi_rate,
            "max_reward_limit": config.max_reward_limit,
        }
        for config in ENERGY_PACKS.values()
    ]
