"""
Stake calculator.

Pure reward formulas for energy pack stakes. No database access; services
feed in the values they read.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from app.config.constants import HARVEST_DAILY_CAP_RATE, HARVEST_POOL_RATE
from app.utils.money import to_money


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def calculate_core_reward(amount: Decimal, daily_rate: Decimal) -> Decimal:
    """
    Fixed daily core reward.

    Args:
        amount: Stake principal
        daily_rate: Tier daily rate as a fraction (0.005 = 0.5%)

    Returns:
        Core reward for one day

    Example:
        >>> calculate_core_reward(Decimal("1000"), Decimal("0.005"))
        Decimal('5.00000000')
    """
    if amount <= 0 or daily_rate <= 0:
        return ZERO
    return to_money(amount * daily_rate)


def calculate_harvest_reward(
    total_sales: Decimal,
    total_active_shares: int,
    stake_shares: int,
    stake_amount: Decimal,
) -> Decimal:
    """
    Harvest reward: a share-weighted slice of the daily harvest pool.

    pool = 20% of sales; per-share = pool / all active shares; the result
    is capped at 5% of the stake principal.

    Args:
        total_sales: Platform sales for the date
        total_active_shares: Shares across every active stake
        stake_shares: Shares of this stake
        stake_amount: Principal of this stake

    Returns:
        Harvest reward (0 without sales or shares)
    """
    if total_sales <= 0 or total_active_shares <= 0:
        return ZERO

    pool = total_sales * HARVEST_POOL_RATE
    per_share = pool / Decimal(total_active_shares)
    raw = per_share * Decimal(stake_shares)
    daily_cap = stake_amount * HARVEST_DAILY_CAP_RATE

    if raw > daily_cap:
        logger.debug(
            "Harvest reward capped",
            extra={"raw": str(raw), "cap": str(daily_cap)},
        )
    return to_money(min(raw, daily_cap))


@dataclass
class ScaledReward:
    """Pending reward after lifetime-cap scaling."""

    core: Decimal
    harvest: Decimal
    total: Decimal
    ratio: Decimal


def scale_to_remaining_cap(
    core: Decimal, harvest: Decimal, total: Decimal, remaining_cap: Decimal
) -> ScaledReward:
    """
    Scale core and harvest proportionally so total fits remaining_cap.

    Args:
        core: Raw core reward
        harvest: Raw harvest reward
        total: Raw total reward
        remaining_cap: Lifetime headroom of the stake (> 0)

    Returns:
        ScaledReward with ratio = min(1, remaining_cap / total)
    """
    if total <= 0 or total <= remaining_cap:
        return ScaledReward(core=core, harvest=harvest, total=total, ratio=Decimal("1"))

    ratio = remaining_cap / total
    return ScaledReward(
        core=to_money(core * ratio),
        harvest=to_money(harvest * ratio),
        total=to_money(total * ratio),
        ratio=ratio,
    )


def split_core_reward(
    core: Decimal, rank_percent: Decimal
) -> tuple[Decimal, Decimal]:
    """
    Split a core reward between the staker and the pass-up chain.

    Args:
        core: Core reward being credited
        rank_percent: Staker's own override percent

    Returns:
        Tuple of (staker_portion, passup_portion)
    """
    staker_portion = to_money(core * rank_percent / HUNDRED)
    return staker_portion, core - staker_portion
