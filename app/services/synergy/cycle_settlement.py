"""
Cycle settlement.

Pure binary-cycle arithmetic: how many $100/$100 cycles a participant is
paid for and what is carried to the next day.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal

from app.config.constants import CYCLE_SIZE
from app.utils.money import to_money


ZERO = Decimal("0")


@dataclass
class CycleSettlement:
    """Planned outcome of one settlement."""

    cycles: int
    used_volume: Decimal
    reward: Decimal
    left_carry: Decimal
    right_carry: Decimal
    cap_reached: bool = False


def cycles_available(left_total: Decimal, right_total: Decimal) -> int:
    """Whole cycles the weaker leg supports."""
    weaker = min(left_total, right_total)
    if weaker < CYCLE_SIZE:
        return 0
    return int((weaker / CYCLE_SIZE).to_integral_value(rounding=ROUND_FLOOR))


def flush_weaker_leg(
    left_total: Decimal, right_total: Decimal
) -> tuple[Decimal, Decimal]:
    """
    Carries after a cap-reached settlement.

    The weaker leg (left on a tie) drops to zero and the stronger leg keeps
    only the difference.

    Returns:
        Tuple of (left_carry, right_carry)
    """
    difference = abs(left_total - right_total)
    if left_total <= right_total:
        return ZERO, difference
    return difference, ZERO


def plan_settlement(
    left_total: Decimal,
    right_total: Decimal,
    rate: Decimal,
    remaining_daily_cap: Decimal,
) -> CycleSettlement:
    """
    Plan a settlement before the shared incentive cap is applied.

    Args:
        left_total: Left volume plus carry
        right_total: Right volume plus carry
        rate: Synergy rate of the participant's top pack
        remaining_daily_cap: Daily cap minus what was already paid today

    Returns:
        CycleSettlement; cap_reached with flushed carries when the daily
        cap leaves room for no cycle

    Example:
        250 left, 180 right at 5% pays one cycle ($5) and carries 150/80.
    """
    available = cycles_available(left_total, right_total)
    per_cycle = CYCLE_SIZE * rate

    by_cap = 0
    if per_cycle > 0 and remaining_daily_cap > 0:
        by_cap = int(
            (remaining_daily_cap / per_cycle).to_integral_value(
                rounding=ROUND_FLOOR
            )
        )
    cycles = min(available, by_cap)

    if cycles <= 0:
        left_carry, right_carry = flush_weaker_leg(left_total, right_total)
        return CycleSettlement(
            cycles=0,
            used_volume=ZERO,
            reward=ZERO,
            left_carry=left_carry,
            right_carry=right_carry,
            cap_reached=True,
        )

    used = CYCLE_SIZE * cycles
    return CycleSettlement(
        cycles=cycles,
        used_volume=used,
        reward=to_money(per_cycle * cycles),
        left_carry=left_total - used,
        right_carry=right_total - used,
    )
