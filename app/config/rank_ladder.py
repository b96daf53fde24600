"""
Rank ladder configuration.

Each rank is reached when direct referrals, active pack value and team
volume all meet that rank's thresholds. The override percent feeds the
power pass-up distribution of core rewards.
"""

from decimal import Decimal
from typing import NamedTuple


UNRANKED = "unranked"


class RankConfig(NamedTuple):
    """Thresholds and override percent for one rank."""

    key: str
    min_directs: int
    min_pack_value: Decimal
    min_team_volume: Decimal
    percent: Decimal


RANK_LADDER: list[RankConfig] = [
    RankConfig("spark", 1, Decimal("25"), Decimal("1000"), Decimal("5")),
    RankConfig("pulse", 2, Decimal("250"), Decimal("5000"), Decimal("10")),
    RankConfig("charge", 3, Decimal("500"), Decimal("15000"), Decimal("15")),
    RankConfig("surge", 4, Decimal("1000"), Decimal("50000"), Decimal("25")),
    RankConfig("flux", 5, Decimal("2500"), Decimal("100000"), Decimal("40")),
    RankConfig("volt", 6, Decimal("5000"), Decimal("250000"), Decimal("55")),
    RankConfig("current", 7, Decimal("10000"), Decimal("500000"), Decimal("70")),
    RankConfig("magnet", 8, Decimal("25000"), Decimal("1000000"), Decimal("85")),
    RankConfig("quantum", 9, Decimal("50000"), Decimal("2000000"), Decimal("100")),
]


def get_rank_config(key: str) -> RankConfig | None:
    """Find a rank by key."""
    for rank in RANK_LADDER:
        if rank.key == key:
            return rank
    return None


def get_rank_percent(key: str) -> Decimal:
    """Override percent for a rank key; 0 for unranked or unknown keys."""
    rank = get_rank_config(key)
    return rank.percent if rank else Decimal("0")


def find_qualifying_rank(
    direct_referrals: int,
    pack_amount: Decimal,
    team_volume: Decimal,
) -> RankConfig | None:
    """
    Highest rank whose three thresholds are all met.

    Every rank re-checks all thresholds on its own, so meeting a higher
    rank does not depend on having met the ranks below it.
    """
    target: RankConfig | None = None
    for rank in RANK_LADDER:
        if (
            direct_referrals >= rank.min_directs
            and pack_amount >= rank.min_pack_value
            and team_volume >= rank.min_team_volume
        ):
            target = rank
    return target


def find_next_rank(current_percent: Decimal) -> RankConfig | None:
    """First rank with a percent above current_percent."""
    for rank in sorted(RANK_LADDER, key=lambda r: r.percent):
        if rank.percent > current_percent:
            return rank
    return None
