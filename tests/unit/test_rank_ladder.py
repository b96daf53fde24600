"""
Tests for rank ladder evaluation.

Tests cover:
- Highest fully-qualified rank
- Next rank above a stored percent
- Progress toward the next rank
"""

from decimal import Decimal

from app.config.rank_ladder import (
    find_next_rank,
    find_qualifying_rank,
    get_rank_config,
    get_rank_percent,
)
from app.services.rank_service import compute_progress


class TestQualifyingRank:
    """Test picking the highest rank whose thresholds are all met."""

    def test_nothing_qualifies(self):
        assert find_qualifying_rank(0, Decimal("0"), Decimal("0")) is None

    def test_first_rank(self):
        rank = find_qualifying_rank(1, Decimal("25"), Decimal("1000"))
        assert rank.key == "spark"
        assert rank.percent == Decimal("5")

    def test_weakest_metric_limits_rank(self):
        """Charge-level volume and pack, but only two directs."""
        rank = find_qualifying_rank(2, Decimal("500"), Decimal("15000"))
        assert rank.key == "pulse"

    def test_top_rank(self):
        rank = find_qualifying_rank(9, Decimal("50000"), Decimal("2000000"))
        assert rank.key == "quantum"
        assert rank.percent == Decimal("100")


class TestRankLookup:
    """Test rank lookups."""

    def test_percent_of_unknown_rank(self):
        assert get_rank_percent("unranked") == 0
        assert get_rank_percent("surge") == Decimal("25")

    def test_next_rank(self):
        assert find_next_rank(Decimal("0")).key == "spark"
        assert find_next_rank(Decimal("25")).key == "flux"
        assert find_next_rank(Decimal("100")) is None


class TestRankProgress:
    """Test progress toward the next rank."""

    def test_weakest_ratio(self):
        target = get_rank_config("pulse")
        percent, remaining = compute_progress(
            1, Decimal("250"), Decimal("4000"), target
        )
        # directs 1/2 = 50%, pack 100%, volume 80%
        assert percent == 50
        assert remaining == {
            "directs": 1,
            "pack_amount": Decimal("0"),
            "team_volume": Decimal("1000"),
        }

    def test_clamped_to_hundred(self):
        target = get_rank_config("spark")
        percent, _ = compute_progress(5, Decimal("1000"), Decimal("9000"), target)
        assert percent == 100

    def test_top_of_ladder(self):
        assert compute_progress(9, Decimal("0"), Decimal("0"), None) == (100, {})
