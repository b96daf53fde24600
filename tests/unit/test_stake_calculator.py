"""
Tests for stake reward formulas.

These tests pin the core rate, the harvest pool split and its daily
ceiling, lifetime-cap scaling and the staker/pass-up split of the core
reward.
"""

from decimal import Decimal

from app.services.stake.stake_calculator import (
    calculate_core_reward,
    calculate_harvest_reward,
    scale_to_remaining_cap,
    split_core_reward,
)


class TestCoreReward:
    """Test the fixed daily core reward."""

    def test_pulse_rate(self):
        assert calculate_core_reward(Decimal("1000"), Decimal("0.005")) == Decimal("5")

    def test_spark_rate(self):
        assert calculate_core_reward(Decimal("100"), Decimal("0.003")) == Decimal("0.3")

    def test_zero_amount_or_rate(self):
        assert calculate_core_reward(Decimal("0"), Decimal("0.005")) == 0
        assert calculate_core_reward(Decimal("1000"), Decimal("0")) == 0


class TestHarvestReward:
    """Test the share-weighted harvest pool."""

    def test_share_weighted_slice(self):
        """$10,000 sales, 1,000 shares: pool $2,000, $2 per share."""
        result = calculate_harvest_reward(
            Decimal("10000"), 1000, 40, Decimal("1000")
        )
        # 40 shares * $2 = $80, above the 5% ceiling of $50
        assert result == Decimal("50")

    def test_below_daily_ceiling(self):
        """$1,000 sales, 1,000 shares: $0.20 per share."""
        result = calculate_harvest_reward(
            Decimal("1000"), 1000, 40, Decimal("1000")
        )
        assert result == Decimal("8")

    def test_no_sales(self):
        assert calculate_harvest_reward(Decimal("0"), 1000, 40, Decimal("1000")) == 0

    def test_no_active_shares(self):
        assert calculate_harvest_reward(Decimal("1000"), 0, 40, Decimal("1000")) == 0

    def test_truncated_to_money_precision(self):
        result = calculate_harvest_reward(Decimal("100"), 3, 1, Decimal("1000"))
        assert result == Decimal("6.66666666")


class TestCapScaling:
    """Test proportional scaling against the lifetime cap."""

    def test_fits_unchanged(self):
        scaled = scale_to_remaining_cap(
            Decimal("5"), Decimal("3"), Decimal("8"), Decimal("100")
        )
        assert (scaled.core, scaled.harvest, scaled.total) == (
            Decimal("5"),
            Decimal("3"),
            Decimal("8"),
        )
        assert scaled.ratio == 1

    def test_scaled_proportionally(self):
        scaled = scale_to_remaining_cap(
            Decimal("6"), Decimal("2"), Decimal("8"), Decimal("4")
        )
        assert scaled.ratio == Decimal("0.5")
        assert scaled.core == Decimal("3")
        assert scaled.harvest == Decimal("1")
        assert scaled.total == Decimal("4")


class TestCoreSplit:
    """Test splitting the core reward by the staker's rank percent."""

    def test_unranked_passes_everything_up(self):
        assert split_core_reward(Decimal("5"), Decimal("0")) == (
            Decimal("0"),
            Decimal("5"),
        )

    def test_ranked_keeps_its_percent(self):
        staker, passup = split_core_reward(Decimal("5"), Decimal("25"))
        assert staker == Decimal("1.25")
        assert passup == Decimal("3.75")

    def test_top_rank_keeps_everything(self):
        assert split_core_reward(Decimal("5"), Decimal("100")) == (
            Decimal("5"),
            Decimal("0"),
        )
