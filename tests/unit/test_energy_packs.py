"""
Tests for energy pack configuration.

Tests cover:
- Share count from capital
- Pack tier from share count, at every band edge
- Amount validation against a pack's band
- Highest pack selection
"""

from decimal import Decimal

import pytest

from app.config.energy_packs import (
    PackType,
    calculate_shares,
    get_highest_pack,
    get_pack_config,
    get_pack_for_shares,
    validate_stake_amount,
)


class TestShareCalculation:
    """Test share count from capital."""

    def test_whole_shares(self):
        assert calculate_shares(Decimal("250")) == 10

    def test_partial_share_is_dropped(self):
        assert calculate_shares(Decimal("49.99")) == 1

    def test_below_one_share(self):
        assert calculate_shares(Decimal("24.99")) == 0

    def test_zero_and_negative(self):
        assert calculate_shares(Decimal("0")) == 0
        assert calculate_shares(Decimal("-100")) == 0


class TestPackBands:
    """Test tier resolution at band edges."""

    @pytest.mark.parametrize(
        "shares,expected",
        [
            (0, None),
            (1, PackType.SPARK),
            (9, PackType.SPARK),
            (10, PackType.PULSE),
            (99, PackType.PULSE),
            (100, PackType.CHARGE),
            (999, PackType.CHARGE),
            (1000, PackType.QUANTUM),
            (50000, PackType.QUANTUM),
        ],
    )
    def test_pack_for_shares(self, shares, expected):
        assert get_pack_for_shares(shares) == expected

    def test_pack_parameters(self):
        """Rates and lifetime limits rise with the tier."""
        pulse = get_pack_config(PackType.PULSE)
        assert pulse.daily_roi_rate == Decimal("0.0050")
        assert pulse.max_reward_limit == 300

        quantum = get_pack_config("quantum")
        assert quantum.daily_roi_rate == Decimal("0.0100")
        assert quantum.max_reward_limit == 500
        assert quantum.max_shares is None

    def test_unknown_pack(self):
        assert get_pack_config("nebula") is None
        assert get_pack_config(None) is None


class TestStakeValidation:
    """Test amount validation against a pack."""

    def test_valid_amount(self):
        assert validate_stake_amount(PackType.PULSE, Decimal("1000")) == (True, None)

    def test_below_one_share(self):
        valid, error = validate_stake_amount(PackType.SPARK, Decimal("10"))
        assert valid is False
        assert "Minimum stake amount" in error

    def test_outside_band(self):
        valid, error = validate_stake_amount(PackType.SPARK, Decimal("250"))
        assert valid is False
        assert "1-9" in error

    def test_invalid_pack(self):
        assert validate_stake_amount("nebula", Decimal("100")) == (
            False,
            "Invalid pack type",
        )


class TestHighestPack:
    """Test picking a participant's top tier."""

    def test_highest_by_priority(self):
        assert get_highest_pack(["spark", "charge", "pulse"]) == PackType.CHARGE

    def test_unknown_types_ignored(self):
        assert get_highest_pack(["nebula", "spark"]) == PackType.SPARK

    def test_empty(self):
        assert get_highest_pack([]) is None
