"""Tests for money helpers and cap clamping."""

from decimal import Decimal

from app.services.reward_cap_service import clamp_amount
from app.utils.money import format_usd, to_money


class TestToMoney:
    """Test truncation to stored precision."""

    def test_truncates_not_rounds(self):
        assert to_money(Decimal("1.999999999")) == Decimal("1.99999999")

    def test_accepts_strings_and_ints(self):
        assert to_money("2.5") == Decimal("2.50000000")
        assert to_money(3) == Decimal("3")

    def test_format_usd(self):
        assert format_usd(Decimal("1234.5")) == "$1,234.50"


class TestClampAmount:
    """Test clamping an incentive to available headroom."""

    def test_within_headroom(self):
        assert clamp_amount(Decimal("90"), Decimal("200")) == Decimal("90")

    def test_clamped(self):
        assert clamp_amount(Decimal("90"), Decimal("12.5")) == Decimal("12.5")

    def test_exhausted(self):
        assert clamp_amount(Decimal("90"), Decimal("0")) == 0

    def test_never_negative(self):
        assert clamp_amount(Decimal("90"), Decimal("-5")) == 0
