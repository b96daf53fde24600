"""
Tests for binary cycle settlement.

Tests cover:
- Whole cycles from the weaker leg
- Carry-forward after a paid settlement
- Daily cap limiting cycles
- Weaker-leg flush when no cycle can be paid
"""

from decimal import Decimal

from app.services.synergy.cycle_settlement import (
    cycles_available,
    flush_weaker_leg,
    plan_settlement,
)


class TestCyclesAvailable:
    """Test cycle counting."""

    def test_weaker_leg_decides(self):
        assert cycles_available(Decimal("250"), Decimal("180")) == 1
        assert cycles_available(Decimal("1000"), Decimal("399.99")) == 3

    def test_below_one_cycle(self):
        assert cycles_available(Decimal("99.99"), Decimal("5000")) == 0


class TestPlanSettlement:
    """Test planning a day's settlement."""

    def test_one_cycle_with_carries(self):
        """250 left, 180 right at 5%: one $5 cycle, carries 150/80."""
        plan = plan_settlement(
            Decimal("250"), Decimal("180"), Decimal("0.05"), Decimal("1000")
        )
        assert plan.cycles == 1
        assert plan.reward == Decimal("5")
        assert plan.used_volume == Decimal("100")
        assert plan.left_carry == Decimal("150")
        assert plan.right_carry == Decimal("80")
        assert plan.cap_reached is False

    def test_daily_cap_limits_cycles(self):
        """Five cycles at $10 each, but only $25 of daily headroom."""
        plan = plan_settlement(
            Decimal("500"), Decimal("500"), Decimal("0.10"), Decimal("25")
        )
        assert plan.cycles == 2
        assert plan.reward == Decimal("20")
        assert plan.left_carry == Decimal("300")
        assert plan.right_carry == Decimal("300")

    def test_cap_exhausted_flushes_weaker_leg(self):
        plan = plan_settlement(
            Decimal("250"), Decimal("180"), Decimal("0.05"), Decimal("0")
        )
        assert plan.cap_reached is True
        assert plan.cycles == 0
        assert plan.reward == 0
        assert plan.left_carry == Decimal("70")
        assert plan.right_carry == Decimal("0")


class TestFlushWeakerLeg:
    """Test carries after a cap-reached settlement."""

    def test_right_weaker(self):
        assert flush_weaker_leg(Decimal("300"), Decimal("120")) == (
            Decimal("180"),
            Decimal("0"),
        )

    def test_left_weaker(self):
        assert flush_weaker_leg(Decimal("120"), Decimal("300")) == (
            Decimal("0"),
            Decimal("180"),
        )

    def test_tie_zeroes_both(self):
        assert flush_weaker_leg(Decimal("200"), Decimal("200")) == (
            Decimal("0"),
            Decimal("0"),
        )
