"""Tests for rank-difference pass-up allocation."""

from decimal import Decimal

from app.services.bonus.power_passup_distributor import (
    chain_from_pointers,
    compute_override_percent_for_target,
    compute_passup_allocations,
)


CHAIN = [11, 12, 13, 14, 15]
PERCENTS = {
    11: Decimal("5"),
    12: Decimal("25"),
    13: Decimal("40"),
    14: Decimal("15"),
    15: Decimal("70"),
}


class TestPassUpAllocations:
    """Test the pass-up walk on an in-memory chain."""

    def test_marginal_differences(self):
        """Percents 5, 25, 40, 15, 70 on $100 pay 5, 20, 15, 0, 30."""
        result = compute_passup_allocations(CHAIN, PERCENTS, Decimal("100"))

        paid = {a.sponsor_id: a.amount for a in result.allocations}
        assert paid == {
            11: Decimal("5"),
            12: Decimal("20"),
            13: Decimal("15"),
            15: Decimal("30"),
        }
        assert result.distributed == Decimal("70")
        assert result.baseline_percent == Decimal("70")

    def test_lower_rank_does_not_reset_baseline(self):
        result = compute_passup_allocations(
            [1, 2, 3],
            {1: Decimal("40"), 2: Decimal("10"), 3: Decimal("55")},
            Decimal("10"),
        )
        assert [a.percent for a in result.allocations] == [
            Decimal("40"),
            Decimal("15"),
        ]

    def test_unranked_chain_pays_nothing(self):
        result = compute_passup_allocations(CHAIN, {}, Decimal("100"))
        assert result.allocations == []
        assert result.distributed == 0

    def test_zero_core(self):
        result = compute_passup_allocations(CHAIN, PERCENTS, Decimal("0"))
        assert result.allocations == []


class TestOverrideForTarget:
    """Test the percent a single upline would earn."""

    def test_target_above_baseline(self):
        assert compute_override_percent_for_target(
            CHAIN, 13, PERCENTS
        ) == Decimal("15")

    def test_target_below_baseline(self):
        assert compute_override_percent_for_target(CHAIN, 14, PERCENTS) == 0

    def test_target_not_in_chain(self):
        assert compute_override_percent_for_target(CHAIN, 99, PERCENTS) == 0


class TestChainFromPointers:
    """Test sponsor chains resolved from a pointer map."""

    def test_walks_to_root(self):
        pointers = {4: 3, 3: 2, 2: 1, 1: 1}
        assert chain_from_pointers(4, pointers) == [3, 2, 1]

    def test_respects_depth(self):
        pointers = {i: i - 1 for i in range(1, 20)}
        assert len(chain_from_pointers(19, pointers, max_levels=9)) == 9

    def test_stops_on_cycle(self):
        pointers = {1: 2, 2: 3, 3: 1}
        assert chain_from_pointers(1, pointers) == [2, 3]
