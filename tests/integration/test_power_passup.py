"""
Integration tests for the power pass-up distribution.

Tests cover:
- Rank-difference overrides paid up a five-level sponsor chain
- Sponsors at or below the running baseline receive nothing
- A sponsor with an exhausted cap still advances the baseline
"""

from decimal import Decimal

import pytest

from app.models.enums import StakeStatus
from app.services.bonus.power_passup_distributor import PowerPassUpDistributor
from app.services.rank_service import RankService
from app.services.stake.stake_service import StakeService
from app.services.wallet_service import WalletService


# (rank key, override percent) from the direct sponsor upwards
CHAIN_RANKS = [
    ("spark", Decimal("5")),
    ("surge", Decimal("25")),
    ("flux", Decimal("40")),
    ("charge", Decimal("15")),
    ("current", Decimal("70")),
]


async def build_ranked_chain(session, register, stake):
    """
    Origin under five staked sponsors holding the ranks in CHAIN_RANKS.

    Returns:
        Tuple of (origin, sponsors nearest first, sponsor stakes)
    """
    sponsors = []
    above = None
    for level in range(len(CHAIN_RANKS), 0, -1):
        above = await register(f"s{level}", sponsor=above)
        sponsors.insert(0, above)
    origin = await register("origin", sponsor=sponsors[0])

    stakes = []
    for sponsor in reversed(sponsors):
        stakes.insert(0, (await stake(sponsor, 1000)).stake)

    ranks = RankService(session)
    for sponsor, (rank, percent) in zip(sponsors, CHAIN_RANKS):
        await ranks.set_user_rank(sponsor.id, rank, percent)
    await session.commit()
    return origin, sponsors, stakes


async def balances(session, users):
    wallets = WalletService(session)
    return {user.id: await wallets.get_balance(user.id) for user in users}


class TestPowerPassUpDistribution:
    """PowerPassUpDistributor.distribute against stored ranks and caps."""

    @pytest.mark.asyncio
    async def test_overrides_follow_rank_differences(self, session, register, stake):
        origin, sponsors, _ = await build_ranked_chain(session, register, stake)
        before = await balances(session, sponsors)

        result = await PowerPassUpDistributor(session).distribute(
            origin.id, Decimal("100")
        )

        assert result.distributed == Decimal("70")
        assert result.baseline_percent == Decimal("70")
        assert [(a.sponsor_id, a.percent, a.amount) for a in result.allocations] == [
            (sponsors[0].id, Decimal("5"), Decimal("5")),
            (sponsors[1].id, Decimal("20"), Decimal("20")),
            (sponsors[2].id, Decimal("15"), Decimal("15")),
            (sponsors[4].id, Decimal("30"), Decimal("30")),
        ]

        after = await balances(session, sponsors)
        gains = [after[s.id] - before[s.id] for s in sponsors]
        assert gains == [
            Decimal("5"),
            Decimal("20"),
            Decimal("15"),
            Decimal("0"),
            Decimal("30"),
        ]

    @pytest.mark.asyncio
    async def test_exhausted_cap_still_advances_baseline(
        self, session, register, stake
    ):
        origin, sponsors, stakes = await build_ranked_chain(session, register, stake)
        await StakeService(session).update_status(
            stakes[1].id, StakeStatus.COMPLETED.value
        )
        await session.commit()
        before = await balances(session, sponsors)

        result = await PowerPassUpDistributor(session).distribute(
            origin.id, Decimal("100")
        )

        # The capped 25% sponsor is paid nothing, yet the next sponsor
        # only earns 40 - 25
        assert result.distributed == Decimal("50")
        assert result.baseline_percent == Decimal("70")
        assert [(a.sponsor_id, a.amount) for a in result.allocations] == [
            (sponsors[0].id, Decimal("5")),
            (sponsors[2].id, Decimal("15")),
            (sponsors[4].id, Decimal("30")),
        ]

        after = await balances(session, sponsors)
        assert after[sponsors[1].id] == before[sponsors[1].id]
        assert after[sponsors[2].id] - before[sponsors[2].id] == Decimal("15")

    @pytest.mark.asyncio
    async def test_unranked_chain_distributes_nothing(self, session, register):
        root = await register("root")
        origin = await register("origin", sponsor=root)

        result = await PowerPassUpDistributor(session).distribute(
            origin.id, Decimal("100")
        )

        assert result.distributed == 0
        assert result.allocations == []
        assert result.baseline_percent == 0
