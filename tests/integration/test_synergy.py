"""
Integration tests for Synergy Flow binary cycles.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.models.enums import TransactionType
from app.repositories.team_volume_repository import TeamVolumeRepository
from app.repositories.transaction_repository import TransactionRepository
from app.services.synergy import SynergyService
from app.services.wallet_service import WalletService


RUN_DATE = date(2024, 1, 1)


async def build_legs(register, stake, right_verified=True):
    """Root holding $100 with a $250 left leg and a $180 right leg."""
    root = await register("root")
    left = await register("left", sponsor=root)
    right = await register("right", sponsor=root, is_verified=right_verified)
    await stake(root, 100)
    await stake(left, 250)
    await stake(right, 180)
    return root, left, right


class TestProcessUserCycles:
    """Single-participant settlement."""

    @pytest.mark.asyncio
    async def test_one_cycle_paid_and_carried(self, session, register, stake):
        root, _, _ = await build_legs(register, stake)
        balance_before = await WalletService(session).get_balance(root.id)

        result = await SynergyService(session).process_user_cycles(root.id, RUN_DATE)
        await session.commit()

        assert result.cycles == 1
        assert result.reward == Decimal("5")
        assert result.eligible is True
        assert result.pack_type == "spark"

        row = await TeamVolumeRepository(session).get_by_user(root.id)
        assert row.left_volume == 0
        assert row.right_volume == 0
        assert row.left_carry == Decimal("150")
        assert row.right_carry == Decimal("80")
        assert row.daily_paid == Decimal("5")

        balance_after = await WalletService(session).get_balance(root.id)
        assert balance_after - balance_before == Decimal("5")

        ledger = await TransactionRepository(session).find_for_user(
            root.id, TransactionType.SYNERGY_FLOW.value
        )
        assert len(ledger) == 1
        assert ledger[0].description == "Synergy Flow payout (1 cycles @ 5%)"

    @pytest.mark.asyncio
    async def test_second_run_uses_only_carry(self, session, register, stake):
        root, _, _ = await build_legs(register, stake)
        service = SynergyService(session)

        await service.process_user_cycles(root.id, RUN_DATE)
        await session.commit()
        second = await service.process_user_cycles(root.id, RUN_DATE)

        # 150/80 carry is below a full cycle on the right
        assert second.cycles == 0
        assert second.reward == 0

    @pytest.mark.asyncio
    async def test_unverified_leg_is_ineligible(self, session, register, stake):
        root, _, _ = await build_legs(register, stake, right_verified=False)

        result = await SynergyService(session).process_user_cycles(root.id, RUN_DATE)

        assert result.ineligible is True
        assert result.cycles == 0
        row = await TeamVolumeRepository(session).get_by_user(root.id)
        assert row.left_volume == Decimal("250")
        assert row.right_volume == Decimal("180")

    @pytest.mark.asyncio
    async def test_daily_cap_flushes_weaker_leg(self, session, register, stake):
        root, _, _ = await build_legs(register, stake)
        volumes = TeamVolumeRepository(session)
        row = await volumes.get_by_user(root.id)
        row.daily_paid = Decimal("100")
        row.last_reset_date = RUN_DATE
        await session.commit()

        result = await SynergyService(session).process_user_cycles(root.id, RUN_DATE)
        await session.commit()

        assert result.cap_reached is True
        assert result.reward == 0
        row = await volumes.get_by_user(root.id)
        assert row.left_carry == Decimal("70")
        assert row.right_carry == 0

    @pytest.mark.asyncio
    async def test_daily_paid_resets_on_new_day(self, session, register, stake):
        root, _, _ = await build_legs(register, stake)
        volumes = TeamVolumeRepository(session)
        row = await volumes.get_by_user(root.id)
        row.daily_paid = Decimal("100")
        row.last_reset_date = date(2023, 12, 31)
        await session.commit()

        result = await SynergyService(session).process_user_cycles(root.id, RUN_DATE)

        assert result.cycles == 1
        row = await volumes.get_by_user(root.id)
        assert row.daily_paid == Decimal("5")
        assert row.last_reset_date == RUN_DATE


class TestProcessAllUsers:
    """Daily sweep."""

    @pytest.mark.asyncio
    async def test_sweep_totals(self, session, register, stake):
        await build_legs(register, stake)

        summary = await SynergyService(session).process_all_users(RUN_DATE)

        assert summary["processed"] == 1
        assert summary["cycles"] == 1
        assert Decimal(summary["rewards"]) == Decimal("5")
        assert summary["errors"] == []

    @pytest.mark.asyncio
    async def test_sweep_without_volume(self, session):
        summary = await SynergyService(session).process_all_users(RUN_DATE)
        assert summary["processed"] == 0
        assert Decimal(summary["rewards"]) == 0
