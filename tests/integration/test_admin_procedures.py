"""
Integration tests for operator procedures.

Tests cover:
- Team volume rebuild
- Placement regeneration, dry run, backup and restore
- Daily reset
"""

import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from app.config.constants import JOB_CORE_HARVEST, JOB_SYNERGY_FLOW
from app.repositories.genealogy_repository import GenealogyRepository
from app.repositories.job_run_repository import JobRunRepository
from app.repositories.team_volume_repository import TeamVolumeRepository
from app.services.admin import (
    DailyResetService,
    PlacementRegenerator,
    TeamVolumeRebuilder,
)
from app.services.daily_jobs_service import DailyJobsService
from app.services.participant_service import ParticipantService
from app.services.stake.stake_service import StakeService


RUN_DATE = date(2024, 1, 1)


async def build_chain(register, stake):
    """A <- B <- C sponsor chain staking $100, $100 and $1000."""
    a = await register("a")
    b = await register("b", sponsor=a)
    c = await register("c", sponsor=b)
    await stake(a, 100)
    await stake(b, 100)
    await stake(c, 1000)
    return a, b, c


class TestTeamVolumeRebuilder:
    """Rebuilding volumes from active stakes."""

    @pytest.mark.asyncio
    async def test_rebuild_restores_propagated_volume(self, session, register, stake):
        a, b, _ = await build_chain(register, stake)
        volumes = TeamVolumeRepository(session)
        row = await volumes.get_by_user(a.id)
        row.left_volume = Decimal("5")
        row.left_carry = Decimal("50")
        row.daily_paid = Decimal("20")
        await session.commit()

        summary = await TeamVolumeRebuilder(session).rebuild()

        assert summary["users"] == 3
        assert summary["stakes"] == 3
        assert summary["total_volume"] == Decimal("1200")
        assert summary["left_total"] == Decimal("2100")
        assert summary["right_total"] == 0

        row = await volumes.get_by_user(a.id)
        assert row.left_volume == Decimal("1100")
        assert row.left_carry == 0
        assert row.daily_paid == 0
        assert (await volumes.get_by_user(b.id)).left_volume == Decimal("1000")

    @pytest.mark.asyncio
    async def test_inactive_stakes_not_replayed(self, session, register, stake):
        a, _, c = await build_chain(register, stake)
        c_stake = (await StakeService(session).get_user_stakes(c.id))[0]
        await StakeService(session).update_status(c_stake.id, "completed")

        summary = await TeamVolumeRebuilder(session).rebuild()

        assert summary["total_volume"] == Decimal("1200") - Decimal("1000")
        row = await TeamVolumeRepository(session).get_by_user(a.id)
        assert row.left_volume == Decimal("100")


class TestPlacementRegenerator:
    """Regenerating the placement tree."""

    async def _sponsor_with_three(self, register):
        s = await register("s")
        b = await register("b", sponsor=s)
        c = await register("c", sponsor=s)
        d = await register("d", sponsor=s)
        return s, b, c, d

    @pytest.mark.asyncio
    async def test_inactive_users_placed_last(self, session, register, tmp_path):
        s, b, c, d = await self._sponsor_with_three(register)
        b_id, c_id, d_id, s_id = b.id, c.id, d.id, s.id
        await ParticipantService(session).deactivate(b_id)

        result = await PlacementRegenerator(session, backup_dir=tmp_path).regenerate()

        assert result.total_users == 4
        assert result.active_users == 3
        assert result.inactive_users == 1
        assert result.root_users == 1
        assert result.placed_users == 4
        assert result.sponsor_links == 3
        assert result.linear_fallback is False

        edges = GenealogyRepository(session)
        root = await edges.get_by_user(s_id)
        assert root.parent_id is None
        assert root.sponsor_id is None
        c_edge = await edges.get_by_user(c_id)
        assert (c_edge.parent_id, c_edge.position) == (s_id, "left")
        d_edge = await edges.get_by_user(d_id)
        assert (d_edge.parent_id, d_edge.position) == (s_id, "right")
        b_edge = await edges.get_by_user(b_id)
        assert (b_edge.parent_id, b_edge.position) == (c_id, "left")
        assert b_edge.sponsor_id == s_id

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, session, register, tmp_path):
        s, b, c, d = await self._sponsor_with_three(register)
        d_id = d.id
        b_id = b.id

        result = await PlacementRegenerator(session, backup_dir=tmp_path).regenerate(
            dry_run=True, backup=True
        )

        assert result.dry_run is True
        assert result.placed_users == 4
        assert result.root_users == 1
        assert result.backup_file is None
        assert list(tmp_path.iterdir()) == []
        d_edge = await GenealogyRepository(session).get_by_user(d_id)
        assert d_edge.parent_id == b_id

    @pytest.mark.asyncio
    async def test_backup_and_restore(self, session, register, tmp_path):
        await self._sponsor_with_three(register)
        regenerator = PlacementRegenerator(session, backup_dir=tmp_path)

        first = await regenerator.regenerate(backup=True)

        backup = json.loads(Path(first.backup_file).read_text(encoding="utf-8"))
        assert len(backup) == 4
        assert {"user_id", "parent_id", "sponsor_id", "position"} <= set(backup[0])
        assert regenerator.latest_backup() is not None

        second = await regenerator.regenerate(restore_from_backup=True)
        assert second.restored_records == 4
        assert second.placed_users == 4

    @pytest.mark.asyncio
    async def test_restore_without_backup(self, session, register, tmp_path):
        await self._sponsor_with_three(register)

        result = await PlacementRegenerator(
            session, backup_dir=tmp_path / "missing"
        ).regenerate(restore_from_backup=True)

        assert result.restored_records == 0
        assert result.placed_users == 4


class TestDailyReset:
    """Resetting the daily batches of a date."""

    @pytest.mark.asyncio
    async def test_clean_rewards_allows_fresh_accrual(self, session, register, stake):
        await build_chain(register, stake)
        jobs = DailyJobsService(session)
        await jobs.run_core_harvest(RUN_DATE)

        summary = await DailyResetService(session).reset(
            RUN_DATE, clean_rewards=True
        )

        assert summary["run_date"] == "2024-01-01"
        assert summary["jobs_deleted"] == 1
        assert summary["rewards_deleted"] == 3
        assert summary["volumes"] is None

        rerun = await jobs.run_core_harvest(RUN_DATE)
        assert rerun["skipped"] is False
        assert rerun["processed"] == 3

    @pytest.mark.asyncio
    async def test_reset_synergy_clears_both_runs(self, session):
        jobs = DailyJobsService(session)
        await jobs.run_core_harvest(RUN_DATE)
        await jobs.run_synergy_flow(RUN_DATE)

        summary = await DailyResetService(session).reset(
            RUN_DATE, reset_synergy=True
        )

        assert summary["jobs_deleted"] == 2
        runs = JobRunRepository(session)
        assert await runs.get_run(JOB_CORE_HARVEST, RUN_DATE) is None
        assert await runs.get_run(JOB_SYNERGY_FLOW, RUN_DATE) is None

    @pytest.mark.asyncio
    async def test_rebuild_volumes_flag(self, session, register, stake):
        await build_chain(register, stake)

        summary = await DailyResetService(session).reset(
            RUN_DATE, rebuild_volumes=True
        )

        assert summary["volumes"]["stakes"] == 3
        assert summary["jobs_deleted"] == 0
