"""
Integration tests for the guarded daily batches.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.config.constants import (
    JOB_CORE_HARVEST,
    JOB_RANK_PROMOTE,
    JOB_REWARD_CREDIT,
    JOB_SYNERGY_FLOW,
)
from app.models.enums import JobStatus, RewardStatus
from app.services.daily_jobs_service import DailyJobsService
from app.services.job_run_service import JobRunService
from app.services.stake.reward_accrual import RewardAccrualManager
from app.services.stake.reward_crediting import RewardCreditProcessor
from app.services.stake.stake_service import StakeService
from app.services.synergy.synergy_service import SynergyService
from app.services.wallet_service import WalletService
from app.utils.datetime_utils import start_of_day


RUN_DATE = date(2024, 1, 1)
CLAIM_TIME = start_of_day(RUN_DATE) + timedelta(hours=2)


async def accrued_chain(session, register, stake):
    """A <- B <- C with $100, $100 and $1000 stakes accrued for RUN_DATE."""
    a = await register("a")
    b = await register("b", sponsor=a)
    c = await register("c", sponsor=b)
    await stake(a, 100)
    await stake(b, 100)
    created = await stake(c, 1000)
    await DailyJobsService(session).run_core_harvest(RUN_DATE)
    return a, b, c, created.stake


class TestDailyJobGuard:
    """Once-per-day guard around the batches."""

    @pytest.mark.asyncio
    async def test_first_run_records_success(self, session, register, stake):
        user = await register("solo")
        await stake(user, 100)

        result = await DailyJobsService(session).run_core_harvest(RUN_DATE)

        assert result["skipped"] is False
        assert result["run_date"] == "2024-01-01"
        assert result["processed"] == 1
        assert result["rewards_created"] == 1

        run = await JobRunService(session).get_status(JOB_CORE_HARVEST)
        assert run.status == JobStatus.SUCCESS.value
        assert run.finished_at is not None
        assert run.meta["processed"] == 1

    @pytest.mark.asyncio
    async def test_second_run_same_day_skipped(self, session):
        jobs = DailyJobsService(session)

        await jobs.run_core_harvest(RUN_DATE)
        second = await jobs.run_core_harvest(RUN_DATE)

        assert second == {"skipped": True, "message": "already ran today"}

    @pytest.mark.asyncio
    async def test_next_day_runs_again(self, session):
        jobs = DailyJobsService(session)

        await jobs.run_core_harvest(RUN_DATE)
        result = await jobs.run_core_harvest(date(2024, 1, 2))

        assert result["skipped"] is False

    @pytest.mark.asyncio
    async def test_date_string_accepted(self, session):
        result = await DailyJobsService(session).run_rank_promotion("2024-01-01")

        assert result["skipped"] is False
        run = await JobRunService(session).get_status(JOB_RANK_PROMOTE)
        assert run.run_date == RUN_DATE

    @pytest.mark.asyncio
    async def test_failure_marks_run_failed_and_reraises(self, session, monkeypatch):
        async def broken_accrual(self, run_date=None):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(RewardAccrualManager, "accrue_all", broken_accrual)

        with pytest.raises(RuntimeError, match="database unavailable"):
            await DailyJobsService(session).run_core_harvest(RUN_DATE)

        run = await JobRunService(session).get_status(JOB_CORE_HARVEST)
        assert run.status == JobStatus.FAILED.value
        assert run.meta == {"error": "database unavailable"}

    @pytest.mark.asyncio
    async def test_running_row_skips_without_sweeping(self, session, monkeypatch):
        async def unexpected_sweep(self, run_date=None):
            raise AssertionError("sweep ran while another worker holds the date")

        monkeypatch.setattr(SynergyService, "process_all_users", unexpected_sweep)
        runs = JobRunService(session)
        _, created = await runs.start(JOB_SYNERGY_FLOW, RUN_DATE)

        result = await DailyJobsService(session).run_synergy_flow(RUN_DATE)

        assert created is True
        assert result == {"skipped": True, "message": "already running"}
        run = await runs.get_status(JOB_SYNERGY_FLOW)
        assert run.status == JobStatus.RUNNING.value
        assert run.finished_at is None

    @pytest.mark.asyncio
    async def test_failed_row_requires_reset(self, session, monkeypatch):
        async def broken_accrual(self, run_date=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(RewardAccrualManager, "accrue_all", broken_accrual)
        with pytest.raises(RuntimeError):
            await DailyJobsService(session).run_core_harvest(RUN_DATE)
        monkeypatch.undo()

        result = await DailyJobsService(session).run_core_harvest(RUN_DATE)

        assert result == {"skipped": True, "message": "failed, reset required"}
        run = await JobRunService(session).get_status(JOB_CORE_HARVEST)
        assert run.status == JobStatus.FAILED.value
        assert run.meta == {"error": "boom"}

    @pytest.mark.asyncio
    async def test_failed_run_reruns_after_reset(self, session, monkeypatch):
        async def broken_accrual(self, run_date=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(RewardAccrualManager, "accrue_all", broken_accrual)
        with pytest.raises(RuntimeError):
            await DailyJobsService(session).run_core_harvest(RUN_DATE)
        monkeypatch.undo()

        runs = JobRunService(session)
        deleted = await runs.reset(JOB_CORE_HARVEST, RUN_DATE)
        result = await DailyJobsService(session).run_core_harvest(RUN_DATE)

        assert deleted == 1
        assert result["skipped"] is False
        run = await runs.get_status(JOB_CORE_HARVEST)
        assert run.status == JobStatus.SUCCESS.value

    @pytest.mark.asyncio
    async def test_reset_allows_rerun(self, session):
        jobs = DailyJobsService(session)
        await jobs.run_core_harvest(RUN_DATE)

        deleted = await JobRunService(session).reset(JOB_CORE_HARVEST, RUN_DATE)
        result = await jobs.run_core_harvest(RUN_DATE)

        assert deleted == 1
        assert result["skipped"] is False


class TestRewardCreditingSweep:
    """Crediting every stake with pending rewards."""

    @pytest.mark.asyncio
    async def test_all_pending_stakes_credited(self, session, register, stake):
        _, b, c, c_stake = await accrued_chain(session, register, stake)
        b_before = await WalletService(session).get_balance(b.id)

        summary = await RewardCreditProcessor(session).credit_all_pending(CLAIM_TIME)

        assert summary["processed"] == 3
        assert summary["credited"] == 3
        assert summary["expired"] == 0
        assert summary["errors"] == []
        # $5 core on C's stake plus $0.30 on each $100 stake
        assert Decimal(summary["total_amount"]) == Decimal("5.6")

        rewards = await StakeService(session).get_stake_rewards(c_stake.id)
        assert [r.status for r in rewards] == [RewardStatus.CREDITED.value]
        assert await WalletService(session).get_balance(b.id) > b_before
        assert await WalletService(session).get_balance(c.id) == 0

    @pytest.mark.asyncio
    async def test_nothing_pending_is_a_no_op(self, session, register, stake):
        await accrued_chain(session, register, stake)
        processor = RewardCreditProcessor(session)
        await processor.credit_all_pending(CLAIM_TIME)

        summary = await processor.credit_all_pending(CLAIM_TIME)

        assert summary["processed"] == 0
        assert summary["credited"] == 0

    @pytest.mark.asyncio
    async def test_outside_claim_window_expires(self, session, register, stake):
        await accrued_chain(session, register, stake)

        summary = await RewardCreditProcessor(session).credit_all_pending(
            CLAIM_TIME + timedelta(days=2)
        )

        assert summary["processed"] == 3
        assert summary["credited"] == 0
        assert summary["expired"] == 3
        assert Decimal(summary["total_amount"]) == 0

    @pytest.mark.asyncio
    async def test_failing_stake_isolated(
        self, session, register, stake, monkeypatch
    ):
        _, _, _, c_stake = await accrued_chain(session, register, stake)
        bad_id = c_stake.id
        original = RewardCreditProcessor.credit_pending_rewards

        async def flaky(self, stake_id, reward_ids=None, now=None):
            if stake_id == bad_id:
                raise RuntimeError("wallet locked")
            return await original(self, stake_id, reward_ids, now)

        monkeypatch.setattr(RewardCreditProcessor, "credit_pending_rewards", flaky)

        summary = await RewardCreditProcessor(session).credit_all_pending(CLAIM_TIME)

        assert summary["processed"] == 2
        assert summary["credited"] == 2
        assert summary["errors"] == [{"stake_id": bad_id, "error": "wallet locked"}]
        rewards = await StakeService(session).get_stake_rewards(bad_id)
        assert [r.status for r in rewards] == [RewardStatus.PENDING.value]

    @pytest.mark.asyncio
    async def test_guarded_batch_records_run(self, session, register, stake):
        await accrued_chain(session, register, stake)
        jobs = DailyJobsService(session)

        result = await jobs.run_reward_crediting(RUN_DATE, now=CLAIM_TIME)
        second = await jobs.run_reward_crediting(RUN_DATE, now=CLAIM_TIME)

        assert result["skipped"] is False
        assert result["credited"] == 3
        assert second == {"skipped": True, "message": "already ran today"}
        run = await JobRunService(session).get_status(JOB_REWARD_CREDIT)
        assert run.status == JobStatus.SUCCESS.value
        assert run.meta["credited"] == 3
        assert Decimal(run.meta["total_amount"]) == Decimal("5.6")


class TestRunByName:
    """Dispatch by job name."""

    @pytest.mark.asyncio
    async def test_known_job(self, session):
        result = await DailyJobsService(session).run("synergy_flow", RUN_DATE)
        assert result["skipped"] is False
        assert result["processed"] == 0

    @pytest.mark.asyncio
    async def test_unknown_job(self, session):
        with pytest.raises(ValueError, match="Unknown daily job"):
            await DailyJobsService(session).run("payouts", RUN_DATE)

    @pytest.mark.asyncio
    async def test_reward_crediting_by_name(self, session):
        result = await DailyJobsService(session).run(JOB_REWARD_CREDIT, RUN_DATE)
        assert result["skipped"] is False
        assert result["processed"] == 0
