"""
Unit tests for the daily batch schedule.
"""

import pytest

from app.config.constants import DAILY_JOB_NAMES
from jobs.scheduler import build_scheduler


class TestBuildScheduler:
    """Cron jobs registered by build_scheduler."""

    @pytest.mark.asyncio
    async def test_one_job_per_daily_batch(self):
        scheduler = build_scheduler()

        assert {job.id for job in scheduler.get_jobs()} == set(DAILY_JOB_NAMES)

    @pytest.mark.asyncio
    async def test_batches_staggered(self):
        scheduler = build_scheduler()
        triggers = {job.id: str(job.trigger) for job in scheduler.get_jobs()}

        assert "minute='5'" in triggers["core_harvest"]
        assert "minute='10'" in triggers["reward_credit"]
        assert "minute='15'" in triggers["synergy_flow"]
        assert "minute='25'" in triggers["rank_promote"]
