"""
Core harvest task.

Expires stale pending rewards and accrues today's core and harvest
rewards for every active stake. Runs once per day; a second run on the
same date is skipped by the job-run guard.
"""

import asyncio
from typing import Any

import dramatiq
from loguru import logger

from app.services.daily_jobs_service import DailyJobsService
from jobs.utils.database import task_session


@dramatiq.actor(max_retries=0, time_limit=1_800_000)  # 30 min
def run_core_harvest(run_date: str | None = None) -> None:
    """
    Run the daily core+harvest accrual.

    Args:
        run_date: ISO date to accrue for (default: today, UTC)
    """
    logger.info("Starting core harvest job...")

    try:
        result = asyncio.run(_run_core_harvest_async(run_date))
    except Exception as e:
        logger.exception(f"Core harvest job failed: {e}")
        raise

    if result.get("skipped"):
        logger.info(f"Core harvest skipped: {result['message']}")
        return

    logger.info(
        f"Core harvest complete: {result['rewards_created']} rewards "
        f"for {result['processed']} stakes, {result['expired']} expired, "
        f"{len(result['errors'])} errors"
    )


async def _run_core_harvest_async(run_date: str | None) -> dict[str, Any]:
    """Async implementation of the core harvest job."""
    async with task_session() as session:
        return await DailyJobsService(session).run_core_harvest(run_date)
