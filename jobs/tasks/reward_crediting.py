"""
Reward crediting task.

Credits every stake's pending rewards that are still inside the claim
window, splitting core into the staker share and power pass-up. Runs
after core harvest so the rewards accrued today are paid the same day.
"""

import asyncio
from typing import Any

import dramatiq
from loguru import logger

from app.services.daily_jobs_service import DailyJobsService
from jobs.utils.database import task_session


@dramatiq.actor(max_retries=0, time_limit=1_800_000)  # 30 min
def run_reward_crediting(run_date: str | None = None) -> None:
    """
    Run the daily reward crediting sweep.

    Args:
        run_date: ISO date the run is recorded under (default: today, UTC)
    """
    logger.info("Starting reward crediting job...")

    try:
        result = asyncio.run(_run_reward_crediting_async(run_date))
    except Exception as e:
        logger.exception(f"Reward crediting job failed: {e}")
        raise

    if result.get("skipped"):
        logger.info(f"Reward crediting skipped: {result['message']}")
        return

    logger.info(
        f"Reward crediting complete: {result['credited']} rewards "
        f"for {result['processed']} stakes, ${result['total_amount']} paid, "
        f"{result['expired']} expired, {len(result['errors'])} errors"
    )


async def _run_reward_crediting_async(run_date: str | None) -> dict[str, Any]:
    """Async implementation of the reward crediting job."""
    async with task_session() as session:
        return await DailyJobsService(session).run_reward_crediting(run_date)
