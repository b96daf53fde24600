"""
Synergy flow task.

Settles the binary-leg cycles of every participant with team volume and
pays the capped synergy bonus.
"""

import asyncio
from typing import Any

import dramatiq
from loguru import logger

from app.services.daily_jobs_service import DailyJobsService
from jobs.utils.database import task_session


@dramatiq.actor(max_retries=0, time_limit=1_800_000)  # 30 min
def run_synergy_flow(run_date: str | None = None) -> None:
    """Run the daily synergy flow payout."""
    logger.info("Starting synergy flow job...")

    try:
        result = asyncio.run(_run_synergy_flow_async(run_date))
    except Exception as e:
        logger.exception(f"Synergy flow job failed: {e}")
        raise

    if result.get("skipped"):
        logger.info(f"Synergy flow skipped: {result['message']}")
        return

    logger.info(
        f"Synergy flow complete: {result['cycles']} cycles, "
        f"{result['rewards']} USD paid, {result['cap_hits']} cap hits, "
        f"{result['ineligible']} ineligible"
    )


async def _run_synergy_flow_async(run_date: str | None) -> dict[str, Any]:
    async with task_session() as session:
        return await DailyJobsService(session).run_synergy_flow(run_date)
