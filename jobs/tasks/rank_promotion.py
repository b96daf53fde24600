"""Rank promotion task."""

import asyncio
from typing import Any

import dramatiq
from loguru import logger

from app.services.daily_jobs_service import DailyJobsService
from jobs.utils.database import task_session


@dramatiq.actor(max_retries=0, time_limit=1_800_000)  # 30 min
def run_rank_promotion(run_date: str | None = None) -> None:
    """Re-evaluate every participant against the rank ladder."""
    logger.info("Starting rank promotion job...")

    try:
        result = asyncio.run(_run_rank_promotion_async(run_date))
    except Exception as e:
        logger.exception(f"Rank promotion job failed: {e}")
        raise

    if result.get("skipped"):
        logger.info(f"Rank promotion skipped: {result['message']}")
        return

    logger.info(
        f"Rank promotion complete: {result['promoted']} promoted, "
        f"{result['demoted']} demoted of {result['users']} users"
    )


async def _run_rank_promotion_async(run_date: str | None) -> dict[str, Any]:
    async with task_session() as session:
        return await DailyJobsService(session).run_rank_promotion(run_date)
