#!/usr/bin/env python3
"""
Run a daily batch once, outside the scheduler.

Usage:
    python scripts/run_daily_job.py core_harvest
    python scripts/run_daily_job.py reward_credit
    python scripts/run_daily_job.py synergy_flow --date 2025-01-31
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.config.constants import DAILY_JOB_NAMES
from app.services.daily_jobs_service import DailyJobsService
from app.utils.datetime_utils import parse_date
from jobs.utils.database import task_session

logger.remove()
logger.add(sys.stderr, level="INFO")


async def run_daily_job(job_name: str, run_date: str | None) -> dict:
    """Run one guarded daily batch and return its summary."""
    async with task_session() as session:
        return await DailyJobsService(session).run(job_name, run_date)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a daily batch")
    parser.add_argument("job", choices=DAILY_JOB_NAMES, help="Batch to run")
    parser.add_argument(
        "--date",
        default=None,
        help="UTC date to run for, YYYY-MM-DD (default: today)",
    )
    args = parser.parse_args()

    try:
        parse_date(args.date)
    except ValueError:
        parser.error(f"Invalid date: {args.date}")

    try:
        result = asyncio.run(run_daily_job(args.job, args.date))
    except Exception as e:
        logger.exception(f"{args.job} failed: {e}")
        sys.exit(1)

    if result.get("skipped"):
        logger.info(f"{args.job}: {result['message']}")
    else:
        logger.success(f"{args.job} finished")
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
