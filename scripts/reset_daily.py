#!/usr/bin/env python3
"""
Reset a day's batch runs so they can run again.

Usage:
    python scripts/reset_daily.py --all
    python scripts/reset_daily.py --clean-rewards --date 2025-01-31
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.services.admin.daily_reset import DailyResetService
from app.utils.datetime_utils import parse_date
from jobs.utils.database import task_session

logger.remove()
logger.add(sys.stderr, level="INFO")


async def reset_daily(args: argparse.Namespace) -> dict:
    everything = args.all
    async with task_session() as session:
        return await DailyResetService(session).reset(
            run_date=parse_date(args.date),
            clean_rewards=everything or args.clean_rewards,
            reset_synergy=everything or args.reset_synergy,
            reset_ranks=everything or args.reset_ranks,
            rebuild_volumes=everything or args.rebuild_volumes,
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Reset daily batch runs")
    parser.add_argument("--date", default=None, help="UTC date, YYYY-MM-DD")
    parser.add_argument(
        "--clean-rewards",
        action="store_true",
        help="Delete the date's stake rewards",
    )
    parser.add_argument(
        "--reset-synergy",
        action="store_true",
        help="Reset synergy flow and delete the date's synergy payouts",
    )
    parser.add_argument(
        "--reset-ranks",
        action="store_true",
        help="Reset the rank promotion run",
    )
    parser.add_argument(
        "--rebuild-volumes",
        action="store_true",
        help="Rebuild team volumes first",
    )
    parser.add_argument("--all", action="store_true", help="All of the above")
    args = parser.parse_args()

    flags = (
        args.all,
        args.clean_rewards,
        args.reset_synergy,
        args.reset_ranks,
        args.rebuild_volumes,
    )
    if not any(flags):
        parser.error("Specify at least one reset flag or --all")

    try:
        summary = asyncio.run(reset_daily(args))
    except Exception as e:
        logger.exception(f"Daily reset failed: {e}")
        sys.exit(1)

    logger.success(f"Reset complete for {summary['run_date']}")
    print(json.dumps(summary, indent=2, default=str))


if __name__ == "__main__":
    main()
