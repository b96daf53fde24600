#!/usr/bin/env python3
"""
Rebuild binary team volumes.

Zeroes every team volume row and replays all active stakes up the
placement tree. Run after regenerating the placement.
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.services.admin.team_volume_rebuilder import TeamVolumeRebuilder
from jobs.utils.database import task_session

logger.remove()
logger.add(sys.stderr, level="INFO")


async def rebuild_team_volumes() -> dict:
    async with task_session() as session:
        return await TeamVolumeRebuilder(session).rebuild()


if __name__ == "__main__":
    try:
        summary = asyncio.run(rebuild_team_volumes())
    except Exception as e:
        logger.exception(f"Team volume rebuild failed: {e}")
        sys.exit(1)

    logger.success(
        f"Rebuilt volumes for {summary['users']} users from "
        f"{summary['stakes']} stakes: left {summary['left_total']}, "
        f"right {summary['right_total']}"
    )
