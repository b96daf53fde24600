#!/usr/bin/env python3
"""
Regenerate the binary placement tree.

Every participant is re-placed under their sponsor in creation order,
active participants first. Team volumes are stale afterwards; run
rebuild_team_volumes.py next.
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.services.admin.placement_regenerator import (
    PlacementRegenerator,
    RegenerationResult,
)
from jobs.utils.database import task_session

logger.remove()
logger.add(sys.stderr, level="INFO")


async def regenerate_placement(
    dry_run: bool, backup: bool, restore_from_backup: bool
) -> RegenerationResult:
    async with task_session() as session:
        return await PlacementRegenerator(session).regenerate(
            dry_run=dry_run,
            backup=backup,
            restore_from_backup=restore_from_backup,
        )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Regenerate the binary placement tree"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )
    parser.add_argument(
        "--backup",
        action="store_true",
        help="Write a JSON backup of the current tree first",
    )
    parser.add_argument(
        "--restore-from-backup",
        action="store_true",
        help="Restore the most recent backup before regenerating",
    )
    args = parser.parse_args()

    try:
        result = asyncio.run(
            regenerate_placement(
                args.dry_run, args.backup, args.restore_from_backup
            )
        )
    except Exception as e:
        logger.exception(f"Placement regeneration failed: {e}")
        sys.exit(1)

    prefix = "[dry run] " if result.dry_run else ""
    logger.success(
        f"{prefix}{result.placed_users}/{result.total_users} users placed "
        f"({result.active_users} active, {result.inactive_users} inactive, "
        f"{result.root_users} roots)"
    )
    if result.linear_fallback:
        logger.warning("No sponsor links found, used creation-order chain")
    if result.backup_file:
        logger.info(f"Backup written to {result.backup_file}")


if __name__ == "__main__":
    main()
