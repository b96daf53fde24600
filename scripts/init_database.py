#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.models import Base
from jobs.utils.database import create_task_engine

logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all database tables."""
    logger.info("Connecting to database...")
    engine = create_task_engine()

    try:
        async with engine.begin() as conn:
            logger.info("Creating tables (checkfirst=True)...")
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    finally:
        await engine.dispose()

    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    try:
        asyncio.run(init_database())
    except Exception as e:
        logger.exception(f"Database initialization failed: {e}")
        sys.exit(1)
