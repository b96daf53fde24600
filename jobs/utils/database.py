"""
Database utilities for Dramatiq tasks.

Workers run every actor in a fresh event loop via asyncio.run, so pooled
connections from the shared engine would outlive their loop. Tasks build
a NullPool engine per invocation instead.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import settings


def create_task_engine() -> AsyncEngine:
    """
    Create an engine for a single task invocation.

    Returns:
        AsyncEngine without connection pooling
    """
    return create_async_engine(
        settings.async_database_url,
        echo=settings.database_echo,
        poolclass=NullPool,
    )


def create_task_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to a task engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def task_session() -> AsyncIterator[AsyncSession]:
    """
    Yield a session on a throwaway engine and dispose it afterwards.

    Usage:
        async with task_session() as session:
            await DailyJobsService(session).run_core_harvest()
    """
    engine = create_task_engine()
    session_maker = create_task_session_maker(engine)
    try:
        async with session_maker() as session:
            yield session
    finally:
        await engine.dispose()
