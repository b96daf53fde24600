"""
Database engine and session factory.

Shared async engine for long-running processes (scheduler, scripts).
Dramatiq workers use jobs.utils.database instead.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings
from app.models import Base


def create_engine_from_settings() -> AsyncEngine:
    """Create the async engine for the configured store."""
    if settings.is_sqlite:
        return create_async_engine(
            settings.async_database_url,
            echo=settings.database_echo,
        )
    return create_async_engine(
        settings.async_database_url,
        echo=settings.database_echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


engine = create_engine_from_settings()

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session and roll back anything left uncommitted."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_all_tables(bind: AsyncEngine | None = None) -> None:
    """Create every table known to the model metadata."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
