"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")

# Project root on PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.models import Base
from app.services.participant_service import ParticipantService
from app.services.stake.stake_service import StakeService
from app.services.wallet_service import WalletService


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Session on the in-memory database."""
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_maker() as session:
        yield session


@pytest.fixture
def register(session):
    """
    Register a participant.

    Usage:
        alice = await register("alice")
        bob = await register("bob", sponsor=alice)
    """

    async def _register(name, sponsor=None, is_verified=True):
        result = await ParticipantService(session).register(
            name=name.title(),
            email=f"{name}@example.com",
            sponsor_referral_code=sponsor.referral_code if sponsor else None,
            is_verified=is_verified,
        )
        return result.user

    return _register


@pytest.fixture
def stake(session):
    """Deposit amount into a participant's wallet and stake all of it."""

    async def _stake(user, amount):
        amount = Decimal(str(amount))
        await WalletService(session).apply_deposit(
            user.id, amount, f"test-{user.id}-{amount}"
        )
        result = await StakeService(session).create_stake(user.id, amount)
        return result

    return _stake
