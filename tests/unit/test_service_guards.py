"""
Unit tests for service decisions with a mocked session.

Repositories are replaced with AsyncMocks so only the branching logic of
the service is exercised.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.models.enums import JobStatus
from app.services.job_run_service import JobRunService
from app.services.reward_cap_service import CapInfo, RewardCapService
from app.services.wallet_service import WalletService
from app.utils.exceptions import InsufficientFundsError, WalletNotFoundError


RUN_DATE = date(2024, 1, 1)


def _run(run_date, status):
    run = MagicMock()
    run.run_date = run_date
    run.status = status
    return run


class TestJobRunGuard:
    """JobRunService.start and skip_reason."""

    @pytest.mark.asyncio
    async def test_start_inserts_when_no_row(self, mock_session):
        service = JobRunService(mock_session)
        inserted = _run(RUN_DATE, JobStatus.RUNNING.value)
        service.job_run_repo.get_run = AsyncMock(return_value=None)
        service.job_run_repo.create = AsyncMock(return_value=inserted)

        run, created = await service.start("core_harvest", RUN_DATE)

        assert run is inserted
        assert created is True
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_returns_existing_row(self, mock_session):
        service = JobRunService(mock_session)
        existing = _run(RUN_DATE, JobStatus.FAILED.value)
        service.job_run_repo.get_run = AsyncMock(return_value=existing)
        service.job_run_repo.create = AsyncMock()

        run, created = await service.start("core_harvest", RUN_DATE)

        assert run is existing
        assert created is False
        service.job_run_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_loses_insert_race(self, mock_session):
        service = JobRunService(mock_session)
        winner = _run(RUN_DATE, JobStatus.RUNNING.value)
        service.job_run_repo.get_run = AsyncMock(side_effect=[None, winner])
        service.job_run_repo.create = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("duplicate key"))
        )

        run, created = await service.start("core_harvest", RUN_DATE)

        assert run is winner
        assert created is False
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.parametrize(
        "status, message",
        [
            (JobStatus.RUNNING.value, "already running"),
            (JobStatus.SUCCESS.value, "already ran today"),
            (JobStatus.FAILED.value, "failed, reset required"),
        ],
    )
    def test_skip_reason_by_status(self, status, message):
        assert JobRunService.skip_reason(_run(RUN_DATE, status)) == message


class TestClampIncentive:
    """RewardCapService.clamp_incentive."""

    @pytest.mark.asyncio
    async def test_clamped_to_available(self, mock_session):
        service = RewardCapService(mock_session)
        service.get_cap_info = AsyncMock(
            return_value=CapInfo(
                Decimal("200"), Decimal("200"), Decimal("190"), Decimal("10")
            )
        )

        assert await service.clamp_incentive(1, Decimal("25")) == Decimal("10")

    @pytest.mark.asyncio
    async def test_non_positive_proposal_skips_lookup(self, mock_session):
        service = RewardCapService(mock_session)
        service.get_cap_info = AsyncMock()

        assert await service.clamp_incentive(1, Decimal("0")) == 0
        service.get_cap_info.assert_not_awaited()


class TestWalletDebit:
    """WalletService.debit."""

    @pytest.mark.asyncio
    async def test_missing_wallet(self, mock_session):
        service = WalletService(mock_session)
        service.wallet_repo.get_wallet = AsyncMock(return_value=None)

        with pytest.raises(WalletNotFoundError):
            await service.debit(1, Decimal("10"))

    @pytest.mark.asyncio
    async def test_balance_too_low(self, mock_session):
        service = WalletService(mock_session)
        wallet = MagicMock(balance=Decimal("5"))
        service.wallet_repo.get_wallet = AsyncMock(return_value=wallet)
        service.wallet_repo.decrement_balance = AsyncMock(return_value=False)

        with pytest.raises(InsufficientFundsError):
            await service.debit(1, Decimal("10"))
