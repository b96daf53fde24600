"""
Transaction repository.

Append-only ledger access. The engine reads it back only to sum incentive
payouts for the reward cap and daily sales for the harvest pool.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import DEFAULT_CURRENCY, MAIN_WALLET
from app.models.enums import (
    INCENTIVE_TYPES,
    HarvestSalesSource,
    TransactionStatus,
    TransactionType,
)
from app.models.transaction import Transaction
from app.models.types import MoneyType
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import start_of_day


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with ledger aggregates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def record(
        self,
        user_id: int,
        transaction_type: str,
        amount: Decimal,
        *,
        status: str = TransactionStatus.COMPLETED.value,
        reference_type: str | None = None,
        reference_id: str | int | None = None,
        description: str | None = None,
        wallet_type: str = MAIN_WALLET,
        meta: dict[str, Any] | None = None,
    ) -> Transaction:
        """
        Append a ledger row.

        Args:
            user_id: Owner of the movement
            transaction_type: TransactionType value
            amount: Signed amount (negative for debits)
            status: TransactionStatus value
            reference_type: Kind of the referenced entity
            reference_id: Referenced entity ID
            description: Human readable description
            wallet_type: Wallet the movement applies to
            meta: Extra JSON metadata

        Returns:
            Created transaction
        """
        return await self.create(
            user_id=user_id,
            wallet_type=wallet_type,
            transaction_type=str(transaction_type),
            amount=amount,
            currency=DEFAULT_CURRENCY,
            status=str(status),
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id is not None else None,
            description=description,
            meta=meta,
        )

    async def sum_incentives_used(self, user_id: int) -> Decimal:
        """
        Total completed incentive payouts ever credited to a user.

        Args:
            user_id: User ID

        Returns:
            Sum of catalyst, synergy and pass-up amounts
        """
        stmt = (
            select(func.coalesce(func.sum(Transaction.amount), 0))
            .where(Transaction.user_id == user_id)
            .where(
                Transaction.transaction_type.in_(
                    [t.value for t in INCENTIVE_TYPES]
                )
            )
            .where(Transaction.status == TransactionStatus.COMPLETED.value)
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def sum_sales_for_date(
        self, sales_date: date, source: HarvestSalesSource
    ) -> Decimal:
        """
        Platform sales on a calendar date.

        Stake rows are debits, so their absolute value is summed.

        Args:
            sales_date: UTC calendar date
            source: Which transaction types count as sales

        Returns:
            Sales total for the date
        """
        day_start = start_of_day(sales_date)
        day_end = start_of_day(sales_date + timedelta(days=1))

        total = Decimal("0")
        if source in (HarvestSalesSource.STAKES, HarvestSalesSource.COMBINED):
            total += await self._sum_for_window(
                TransactionType.STAKE, day_start, day_end
            )
        if source in (HarvestSalesSource.DEPOSITS, HarvestSalesSource.COMBINED):
            total += await self._sum_for_window(
                TransactionType.DEPOSIT, day_start, day_end
            )
        return total

    async def _sum_for_window(self, transaction_type, day_start, day_end) -> Decimal:
        stmt = (
            select(
                func.coalesce(
                    func.sum(func.abs(Transaction.amount, type_=MoneyType)), 0
                )
            )
            .where(Transaction.transaction_type == transaction_type.value)
            .where(Transaction.status == TransactionStatus.COMPLETED.value)
            .where(Transaction.created_at >= day_start)
            .where(Transaction.created_at < day_end)
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def find_for_user(
        self,
        user_id: int,
        transaction_type: str | None = None,
        limit: int = 50,
    ) -> list[Transaction]:
        """
        Latest ledger rows of a user.

        Args:
            user_id: User ID
            transaction_type: Optional type filter
            limit: Max rows

        Returns:
            Transactions, newest first
        """
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if transaction_type:
            stmt = stmt.where(Transaction.transaction_type == transaction_type)
        stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        result = await self.session.execute(stmt.limit(limit))
        return list(result.scalars().all())

    async def delete_by_type_on_date(
        self, transaction_type: str, on_date: date
    ) -> int:
        """
        Delete ledger rows of a type created on a date.

        Used only by the operator reset procedure.

        Returns:
            Number of deleted rows
        """
        stmt = (
            delete(Transaction)
            .where(Transaction.transaction_type == transaction_type)
            .where(Transaction.created_at >= start_of_day(on_date))
            .where(
                Transaction.created_at
                < start_of_day(on_date + timedelta(days=1))
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
