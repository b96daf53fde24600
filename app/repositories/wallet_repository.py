"""
Wallet repository.

Data access layer for Wallet model. Balance changes are issued as single
UPDATE statements so concurrent credits never lose an increment.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import MAIN_WALLET
from app.models.wallet import Wallet
from app.repositories.base import BaseRepository


class WalletRepository(BaseRepository[Wallet]):
    """Wallet repository with balance operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet repository."""
        super().__init__(Wallet, session)

    async def get_wallet(
        self,
        user_id: int,
        wallet_type: str = MAIN_WALLET,
        for_update: bool = False,
    ) -> Wallet | None:
        """
        Get a user's wallet.

        Args:
            user_id: User ID
            wallet_type: Wallet type
            for_update: Lock the row (SELECT ... FOR UPDATE)

        Returns:
            Wallet or None
        """
        stmt = (
            select(Wallet)
            .where(Wallet.user_id == user_id)
            .where(Wallet.wallet_type == wallet_type)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def increment_balance(
        self,
        user_id: int,
        amount: Decimal,
        wallet_type: str = MAIN_WALLET,
    ) -> bool:
        """
        Atomically add amount to a balance.

        Args:
            user_id: User ID
            amount: Amount to add
            wallet_type: Wallet type

        Returns:
            True if a wallet row was updated
        """
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id)
            .where(Wallet.wallet_type == wallet_type)
            .values(balance=Wallet.balance + amount)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def decrement_balance(
        self,
        user_id: int,
        amount: Decimal,
        wallet_type: str = MAIN_WALLET,
    ) -> bool:
        """
        Atomically subtract amount if the balance covers it.

        Args:
            user_id: User ID
            amount: Amount to subtract
            wallet_type: Wallet type

        Returns:
            True if the balance was sufficient and updated
        """
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id)
            .where(Wallet.wallet_type == wallet_type)
            .where(Wallet.balance >= amount)
            .values(balance=Wallet.balance - amount)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0
