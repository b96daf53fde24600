"""
Wallet service.

Balance collaborator for the compensation engine: credit, debit and
balance lookups on a participant's main wallet. Every movement flushes
inside the caller's transaction; callers decide when to commit.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import MAIN_WALLET
from app.models.enums import TransactionStatus, TransactionType
from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.wallet_repository import WalletRepository
from app.services.base_service import BaseService, transaction
from app.utils.exceptions import InsufficientFundsError, WalletNotFoundError


class WalletService(BaseService):
    """Wallet balance operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet service."""
        super().__init__(session)
        self.wallet_repo = WalletRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def ensure_wallet(
        self, user_id: int, wallet_type: str = MAIN_WALLET
    ) -> Wallet:
        """
        Get or create a zero-balance wallet.

        Args:
            user_id: Owner
            wallet_type: Wallet type

        Returns:
            Wallet row
        """
        wallet = await self.wallet_repo.get_wallet(user_id, wallet_type)
        if wallet is not None:
            return wallet
        return await self.wallet_repo.create(
            user_id=user_id, wallet_type=wallet_type, balance=Decimal("0")
        )

    async def get_balance(
        self, user_id: int, wallet_type: str = MAIN_WALLET
    ) -> Decimal:
        """Current balance; 0 when the wallet does not exist."""
        wallet = await self.wallet_repo.get_wallet(user_id, wallet_type)
        if wallet is None:
            return Decimal("0")
        return Decimal(str(wallet.balance))

    async def has_sufficient_balance(
        self, user_id: int, amount: Decimal, wallet_type: str = MAIN_WALLET
    ) -> bool:
        """Check whether a wallet covers amount."""
        return await self.get_balance(user_id, wallet_type) >= amount

    async def lock_wallet(
        self, user_id: int, wallet_type: str = MAIN_WALLET
    ) -> Wallet | None:
        """Take a row lock on a wallet for the rest of the transaction."""
        return await self.wallet_repo.get_wallet(
            user_id, wallet_type, for_update=True
        )

    async def credit(
        self, user_id: int, amount: Decimal, wallet_type: str = MAIN_WALLET
    ) -> None:
        """
        Add amount to a wallet, creating it if missing.

        Args:
            user_id: Recipient
            amount: Positive amount
            wallet_type: Wallet type
        """
        if amount <= 0:
            return
        await self.ensure_wallet(user_id, wallet_type)
        await self.wallet_repo.increment_balance(user_id, amount, wallet_type)

    async def debit(
        self, user_id: int, amount: Decimal, wallet_type: str = MAIN_WALLET
    ) -> None:
        """
        Subtract amount from a wallet.

        Args:
            user_id: Payer
            amount: Positive amount
            wallet_type: Wallet type

        Raises:
            WalletNotFoundError: No such wallet
            InsufficientFundsError: Balance below amount
        """
        if amount <= 0:
            return
        wallet = await self.wallet_repo.get_wallet(user_id, wallet_type)
        if wallet is None:
            raise WalletNotFoundError(user_id, wallet_type)
        updated = await self.wallet_repo.decrement_balance(
            user_id, amount, wallet_type
        )
        if not updated:
            raise InsufficientFundsError(
                user_id=user_id,
                required=amount,
                available=Decimal(str(wallet.balance)),
                wallet_type=wallet_type,
            )

    @transaction
    async def transfer(
        self,
        from_user_id: int,
        to_user_id: int,
        amount: Decimal,
        description: str | None = None,
    ) -> tuple[Transaction, Transaction]:
        """
        Move funds between two main wallets.

        Args:
            from_user_id: Payer
            to_user_id: Recipient
            amount: Positive amount
            description: Optional note

        Returns:
            Tuple of (transfer_out, transfer_in) ledger rows
        """
        if amount <= 0:
            raise ValueError("Transfer amount must be positive")
        if from_user_id == to_user_id:
            raise ValueError("Cannot transfer to the same wallet")

        await self.debit(from_user_id, amount)
        await self.credit(to_user_id, amount)

        outgoing = await self.transaction_repo.record(
            from_user_id,
            TransactionType.TRANSFER_OUT,
            -amount,
            reference_type="user",
            reference_id=to_user_id,
            description=description or f"Transfer to user {to_user_id}",
        )
        incoming = await self.transaction_repo.record(
            to_user_id,
            TransactionType.TRANSFER_IN,
            amount,
            reference_type="user",
            reference_id=from_user_id,
            description=description or f"Transfer from user {from_user_id}",
        )

        self.logger.info(
            "Transfer completed",
            extra={
                "from_user_id": from_user_id,
                "to_user_id": to_user_id,
                "amount": str(amount),
            },
        )
        return outgoing, incoming

    @transaction
    async def apply_deposit(
        self, user_id: int, amount: Decimal, reference_id: str
    ) -> Transaction:
        """
        Credit a deposit confirmed by the payment processor.

        Args:
            user_id: Depositor
            amount: Confirmed amount
            reference_id: Processor payment reference

        Returns:
            Deposit ledger row
        """
        if amount <= 0:
            raise ValueError("Deposit amount must be positive")

        await self.credit(user_id, amount)
        deposit = await self.transaction_repo.record(
            user_id,
            TransactionType.DEPOSIT,
            amount,
            status=TransactionStatus.COMPLETED.value,
            reference_type="payment",
            reference_id=reference_id,
            description=f"Deposit {reference_id}",
        )

        self.logger.info(
            "Deposit applied",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "reference_id": reference_id,
            },
        )
        return deposit
