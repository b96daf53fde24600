"""
Domain exceptions.

Validation and funding problems are raised to the caller before any
mutation. Cap exhaustion and already-ran batches are not errors and are
reported through result objects instead.
"""

from decimal import Decimal


class CompensationError(Exception):
    """Base class for compensation engine errors."""

    pass


class StakeValidationError(CompensationError, ValueError):
    """Raised when a stake amount, share count or pack type is invalid."""

    pass


class InsufficientFundsError(CompensationError):
    """Raised when a wallet cannot cover a debit."""

    def __init__(
        self,
        user_id: int,
        required: Decimal,
        available: Decimal,
        wallet_type: str = "main",
    ) -> None:
        self.user_id = user_id
        self.required = required
        self.available = available
        self.wallet_type = wallet_type
        super().__init__(
            f"Insufficient balance in {wallet_type} wallet for user {user_id}: "
            f"required {required}, available {available}"
        )


class WalletNotFoundError(CompensationError):
    """Raised when a user has no wallet of the requested type."""

    def __init__(self, user_id: int, wallet_type: str = "main") -> None:
        self.user_id = user_id
        self.wallet_type = wallet_type
        super().__init__(
            f"Wallet not found for user {user_id} and type {wallet_type}"
        )


class ParticipantNotFoundError(CompensationError):
    """Raised when a referenced participant does not exist."""

    pass


class TreeInconsistencyError(CompensationError):
    """Raised when the placement tree contains a cycle or a dangling node."""

    pass


class StakeNotFoundError(CompensationError):
    """Raised when a stake does not exist or belongs to someone else."""

    pass
