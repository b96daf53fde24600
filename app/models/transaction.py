"""
Transaction model.

Append-only audit trail of every wallet movement.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import TransactionStatus
from app.models.types import JSONType, MoneyType


class Transaction(Base):
    """Ledger transaction."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            "fee >= 0", name="check_transaction_fee_non_negative"
        ),
        Index("idx_transaction_user_type", "user_id", "transaction_type"),
        Index("idx_transaction_type_created", "transaction_type", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    wallet_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="main"
    )
    transaction_type: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True
    )
    reference_type: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )
    reference_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True
    )
    # Positive for credit, negative for debit
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    fee: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    currency: Mapped[str] = mapped_column(
        String(10), nullable=False, default="USD"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.PENDING.value,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONType, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.transaction_type}, amount={self.amount}, "
            f"status={self.status})>"
        )
