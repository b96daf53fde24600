"""
Wallet model.

Per-user balance, one row per wallet type.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType


if TYPE_CHECKING:
    from app.models.user import User


class Wallet(Base):
    """Wallet model - user balance."""

    __tablename__ = "wallets"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "wallet_type", name="uq_wallet_user_type"
        ),
        CheckConstraint(
            "balance >= 0", name="check_wallet_balance_non_negative"
        ),
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
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="wallets", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Wallet(user_id={self.user_id}, type={self.wallet_type}, "
            f"balance={self.balance})>"
        )
