"""
User model.

Represents a participant of the compensation plan.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import UserRole


if TYPE_CHECKING:
    from app.models.stake import Stake
    from app.models.wallet import Wallet


class User(Base):
    """User model - plan participant."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Profile
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value
    )

    # Flags
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    stakes: Mapped[list["Stake"]] = relationship(
        "Stake",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="raise",
    )
    wallets: Mapped[list["Wallet"]] = relationship(
        "Wallet",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    @property
    def is_admin(self) -> bool:
        """Check if user is an administrator."""
        return self.role == UserRole.ADMIN.value

    @property
    def display_label(self) -> str:
        """Name, falling back to referral code or ID."""
        if self.name and self.name.strip():
            return self.name.strip()
        if self.referral_code:
            return self.referral_code
        return f"user #{self.id}"

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, email={self.email!r}, "
            f"referral_code={self.referral_code!r}, active={self.is_active})>"
        )
