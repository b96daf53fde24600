"""
Team volume model.

Binary ledger per participant: volume flowing up from each leg, carry left
over after the last cycle settlement and today's synergy payout.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType


class TeamVolume(Base):
    """Team volume ledger row."""

    __tablename__ = "team_volumes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    left_volume: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    right_volume: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    left_carry: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    right_carry: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    daily_paid: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    last_reset_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def left_total(self) -> Decimal:
        """Left leg volume available for cycles."""
        return (self.left_volume or Decimal("0")) + (self.left_carry or Decimal("0"))

    @property
    def right_total(self) -> Decimal:
        """Right leg volume available for cycles."""
        return (self.right_volume or Decimal("0")) + (self.right_carry or Decimal("0"))

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TeamVolume(user_id={self.user_id}, left={self.left_total}, "
            f"right={self.right_total}, daily_paid={self.daily_paid})>"
        )
