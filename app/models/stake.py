"""
Stake model.

An energy pack position: capital staked into one tier, accruing daily
rewards until its lifetime reward limit is reached.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import StakeStatus
from app.models.types import MoneyType, PercentType, RateType


if TYPE_CHECKING:
    from app.models.stake_reward import StakeReward
    from app.models.user import User


class Stake(Base):
    """Stake model - energy pack position."""

    __tablename__ = "stakes"
    __table_args__ = (
        CheckConstraint("shares >= 1", name="check_stake_shares_positive"),
        CheckConstraint("amount > 0", name="check_stake_amount_positive"),
        CheckConstraint(
            "total_rewards_earned >= 0",
            name="check_stake_rewards_non_negative",
        ),
        Index("idx_stake_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Pack details
    pack_type: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True
    )  # spark, pulse, charge, quantum
    shares: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    daily_roi_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    # Lifetime limit, percent of principal
    max_reward_limit: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )
    total_rewards_earned: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StakeStatus.ACTIVE.value,
        index=True,
    )
    last_reward_calculation: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
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
        "User", back_populates="stakes", lazy="raise"
    )
    rewards: Mapped[list["StakeReward"]] = relationship(
        "StakeReward",
        back_populates="stake",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    @property
    def max_rewards(self) -> Decimal:
        """Lifetime reward ceiling in USD."""
        return self.amount * (Decimal(self.max_reward_limit) / 100)

    @property
    def remaining_cap(self) -> Decimal:
        """Headroom left under the lifetime ceiling."""
        remaining = self.max_rewards - (self.total_rewards_earned or Decimal("0"))
        return max(remaining, Decimal("0"))

    @property
    def is_active(self) -> bool:
        """Check if stake still accrues rewards."""
        return self.status == StakeStatus.ACTIVE.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Stake(id={self.id}, user_id={self.user_id}, "
            f"pack={self.pack_type}, amount={self.amount}, "
            f"status={self.status})>"
        )
