"""
Stake reward model.

Daily accrual record for a stake: fixed core component plus harvest
component, claimed into the wallet or expired after the claim window.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import RewardStatus
from app.models.types import MoneyType


if TYPE_CHECKING:
    from app.models.stake import Stake


class StakeReward(Base):
    """Daily stake reward."""

    __tablename__ = "stake_rewards"
    __table_args__ = (
        # At most one accrual per stake per day
        UniqueConstraint(
            "stake_id", "reward_date", name="uq_stake_reward_stake_date"
        ),
        Index("idx_stake_reward_status_date", "status", "reward_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    stake_id: Mapped[int] = mapped_column(
        ForeignKey("stakes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reward_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    core_reward: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    harvest_reward: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    total_reward: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RewardStatus.PENDING.value
    )
    credited_at: Mapped[datetime | None] = mapped_column(
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

    stake: Mapped["Stake"] = relationship(
        "Stake", back_populates="rewards", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<StakeReward(id={self.id}, stake_id={self.stake_id}, "
            f"date={self.reward_date}, total={self.total_reward}, "
            f"status={self.status})>"
        )
