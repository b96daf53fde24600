"""
Team cycle model.

Append-only history of synergy settlements.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, RateType


class TeamCycle(Base):
    """One day's synergy settlement for a participant."""

    __tablename__ = "team_cycles"
    __table_args__ = (
        Index("idx_team_cycle_user_date", "user_id", "cycle_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cycle_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    cycles: Mapped[int] = mapped_column(Integer, nullable=False)
    left_used: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    right_used: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    weaker_leg_volume: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    reward_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    rate_used: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    pack_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="completed"
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

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TeamCycle(user_id={self.user_id}, date={self.cycle_date}, "
            f"cycles={self.cycles}, reward={self.reward_amount})>"
        )
