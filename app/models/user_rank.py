"""
User rank model.

Current rank and power pass-up override percent per participant.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.config.rank_ladder import UNRANKED
from app.models.base import Base
from app.models.types import PercentType


class UserRank(Base):
    """Participant rank."""

    __tablename__ = "user_ranks"
    __table_args__ = (
        CheckConstraint(
            "override_percent >= 0 AND override_percent <= 100",
            name="check_user_rank_percent_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    rank: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UNRANKED
    )
    override_percent: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False, default=Decimal("0")
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
            f"<UserRank(user_id={self.user_id}, rank={self.rank}, "
            f"percent={self.override_percent})>"
        )
