"""
Genealogy model.

One placement edge per participant: the binary-tree parent and slot, plus
the sponsor (referral lineage), which is tracked independently of placement.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class Genealogy(Base):
    """Placement edge in the binary tree."""

    __tablename__ = "genealogy"
    __table_args__ = (
        # Never two children in the same slot
        UniqueConstraint(
            "parent_id", "position", name="uq_genealogy_parent_position"
        ),
        CheckConstraint(
            "position IS NULL OR position IN ('left', 'right')",
            name="check_genealogy_position",
        ),
        Index("idx_genealogy_parent_position", "parent_id", "position"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    # Binary tree parent (null for roots)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Referral lineage parent
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    position: Mapped[str | None] = mapped_column(
        String(10), nullable=True
    )  # left, right

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
    def is_root(self) -> bool:
        """Root nodes have no binary parent."""
        return self.parent_id is None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Genealogy(user_id={self.user_id}, parent_id={self.parent_id}, "
            f"position={self.position}, sponsor_id={self.sponsor_id})>"
        )
