"""
Job run model.

Idempotency gate for daily batches: one row per (job name, run date).
"""

from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import JobStatus
from app.models.types import JSONType


class JobRun(Base):
    """Daily batch run record."""

    __tablename__ = "job_runs"
    __table_args__ = (
        UniqueConstraint("job_name", "run_date", name="uq_job_run_name_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    job_name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    run_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobStatus.RUNNING.value
    )
    meta: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    finished_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def succeeded(self) -> bool:
        """Check if the run finished successfully."""
        return self.status == JobStatus.SUCCESS.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<JobRun(job={self.job_name}, date={self.run_date}, "
            f"status={self.status})>"
        )
