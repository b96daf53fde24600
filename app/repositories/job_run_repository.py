"""
Job run repository.

Data access layer for the daily batch idempotency table.
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job_run import JobRun
from app.repositories.base import BaseRepository


class JobRunRepository(BaseRepository[JobRun]):
    """Job run repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize job run repository."""
        super().__init__(JobRun, session)

    async def get_run(self, job_name: str, run_date: date) -> JobRun | None:
        """Run row for a job on a date."""
        return await self.get_by(job_name=job_name, run_date=run_date)

    async def get_latest(self, job_name: str) -> JobRun | None:
        """
        Most recent run of a job by run date.

        Args:
            job_name: Job name

        Returns:
            Latest run or None
        """
        stmt = (
            select(JobRun)
            .where(JobRun.job_name == job_name)
            .order_by(JobRun.run_date.desc(), JobRun.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_recent(self, limit: int = 50) -> list[JobRun]:
        """Latest runs across all jobs."""
        stmt = (
            select(JobRun)
            .order_by(JobRun.run_date.desc(), JobRun.started_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_run(self, job_name: str, run_date: date) -> int:
        """Remove the run row so the batch can run again."""
        return await self.delete_by(job_name=job_name, run_date=run_date)
