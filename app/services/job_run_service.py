"""
Job run service.

Once-per-day gate for the daily batches. The unique (job_name, run_date)
key is the only cross-process coordination: a second start on the same
date returns the existing row instead of inserting another.
"""

from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import JobStatus
from app.models.job_run import JobRun
from app.repositories.job_run_repository import JobRunRepository
from app.services.base_service import BaseService, transaction
from app.utils.datetime_utils import utc_now


ALREADY_RAN_MESSAGE = "already ran today"
ALREADY_RUNNING_MESSAGE = "already running"
RESET_REQUIRED_MESSAGE = "failed, reset required"


class JobRunService(BaseService):
    """Daily batch run bookkeeping."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize job run service."""
        super().__init__(session)
        self.job_run_repo = JobRunRepository(session)

    async def start(
        self,
        job_name: str,
        run_date: date,
        meta: dict[str, Any] | None = None,
    ) -> tuple[JobRun, bool]:
        """
        Insert a running row, or return the one already stored.

        Commits so the row is visible to other workers. Only the caller
        that inserted the row may run the batch.

        Args:
            job_name: Batch name
            run_date: UTC calendar date
            meta: Optional start metadata

        Returns:
            Tuple of (JobRun row, created)
        """
        existing = await self.job_run_repo.get_run(job_name, run_date)
        if existing is not None:
            return existing, False

        try:
            run = await self.job_run_repo.create(
                job_name=job_name,
                run_date=run_date,
                status=JobStatus.RUNNING.value,
                meta=meta or {},
                started_at=utc_now(),
            )
            await self.commit()
        except IntegrityError:
            await self.rollback()
            self.logger.warning(
                "Job run already started elsewhere",
                extra={"job_name": job_name, "run_date": run_date.isoformat()},
            )
            run = await self.job_run_repo.get_run(job_name, run_date)
            return run, False
        return run, True

    @transaction
    async def finish(
        self,
        job_name: str,
        run_date: date,
        status: JobStatus | str = JobStatus.SUCCESS,
        meta: dict[str, Any] | None = None,
    ) -> JobRun | None:
        """
        Close a run with its final status and result metadata.

        Args:
            job_name: Batch name
            run_date: UTC calendar date
            status: success or failed
            meta: Result metadata

        Returns:
            Updated JobRun or None if no row exists
        """
        run = await self.job_run_repo.get_run(job_name, run_date)
        if run is None:
            return None
        run.status = JobStatus(status).value
        run.meta = meta or {}
        run.finished_at = utc_now()
        await self.session.flush()
        return run

    async def get_status(self, job_name: str) -> JobRun | None:
        """Most recent run of a job."""
        return await self.job_run_repo.get_latest(job_name)

    async def get_all_statuses(self, limit: int = 50) -> list[JobRun]:
        """Latest runs across all jobs."""
        return await self.job_run_repo.get_recent(limit)

    @staticmethod
    def skip_reason(run: JobRun) -> str:
        """
        Skip message for a run row the caller did not insert.

        A failed row stays in place until an operator resets it.
        """
        if run.status == JobStatus.SUCCESS.value:
            return ALREADY_RAN_MESSAGE
        if run.status == JobStatus.FAILED.value:
            return RESET_REQUIRED_MESSAGE
        return ALREADY_RUNNING_MESSAGE

    @transaction
    async def reset(self, job_name: str, run_date: date) -> int:
        """
        Delete a run row so the batch can run again.

        Returns:
            Number of deleted rows
        """
        deleted = await self.job_run_repo.delete_run(job_name, run_date)
        self.logger.info(
            "Job run reset",
            extra={
                "job_name": job_name,
                "run_date": run_date.isoformat(),
                "deleted": deleted,
            },
        )
        return deleted
