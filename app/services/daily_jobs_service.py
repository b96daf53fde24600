"""
Daily jobs service.

The daily batches behind one guard: only the caller that inserts the
(job_name, run_date) row runs the sweep and closes the run as success or
failed. Any other caller skips, whatever state the row is in. A failed
run re-raises so the entry point exits non-zero; operators reset it
before retrying.
"""

from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import (
    JOB_CORE_HARVEST,
    JOB_RANK_PROMOTE,
    JOB_REWARD_CREDIT,
    JOB_SYNERGY_FLOW,
)
from app.models.enums import JobStatus
from app.services.base_service import BaseService, log_operation
from app.services.job_run_service import JobRunService
from app.services.rank_service import RankService
from app.services.stake.reward_accrual import RewardAccrualManager
from app.services.stake.reward_crediting import RewardCreditProcessor
from app.services.synergy.synergy_service import SynergyService
from app.utils.datetime_utils import parse_date


class DailyJobsService(BaseService):
    """Guarded daily batch runner."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize daily jobs service."""
        super().__init__(session)
        self.job_runs = JobRunService(session)

    async def _run_guarded(
        self,
        job_name: str,
        run_date: date,
        note: str,
        sweep: Callable[[], Awaitable[dict[str, Any]]],
    ) -> dict[str, Any]:
        run, created = await self.job_runs.start(
            job_name, run_date, {"note": note}
        )
        if not created:
            message = self.job_runs.skip_reason(run)
            self.logger.info(
                "Daily job skipped",
                extra={
                    "job_name": job_name,
                    "run_date": run_date.isoformat(),
                    "status": run.status,
                    "reason": message,
                },
            )
            return {"skipped": True, "message": message}

        try:
            meta = await sweep()
        except Exception as e:
            await self.rollback()
            await self.job_runs.finish(
                job_name, run_date, JobStatus.FAILED, {"error": str(e)}
            )
            raise

        await self.job_runs.finish(job_name, run_date, JobStatus.SUCCESS, meta)
        return {"skipped": False, "run_date": run_date.isoformat(), **meta}

    @log_operation
    async def run_core_harvest(
        self, run_date: date | str | None = None
    ) -> dict[str, Any]:
        """
        Expire stale rewards and accrue today's core and harvest rewards.

        Returns:
            Dict with processed, rewards_created, cap_hits, expired and
            errors, or the skip marker
        """
        run_date = parse_date(run_date)
        accrual = RewardAccrualManager(self.session)
        return await self._run_guarded(
            JOB_CORE_HARVEST,
            run_date,
            "Daily core+harvest",
            lambda: accrual.accrue_all(run_date),
        )

    @log_operation
    async def run_reward_crediting(
        self,
        run_date: date | str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Credit every stake with pending rewards inside the claim window.

        Args:
            run_date: UTC calendar date the run is recorded under
            now: Clock override for the claim window

        Returns:
            Dict with processed, credited, expired, total_amount,
            completed and errors, or the skip marker
        """
        run_date = parse_date(run_date)
        crediting = RewardCreditProcessor(self.session)
        return await self._run_guarded(
            JOB_REWARD_CREDIT,
            run_date,
            "Daily reward crediting",
            lambda: crediting.credit_all_pending(now),
        )

    @log_operation
    async def run_synergy_flow(
        self, run_date: date | str | None = None
    ) -> dict[str, Any]:
        """
        Settle binary cycles for every participant with team volume.

        Returns:
            Dict with processed, cycles, rewards, cap_hits, ineligible and
            errors, or the skip marker
        """
        run_date = parse_date(run_date)
        synergy = SynergyService(self.session)
        return await self._run_guarded(
            JOB_SYNERGY_FLOW,
            run_date,
            "Synergy daily payout",
            lambda: synergy.process_all_users(run_date),
        )

    @log_operation
    async def run_rank_promotion(
        self, run_date: date | str | None = None
    ) -> dict[str, Any]:
        """
        Re-evaluate every participant's rank.

        Returns:
            Dict with users, promoted, demoted and errors, or the skip
            marker
        """
        run_date = parse_date(run_date)
        ranks = RankService(self.session)
        return await self._run_guarded(
            JOB_RANK_PROMOTE,
            run_date,
            "Daily rank promotion",
            ranks.auto_promote_all,
        )

    async def run(
        self, job_name: str, run_date: date | str | None = None
    ) -> dict[str, Any]:
        """
        Run a daily batch by name.

        Raises:
            ValueError: Unknown job name
        """
        runners = {
            JOB_CORE_HARVEST: self.run_core_harvest,
            JOB_REWARD_CREDIT: self.run_reward_crediting,
            JOB_SYNERGY_FLOW: self.run_synergy_flow,
            JOB_RANK_PROMOTE: self.run_rank_promotion,
        }
        runner = runners.get(job_name)
        if runner is None:
            raise ValueError(f"Unknown daily job: {job_name}")
        return await runner(run_date)
