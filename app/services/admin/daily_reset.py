"""
Daily reset service.

Operator procedure that clears today's job rows, and optionally the data
they produced, so the daily batches can run again.
"""

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import (
    JOB_CORE_HARVEST,
    JOB_RANK_PROMOTE,
    JOB_SYNERGY_FLOW,
)
from app.models.enums import TransactionType
from app.repositories.job_run_repository import JobRunRepository
from app.repositories.stake_reward_repository import StakeRewardRepository
from app.repositories.transaction_repository import TransactionRepository
from app.services.admin.team_volume_rebuilder import TeamVolumeRebuilder
from app.services.base_service import BaseService, transaction
from app.utils.datetime_utils import utc_today


class DailyResetService(BaseService):
    """Operator procedure: reset daily batches."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize daily reset service."""
        super().__init__(session)
        self.job_run_repo = JobRunRepository(session)
        self.reward_repo = StakeRewardRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def reset(
        self,
        run_date: date | None = None,
        clean_rewards: bool = False,
        reset_synergy: bool = False,
        reset_ranks: bool = False,
        rebuild_volumes: bool = False,
    ) -> dict:
        """
        Reset the daily batches of a date.

        Any flag resets the core harvest run. Rebuilding volumes happens
        first, in its own transaction.

        Args:
            run_date: UTC calendar date (default today)
            clean_rewards: Also delete that date's stake rewards
            reset_synergy: Reset synergy and delete that date's payouts
            reset_ranks: Reset the rank promotion run
            rebuild_volumes: Rebuild team volumes first

        Returns:
            Dict with jobs_deleted, rewards_deleted,
            synergy_transactions_deleted and volumes
        """
        run_date = run_date or utc_today()
        volumes = None
        if rebuild_volumes:
            volumes = await TeamVolumeRebuilder(self.session).rebuild()

        summary = await self._clear_runs(
            run_date, clean_rewards, reset_synergy, reset_ranks, rebuild_volumes
        )
        summary["volumes"] = volumes
        return summary

    @transaction
    async def _clear_runs(
        self,
        run_date: date,
        clean_rewards: bool,
        reset_synergy: bool,
        reset_ranks: bool,
        rebuild_volumes: bool,
    ) -> dict:
        jobs_deleted = rewards_deleted = synergy_deleted = 0

        if clean_rewards or reset_synergy or reset_ranks or rebuild_volumes:
            jobs_deleted += await self.job_run_repo.delete_run(
                JOB_CORE_HARVEST, run_date
            )
            if clean_rewards:
                rewards_deleted = await self.reward_repo.delete_for_date(run_date)

        if reset_synergy:
            jobs_deleted += await self.job_run_repo.delete_run(
                JOB_SYNERGY_FLOW, run_date
            )
            synergy_deleted = await self.transaction_repo.delete_by_type_on_date(
                TransactionType.SYNERGY_FLOW.value, run_date
            )

        if reset_ranks:
            jobs_deleted += await self.job_run_repo.delete_run(
                JOB_RANK_PROMOTE, run_date
            )

        self.logger.info(
            "Daily processes reset",
            extra={
                "run_date": run_date.isoformat(),
                "jobs_deleted": jobs_deleted,
                "rewards_deleted": rewards_deleted,
                "synergy_transactions_deleted": synergy_deleted,
            },
        )
        return {
            "run_date": run_date.isoformat(),
            "jobs_deleted": jobs_deleted,
            "rewards_deleted": rewards_deleted,
            "synergy_transactions_deleted": synergy_deleted,
        }
