"""
Daily batch scheduler.

Enqueues the daily actors on cron triggers: core harvest first, reward
crediting five minutes later, then synergy flow and rank promotion ten
minutes apart. An extra enqueue for a date is skipped by the job-run
guard while that date's row is running, succeeded or failed.

Run with ``python -m jobs.scheduler``.
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from app.config.constants import (
    JOB_CORE_HARVEST,
    JOB_RANK_PROMOTE,
    JOB_REWARD_CREDIT,
    JOB_SYNERGY_FLOW,
)
from app.config.settings import settings
from app.utils.logging_config import setup_logging
from jobs.health import set_scheduler, start_health_server, stop_health_server
from jobs.tasks import (
    run_core_harvest,
    run_rank_promotion,
    run_reward_crediting,
    run_synergy_flow,
)


def build_scheduler() -> AsyncIOScheduler:
    """
    Create the scheduler with one cron job per daily batch.

    Returns:
        Configured, not yet started AsyncIOScheduler
    """
    scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)
    schedule = [
        (JOB_CORE_HARVEST, run_core_harvest, settings.core_harvest_cron_hour, 5),
        (JOB_REWARD_CREDIT, run_reward_crediting, settings.reward_credit_cron_hour, 10),
        (JOB_SYNERGY_FLOW, run_synergy_flow, settings.synergy_cron_hour, 15),
        (JOB_RANK_PROMOTE, run_rank_promotion, settings.rank_promote_cron_hour, 25),
    ]
    for job_id, actor, hour, minute in schedule:
        scheduler.add_job(
            actor.send,
            CronTrigger(
                hour=hour, minute=minute, timezone=settings.scheduler_timezone
            ),
            id=job_id,
            name=job_id,
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=3600,
        )
    return scheduler


async def main() -> None:
    """Run the scheduler and health server until SIGINT/SIGTERM."""
    setup_logging(settings.log_level, settings.log_file)

    scheduler = build_scheduler()
    scheduler.start()
    set_scheduler(scheduler)
    runner = await start_health_server(settings.health_host, settings.health_port)

    for job in scheduler.get_jobs():
        logger.info(f"Scheduled {job.id}: next run {job.next_run_time}")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await stop_event.wait()

    logger.info("Shutting down scheduler...")
    scheduler.shutdown(wait=False)
    set_scheduler(None)
    await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
