"""
Health check server for scheduler monitoring.

Exposes the scheduler state and the latest run of each daily batch.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.config.constants import DAILY_JOB_NAMES
from app.config.database import async_session_maker
from app.services.job_run_service import JobRunService

# Global scheduler reference for health checks
_scheduler: AsyncIOScheduler | None = None

JobStatusProvider = Callable[[], Awaitable[dict[str, Any]]]


def set_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    """
    Set the scheduler instance for health checks.

    Args:
        scheduler: AsyncIOScheduler instance to monitor
    """
    global _scheduler
    _scheduler = scheduler
    logger.info("Scheduler registered for health checks")


async def latest_job_runs() -> dict[str, Any]:
    """Latest run of every daily batch, keyed by job name."""
    async with async_session_maker() as session:
        service = JobRunService(session)
        runs: dict[str, Any] = {}
        for job_name in DAILY_JOB_NAMES:
            run = await service.get_status(job_name)
            runs[job_name] = (
                {
                    "run_date": run.run_date.isoformat(),
                    "status": run.status,
                }
                if run
                else None
            )
        return runs


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler status and last daily runs
    """
    if _scheduler is None:
        return web.json_response(
            {
                "status": "unhealthy",
                "error": "Scheduler not initialized",
            },
            status=503,
        )

    try:
        is_running = _scheduler.running
        jobs = _scheduler.get_jobs()
        job_info = [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in jobs
        ]
        provider: JobStatusProvider = request.app["job_status_provider"]
        last_runs = await provider()

        return web.json_response(
            {
                "status": "healthy" if is_running else "stopped",
                "scheduler_running": is_running,
                "jobs_count": len(jobs),
                "jobs": job_info,
                "last_runs": last_runs,
            }
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return web.json_response(
            {
                "status": "unhealthy",
                "error": str(e),
            },
            status=503,
        )


async def readiness_handler(request: web.Request) -> web.Response:
    """Ready once the scheduler is running."""
    if _scheduler is None or not _scheduler.running:
        return web.json_response(
            {
                "status": "not_ready",
                "ready": False,
            },
            status=503,
        )

    return web.json_response(
        {
            "status": "ready",
            "ready": True,
        }
    )


async def liveness_handler(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "status": "alive",
            "alive": True,
        }
    )


def create_health_app(
    job_status_provider: JobStatusProvider = latest_job_runs,
) -> web.Application:
    """
    Build the health application.

    Args:
        job_status_provider: Coroutine function returning last daily runs

    Returns:
        aiohttp Application with /health, /readiness and /liveness
    """
    app = web.Application()
    app["job_status_provider"] = job_status_provider
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    host: str = "0.0.0.0",
    port: int = 8081,
) -> web.AppRunner:
    """
    Start health check server.

    Args:
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_health_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    return runner


async def stop_health_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop health check server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Health check server stopped")
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
