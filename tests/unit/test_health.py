"""
Unit tests for the scheduler health endpoints.
"""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from aiohttp.test_utils import make_mocked_request

from jobs import health


async def fake_job_runs():
    return {"core_harvest": {"run_date": "2024-01-01", "status": "success"}}


@pytest.fixture
def app():
    return health.create_health_app(job_status_provider=fake_job_runs)


@pytest.fixture
def scheduler():
    job = MagicMock()
    job.id = "core_harvest"
    job.name = "core_harvest"
    job.next_run_time = datetime(2024, 1, 2, 0, 5, tzinfo=timezone.utc)

    scheduler = MagicMock()
    scheduler.running = True
    scheduler.get_jobs.return_value = [job]

    health.set_scheduler(scheduler)
    yield scheduler
    health.set_scheduler(None)


class TestHealthHandler:
    """/health endpoint."""

    @pytest.mark.asyncio
    async def test_without_scheduler(self, app):
        request = make_mocked_request("GET", "/health", app=app)

        response = await health.health_handler(request)

        assert response.status == 503
        assert json.loads(response.text)["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_reports_jobs_and_last_runs(self, app, scheduler):
        request = make_mocked_request("GET", "/health", app=app)

        response = await health.health_handler(request)

        body = json.loads(response.text)
        assert response.status == 200
        assert body["status"] == "healthy"
        assert body["jobs_count"] == 1
        assert body["jobs"][0]["next_run_time"] == "2024-01-02T00:05:00+00:00"
        assert body["last_runs"]["core_harvest"]["status"] == "success"

    @pytest.mark.asyncio
    async def test_provider_failure_is_unhealthy(self, scheduler):
        async def broken():
            raise RuntimeError("db down")

        app = health.create_health_app(job_status_provider=broken)
        request = make_mocked_request("GET", "/health", app=app)

        response = await health.health_handler(request)

        assert response.status == 503
        assert json.loads(response.text)["error"] == "db down"


class TestLivenessAndReadiness:
    """/readiness and /liveness."""

    @pytest.mark.asyncio
    async def test_not_ready_when_stopped(self, app, scheduler):
        scheduler.running = False
        request = make_mocked_request("GET", "/readiness", app=app)

        response = await health.readiness_handler(request)

        assert response.status == 503

    @pytest.mark.asyncio
    async def test_ready_when_running(self, app, scheduler):
        request = make_mocked_request("GET", "/readiness", app=app)

        response = await health.readiness_handler(request)

        assert json.loads(response.text)["ready"] is True

    @pytest.mark.asyncio
    async def test_alive(self, app):
        request = make_mocked_request("GET", "/liveness", app=app)
        response = await health.liveness_handler(request)
        assert json.loads(response.text) == {"status": "alive", "alive": True}
