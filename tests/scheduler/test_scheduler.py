"""
Test cases for the scheduler service hosting the change monitor.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from monitor.error_handler import EXIT_FAILURE
from monitor.models import RunResult
from monitor.orchestrator import ChangeMonitor
from scheduler.scheduler_service import EXIT_SUCCESS, JOB_ID, SchedulerService


@pytest.fixture
def mock_monitor():
    monitor = AsyncMock(spec=ChangeMonitor)
    monitor.run.return_value = RunResult(changes_detected=2, notification_sent=True)
    return monitor


class TestRunOnce:
    """Test cases for single-run mode."""

    @pytest.mark.asyncio
    async def test_success_exit_code(self, mock_monitor):
        service = SchedulerService(mock_monitor)

        exit_code = await service.start(run_once=True)

        assert exit_code == EXIT_SUCCESS
        mock_monitor.run.assert_awaited_once()
        assert service.scheduler.running is False

    @pytest.mark.asyncio
    async def test_failure_exit_code(self, mock_monitor):
        mock_monitor.run.return_value = RunResult.failure(TimeoutError("timeout"), "Run cycle failed while fetching")
        service = SchedulerService(mock_monitor)

        assert await service.start(run_once=True) == EXIT_FAILURE


class TestRunJob:
    """Test cases for the scheduled job."""

    @pytest.mark.asyncio
    async def test_job_returns_serialized_result(self, mock_monitor):
        service = SchedulerService(mock_monitor)

        result = await service.run_job()

        assert result["success"] is True
        assert result["changes_detected"] == 2
        assert result["state"] == "idle"
        assert service.exit_code == EXIT_SUCCESS

    @pytest.mark.asyncio
    async def test_failed_job_stops_service(self, mock_monitor):
        mock_monitor.run.return_value = RunResult.failure(OSError("disk full"), "Run cycle failed while persisting")
        service = SchedulerService(mock_monitor)
        service._stop_event = asyncio.Event()

        result = await service.run_job()

        assert result["success"] is False
        assert result["context"] == "Run cycle failed while persisting"
        assert service.exit_code == EXIT_FAILURE
        assert service._stop_event.is_set()


class TestDaemonMode:
    """Test cases for interval scheduling."""

    @pytest.mark.asyncio
    async def test_daemon_stops_after_failed_run(self, mock_monitor):
        """Test the first failed run ends the daemon with a failure status."""
        mock_monitor.run.return_value = RunResult.failure(TimeoutError("timeout"), "Run cycle failed while fetching")
        service = SchedulerService(mock_monitor, interval_minutes=60)

        with patch("scheduler.scheduler_service.signal.signal"):
            exit_code = await asyncio.wait_for(service.start(), timeout=5)

        assert exit_code == EXIT_FAILURE
        mock_monitor.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_job_registration(self, mock_monitor):
        """Test the run job never overlaps and stops cleanly on request."""
        service = SchedulerService(mock_monitor, interval_minutes=30, timezone="Europe/Berlin")
        registered = {}

        async def run_and_stop():
            registered["job"] = service.scheduler.get_job(JOB_ID)
            service._stop_event.set()
            return RunResult()

        mock_monitor.run.side_effect = run_and_stop

        with patch("scheduler.scheduler_service.signal.signal") as mock_signal:
            exit_code = await asyncio.wait_for(service.start(), timeout=5)

        assert exit_code == EXIT_SUCCESS
        assert mock_signal.call_count == 2

        job = registered["job"]
        assert job.max_instances == 1
        assert job.coalesce is True
        assert "0:30:00" in str(job.trigger)

