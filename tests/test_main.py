"""
Test cases for the single-run entry point.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import main
from monitor.error_handler import EXIT_FAILURE
from monitor.models import RunResult
from monitor.orchestrator import ChangeMonitor


@pytest.fixture
def smtp_transport():
    """Replace the SMTP transport so no connection is attempted."""
    transport = MagicMock()
    transport.close = AsyncMock()
    with patch.object(main.SmtpTransport, "from_url", return_value=transport):
        yield transport


@pytest.fixture(autouse=True)
def no_log_setup():
    with patch("main.setup_logging"):
        yield


class TestMain:
    """Test cases for the main entry point."""

    @pytest.mark.asyncio
    async def test_failed_run_exits_with_failure(self, smtp_transport):
        failed = RunResult.failure(TimeoutError("timeout"), "Run cycle failed while fetching")

        with patch.object(ChangeMonitor, "run", AsyncMock(return_value=failed)):
            exit_code = await main.main()

        assert exit_code == EXIT_FAILURE
        smtp_transport.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_successful_run_exits_with_zero(self, smtp_transport):
        with patch.object(ChangeMonitor, "run", AsyncMock(return_value=RunResult())):
            exit_code = await main.main()

        assert exit_code == 0
        smtp_transport.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transport_closed_when_run_raises(self, smtp_transport):
        with patch.object(ChangeMonitor, "run", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(RuntimeError):
                await main.main()

        smtp_transport.close.assert_awaited_once()
