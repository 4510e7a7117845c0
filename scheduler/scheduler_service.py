"""
Scheduler service hosting the change monitor.

This module provides:
- Interval scheduling with APScheduler
- Single-run mode for cron-style hosting
- Process exit status derived from run results
- Graceful shutdown on signals
"""

import asyncio
import signal
from datetime import datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo

import structlog
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from monitor.error_handler import EXIT_FAILURE
from monitor.orchestrator import ChangeMonitor

logger = structlog.get_logger(__name__)

EXIT_SUCCESS = 0
JOB_ID = "change_monitor_run"


class SchedulerService:
    """Repeats the monitor's run cycle until a run fails or a signal arrives."""

    def __init__(
        self,
        monitor: ChangeMonitor,
        interval_minutes: int = 15,
        timezone: str = "UTC"
    ):
        """
        Initialize scheduler service.

        Args:
            monitor: Change monitor to run
            interval_minutes: Minutes between run cycles
            timezone: Timezone for the scheduler
        """
        self.monitor = monitor
        self.interval_minutes = interval_minutes
        self.timezone = timezone
        self.scheduler = AsyncIOScheduler(timezone=timezone)
        self.logger = logger.bind(component="scheduler_service")
        self.exit_code = EXIT_SUCCESS
        self._stop_event: Optional[asyncio.Event] = None

        self._setup_scheduler_listeners()

    def _setup_scheduler_listeners(self) -> None:
        """Setup scheduler event listeners."""
        def job_executed_listener(event):
            self.logger.info(
                "Job executed",
                job_id=event.job_id,
                success=event.retval.get('success') if event.retval else None
            )

        def job_error_listener(event):
            self.logger.error(
                "Job execution failed",
                job_id=event.job_id,
                error=str(event.exception)
            )

        self.scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)

    def _setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down gracefully...")
            loop.call_soon_threadsafe(self._stop_event.set)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def start(self, run_once: bool = False) -> int:
        """
        Start the scheduler service.

        Args:
            run_once: Run a single cycle instead of scheduling

        Returns:
            Process exit status
        """
        if run_once:
            self.logger.info("Starting scheduler service in RUN ONCE MODE")
            result = await self.run_job()
            return EXIT_SUCCESS if result['success'] else EXIT_FAILURE

        self._stop_event = asyncio.Event()
        self._setup_signal_handlers(asyncio.get_running_loop())

        self.scheduler.add_job(
            func=self.run_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes, timezone=self.timezone),
            id=JOB_ID,
            name='Change Monitor Run',
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(ZoneInfo(self.timezone)),
            replace_existing=True
        )
        self.scheduler.start()

        self.logger.info(
            "Scheduler service started",
            timezone=self.timezone,
            interval_minutes=self.interval_minutes
        )

        await self._stop_event.wait()
        self.stop()
        return self.exit_code

    def stop(self) -> None:
        """Stop the scheduler service."""
        self.logger.info("Stopping scheduler service")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.logger.info("Scheduler service stopped")

    async def run_job(self) -> Dict:
        """Run one monitor cycle and stop the service if it failed."""
        result = await self.monitor.run()

        if not result.success:
            self.exit_code = EXIT_FAILURE
            self.logger.error(
                "Run cycle failed, stopping scheduler",
                error=result.error,
                context=result.context
            )
            if self._stop_event is not None:
                self._stop_event.set()

        return result.model_dump(mode="json")

