"""
Run cycle orchestration for the change monitor.

This module provides:
- The fetch, compare, notify and persist cycle
- Failure containment through the error handler
- Assembly of all monitor components from settings
"""

import asyncio
import inspect
from datetime import datetime, timezone
from typing import Callable, Optional

from monitor.error_handler import ErrorHandler
from monitor.exceptions import NotificationError
from monitor.formatter import ChangeFormatter
from monitor.models import MonitorTarget, RunResult, RunState, Snapshot
from monitor.notifier import MailTransport, Notifier
from monitor.snapshot_store import SnapshotStore
from utilities.config import MonitorSettings
from utilities.logger import RunLogger


class ChangeMonitor:
    """Runs one fetch, compare, notify and persist cycle per call."""

    def __init__(
        self,
        target: MonitorTarget,
        store: SnapshotStore,
        formatter: ChangeFormatter,
        notifier: Notifier,
        error_handler: ErrorHandler,
        clock: Optional[Callable[[], datetime]] = None,
        run_logger: Optional[RunLogger] = None
    ):
        """
        Initialize change monitor.

        Args:
            target: Caller-supplied fetch, compare, render and reduce functions
            store: Snapshot store for the previous run's data
            formatter: Builds change notifications
            notifier: Delivers notifications
            error_handler: Sink for fatal errors
            clock: Returns the current wall-clock time
            run_logger: Logger for run lifecycle events
        """
        self.target = target
        self.store = store
        self.formatter = formatter
        self.notifier = notifier
        self.error_handler = error_handler
        self.clock = clock or datetime.now
        self.run_logger = run_logger or RunLogger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: MonitorSettings,
        target: MonitorTarget,
        transport: MailTransport
    ) -> "ChangeMonitor":
        """Assemble a monitor from settings and a transport created at start-up."""
        zone = settings.get_zone()
        formatter = ChangeFormatter(
            mail_title=settings.mail_title,
            render_change=target.render_change,
            locale=settings.locale
        )
        notifier = Notifier(transport, settings.from_mail, settings.to_mail)
        return cls(
            target=target,
            store=SnapshotStore(settings.get_data_path()),
            formatter=formatter,
            notifier=notifier,
            error_handler=ErrorHandler(notifier, formatter),
            clock=lambda: datetime.now(zone),
            run_logger=RunLogger(__name__).bind_context(mail_title=settings.mail_title)
        )

    async def run(self) -> RunResult:
        """
        Execute one run cycle.

        Returns:
            RunResult describing the cycle; failed results carry the error
            that was routed to the error handler
        """
        started_at = datetime.now(timezone.utc)
        state = RunState.IDLE
        self.run_logger.log_run_start(str(self.store.data_path))

        try:
            state = self._enter(RunState.FETCHING)
            current, previous = await asyncio.gather(
                self._fetch_current(),
                self.store.load()
            )

            state = self._enter(RunState.COMPARING)
            changes = list(self.target.compare(current, previous))

            notification_sent = False
            if changes:
                state = self._enter(RunState.NOTIFYING)
                message = self.formatter.format(changes, self.clock())
                await self.notifier.send(message)
                notification_sent = True
            else:
                self.run_logger.log_no_changes(len(current))

            state = self._enter(RunState.PERSISTING)
            stored = self.target.prepare_for_storage(current)
            await self.store.persist(stored)

        except NotificationError as e:
            result = await self.error_handler.handle(e, e.context, originated_in_notifier=True)
            return self._finish(result, started_at)
        except Exception as e:
            result = await self.error_handler.handle(
                e, f"Run cycle failed while {state.value}"
            )
            return self._finish(result, started_at)

        self._enter(RunState.IDLE)
        result = self._finish(
            RunResult(
                changes_detected=len(changes),
                notification_sent=notification_sent,
                records_persisted=len(stored)
            ),
            started_at
        )
        self.run_logger.log_run_complete(
            changes=result.changes_detected,
            records_persisted=result.records_persisted,
            duration_seconds=result.duration_seconds
        )
        return result

    async def _fetch_current(self) -> Snapshot:
        current = self.target.fetch_current()
        if inspect.isawaitable(current):
            current = await current
        return current

    def _enter(self, state: RunState) -> RunState:
        self.run_logger.log_state(state.value)
        return state

    @staticmethod
    def _finish(result: RunResult, started_at: datetime) -> RunResult:
        result.started_at = started_at
        result.duration_seconds = (datetime.now(timezone.utc) - started_at).total_seconds()
        return result
