"""
Central sink for fatal run cycle errors.

Every error reaching the handler is fatal: it is logged, reported by a single
best-effort notification, and turned into a failed RunResult. The hosting
entry point terminates the process with EXIT_FAILURE for failed results.
"""

import structlog

from monitor.exceptions import NotificationError
from monitor.formatter import ChangeFormatter
from monitor.models import RunResult
from monitor.notifier import Notifier

EXIT_FAILURE = 1


class ErrorHandler:
    """Logs fatal errors and reports them by e-mail."""

    def __init__(self, notifier: Notifier, formatter: ChangeFormatter, logger=None):
        self.notifier = notifier
        self.formatter = formatter
        if logger is None:
            logger = structlog.get_logger(__name__).bind(component="error_handler")
        self.logger = logger

    async def handle(
        self,
        error: BaseException,
        context_message: str,
        originated_in_notifier: bool = False
    ) -> RunResult:
        """
        Handle a fatal error.

        Args:
            error: The exception that ended the run cycle
            context_message: What the run cycle was doing
            originated_in_notifier: True when the error came from sending a
                notification; no further notification is attempted then

        Returns:
            Failed RunResult carrying the error and its context
        """
        message = f"{error}\n{context_message}"
        self.logger.error(
            message,
            error_type=type(error).__name__,
            originated_in_notifier=originated_in_notifier
        )

        if not originated_in_notifier:
            try:
                await self.notifier.send(self.formatter.format_error(message))
            except NotificationError as e:
                # Logged only, never re-sent
                await self.handle(e, e.context, originated_in_notifier=True)

        return RunResult.failure(error, context_message)
