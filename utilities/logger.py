"""
Logging system using structlog.
Provides structured logging with different output formats and levels.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Enable debug mode for call-site information
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger().setLevel(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            )
        )

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class RunLogger:
    """
    Logger for run cycle lifecycle events.
    """

    def __init__(self, name: str = "monitor", logger=None):
        self.logger = logger if logger is not None else structlog.get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'RunLogger':
        """Bind context variables to every lifecycle record."""
        self.context.update(kwargs)
        return self

    def log_run_start(self, data_path: str) -> None:
        self.logger.info("Run cycle started", data_path=data_path, **self.context)

    def log_state(self, state: str) -> None:
        self.logger.debug("Run cycle state changed", state=state, **self.context)

    def log_no_changes(self, records: int) -> None:
        self.logger.info("No changes made", records=records, **self.context)

    def log_run_complete(
        self,
        changes: int,
        records_persisted: int,
        duration_seconds: float
    ) -> None:
        """Log run cycle completion."""
        self.logger.info(
            "Run cycle completed",
            changes=changes,
            records_persisted=records_persisted,
            duration_seconds=duration_seconds,
            **self.context
        )
