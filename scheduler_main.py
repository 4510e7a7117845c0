"""
Main entry point for the change monitor scheduler.

This script repeats the run cycle at a fixed interval. A failed run stops the
scheduler and exits with a non-zero status so the supervisor restarts the
process with a fresh SMTP session.

Usage:
    python scheduler_main.py           # Run every CHECK_INTERVAL_MINUTES
    python scheduler_main.py --once    # Run a single cycle
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from monitor.error_handler import EXIT_FAILURE
from monitor.orchestrator import ChangeMonitor
from monitor.transport import SmtpTransport
from scheduler.scheduler_service import SchedulerService
from targets.json_feed import JsonFeedTarget
from utilities.config import config
from utilities.logger import setup_logging, get_logger


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the change monitor scheduler")
    parser.add_argument(
        "--once",
        action="store_true",
        help="run a single cycle and exit"
    )
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Start the scheduler service and return the process exit status."""
    args = parse_args(argv)

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info(
        "Starting change monitor scheduler",
        run_once=args.once,
        interval_minutes=config.check_interval_minutes,
        timezone=config.timezone
    )

    transport = SmtpTransport.from_url(config.smtp_string)
    try:
        target = JsonFeedTarget.from_settings(config).to_target()
        monitor = ChangeMonitor.from_settings(config, target, transport)
        service = SchedulerService(
            monitor,
            interval_minutes=config.check_interval_minutes,
            timezone=config.timezone
        )
        exit_code = await service.start(run_once=args.once)
    except Exception as e:
        logger.error("Failed to start scheduler service", error=str(e))
        exit_code = EXIT_FAILURE
    finally:
        await transport.close()

    return exit_code


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
