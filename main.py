"""
Main entry point for a single change monitor run.
Suitable for cron: exits 0 after a successful cycle and 1 after a failed one.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from monitor.error_handler import EXIT_FAILURE
from monitor.orchestrator import ChangeMonitor
from monitor.transport import SmtpTransport
from targets.json_feed import JsonFeedTarget
from utilities.config import config
from utilities.logger import setup_logging, get_logger


async def main() -> int:
    """Run one monitor cycle and return the process exit status."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info("Starting change monitor", feed_url=config.feed_url)

    transport = SmtpTransport.from_url(config.smtp_string)
    try:
        target = JsonFeedTarget.from_settings(config).to_target()
        monitor = ChangeMonitor.from_settings(config, target, transport)
        result = await monitor.run()
    finally:
        await transport.close()

    if not result.success:
        return EXIT_FAILURE
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
