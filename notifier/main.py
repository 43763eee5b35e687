"""Notifier entrypoint.

Usage:
    notifier
    python -m notifier
Requires ENVIRONMENT, SMTP_HOST, SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD,
FROM_EMAIL and SYNC_BASE_URL (environment or .env). Exits 1 if any is missing.
"""

import asyncio
import signal
import sys

from notifier.core.config import Settings, load_settings
from notifier.core.lifespan import create_lifespan
from notifier.domain.exceptions import ConfigurationException
from notifier.shared.telemetry.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def run(settings: Settings) -> None:
    """Run the daemon until SIGINT/SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers.
            pass

    async with create_lifespan(settings) as runtime:
        runtime.start()
        await stop.wait()
        logger.info("Shutdown requested")


def main() -> None:
    """Load settings (fail fast), configure logging, run."""
    try:
        settings = load_settings()
    except ConfigurationException as exc:
        setup_logging()
        logger.error(exc.message)
        sys.exit(1)

    setup_logging(settings.debug)
    for name, value in settings.log_summary().items():
        logger.info("%s: %s", name, value)

    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
