"""Logging setup for the notifier daemon."""

import logging
import sys

# Chatty under long-polling: one INFO line per _changes request.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(debug: bool = False) -> None:
    """Send daemon logs to stdout.

    Called once from main() after settings load (DEBUG from the env), or
    with the default when settings failed to load. HTTP client loggers stay
    at WARNING unless debug is on.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(log_level if debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)
