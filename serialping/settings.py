"""Shared constants and logging setup for serialping."""

from __future__ import annotations

import logging

CONFIG_FILE = "serialping.json"
LOG_LEVEL = logging.WARNING
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

DEFAULT_PORT = "/dev/ttyACM0"
DEFAULT_BAUDRATE = 115200
DEFAULT_TIMEOUT_MS = 1500
DEFAULT_MESSAGE = "ping"

# Devices such as Arduino bootloaders reset when the port opens.
SETTLE_DELAY = 0.2
POLL_INTERVAL = 0.01
RECEIVE_CAPACITY = 1024

_VERBOSITY_LEVELS = (LOG_LEVEL, logging.INFO, logging.DEBUG)


def level_for_verbosity(verbosity: int) -> int:
    """Map a ``-v`` count to a logging level; extra flags stay at DEBUG."""

    index = min(max(verbosity, 0), len(_VERBOSITY_LEVELS) - 1)
    return _VERBOSITY_LEVELS[index]


def configure_logging(verbosity: int = 0, *, fmt: str = LOG_FORMAT) -> int:
    """Set up the root logger for a command line run and return the level used.

    Asking for more detail replaces handlers installed earlier. Otherwise an
    existing configuration is left alone.
    """

    level = level_for_verbosity(verbosity)
    root = logging.getLogger()
    if verbosity > 0 or not root.handlers:
        logging.basicConfig(level=level, format=fmt, force=True)
    return level
