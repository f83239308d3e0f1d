"""Exception hierarchy shared across serialping."""

from __future__ import annotations


class SerialPingError(Exception):
    """Base class for every error raised by serialping."""


class ConfigError(SerialPingError):
    """Connection parameters are missing or invalid; raised before any I/O."""


class OpenError(SerialPingError):
    """The serial device could not be opened (missing, busy, or permission denied)."""


class WriteError(SerialPingError):
    """Writing to the serial device failed or the session was not open."""


class ReadError(SerialPingError):
    """Reading from the serial device failed or the session was not open."""
