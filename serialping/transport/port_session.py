"""Serial port session: open, configure, write, poll and close one link."""

from __future__ import annotations

import errno
import logging
import time
from enum import Enum
from typing import Optional

import serial

from ..config import ConnectionParams
from ..errors import OpenError, ReadError, WriteError
from ..settings import SETTLE_DELAY

END_OF_STREAM = -1

_LOGGER = logging.getLogger(__name__)
_DISCONNECT_ERRNOS = frozenset({errno.EIO, errno.ENXIO, errno.ENODEV})


class SessionState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


def _is_disconnect(exc: OSError) -> bool:
    return getattr(exc, "errno", None) in _DISCONNECT_ERRNOS


class PortSession:
    """Owns a single serial connection from open to close.

    A session opens at most once. After :meth:`close` every I/O call raises
    instead of touching the closed port.
    """

    def __init__(self, params: ConnectionParams) -> None:
        self.params = params
        self.state = SessionState.UNOPENED
        self._serial: Optional[serial.Serial] = None

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    def open(self) -> serial.Serial:
        if self.state is not SessionState.UNOPENED:
            raise OpenError(
                f"Session for {self.params.device} is {self.state.value}; it cannot be reopened"
            )
        params = self.params
        try:
            ser = serial.serial_for_url(params.device, do_not_open=True)
            ser.baudrate = params.baudrate
            ser.bytesize = params.data_bits
            ser.stopbits = params.stop_bits.value
            ser.parity = params.parity.value
            ser.timeout = params.timeout
            # zero means non-blocking for reads only; writes then block
            ser.write_timeout = params.timeout or None
            ser.open()
        except (serial.SerialException, OSError, ValueError) as exc:
            raise OpenError(
                f"Failed to open port {params.device}. Check that it exists and "
                f"you have permission (dialout group): {exc}"
            ) from exc
        self._serial = ser
        self.state = SessionState.OPEN
        _LOGGER.info(
            "Opened %s @ %d baud (%s)", params.device, params.baudrate, params.framing
        )
        time.sleep(SETTLE_DELAY)
        return ser

    def close(self) -> None:
        ser = self._serial
        self._serial = None
        if self.state is SessionState.OPEN:
            _LOGGER.info("Closing %s", self.params.device)
        self.state = SessionState.CLOSED
        if ser is None:
            return
        try:
            ser.close()
        except Exception:
            _LOGGER.debug("Failed to close %s", self.params.device, exc_info=True)

    def __enter__(self) -> "PortSession":
        try:
            self.open()
        except Exception:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def write(self, payload: bytes) -> int:
        """Write *payload* once and return how many bytes the driver accepted."""
        ser = self._require_open(WriteError)
        try:
            written = ser.write(payload)
        except (serial.SerialException, OSError) as exc:
            raise WriteError(f"Write to {self.params.device} failed: {exc}") from exc
        if written is None:
            written = len(payload)
        _LOGGER.debug("TX %r (%d/%d bytes)", payload, written, len(payload))
        return written

    def bytes_available(self) -> int:
        """Return the number of bytes waiting, or ``END_OF_STREAM`` if the link ended."""
        ser = self._require_open(ReadError)
        if not ser.is_open:
            return END_OF_STREAM
        try:
            return ser.in_waiting
        except (serial.SerialException, OSError) as exc:
            if _is_disconnect(exc):
                _LOGGER.debug("Link %s reported disconnect: %s", self.params.device, exc)
                return END_OF_STREAM
            raise ReadError(
                f"Could not query {self.params.device} for pending bytes: {exc}"
            ) from exc

    def read_into(self, buffer: bytearray, offset: int, max_len: int) -> int:
        """Read up to *max_len* bytes into ``buffer[offset:]`` and return the count."""
        ser = self._require_open(ReadError)
        if max_len <= 0:
            return 0
        try:
            chunk = ser.read(max_len)
        except (serial.SerialException, OSError) as exc:
            raise ReadError(f"Read from {self.params.device} failed: {exc}") from exc
        count = min(len(chunk), max_len, len(buffer) - offset)
        buffer[offset : offset + count] = chunk[:count]
        if count:
            _LOGGER.debug("RX %r", bytes(chunk[:count]))
        return count

    def _require_open(self, error_type: type) -> serial.Serial:
        if self.state is not SessionState.OPEN or self._serial is None:
            raise error_type(f"Serial port {self.params.device} is not open")
        return self._serial
