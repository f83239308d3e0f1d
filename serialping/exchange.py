"""One write followed by one bounded read window over a serial link."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from .config import ConnectionParams
from .settings import POLL_INTERVAL, RECEIVE_CAPACITY
from .transport import PortSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[ConnectionParams], PortSession]
WrittenCallback = Callable[[int], None]


def encode_message(message: str, newline: bool = True) -> bytes:
    """Encode *message* as UTF-8, appending a line feed after encoding if asked."""

    payload = message.encode("utf-8")
    if newline:
        payload += b"\n"
    return payload


def render_text(data: bytes) -> str:
    """Best-effort UTF-8 view of *data*; invalid sequences are replaced."""

    return bytes(data).decode("utf-8", errors="replace")


def render_hex(data: bytes) -> str:
    """Uppercase hex bytes separated by single spaces, e.g. ``"41 0A FF"``."""

    return " ".join(f"{byte:02X}" for byte in bytes(data))


class ReceiveBuffer:
    """Fixed-capacity byte sink with an explicit write cursor."""

    def __init__(self, capacity: int = RECEIVE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("Receive buffer capacity must be positive")
        self.capacity = capacity
        self._data = bytearray(capacity)
        self._cursor = 0

    @property
    def remaining(self) -> int:
        return self.capacity - self._cursor

    @property
    def is_full(self) -> bool:
        return self._cursor >= self.capacity

    def fill_from(self, session: PortSession, available: int) -> int:
        """Read at most *available* bytes from *session* at the cursor."""
        want = min(available, self.remaining)
        read = session.read_into(self._data, self._cursor, want)
        read = max(0, min(read, want))
        self._cursor += read
        return read

    def getvalue(self) -> bytes:
        return bytes(self._data[: self._cursor])


@dataclass(frozen=True)
class NoResponse:
    """Nothing arrived before the read window closed."""

    byte_count: int = 0


@dataclass(frozen=True)
class Response:
    byte_count: int
    raw: bytes

    @property
    def text(self) -> str:
        return render_text(self.raw)

    @property
    def hex(self) -> str:
        return render_hex(self.raw)


ExchangeResult = Union[NoResponse, Response]


class StopReason(Enum):
    TIMEOUT = "timeout"
    BUFFER_FULL = "buffer_full"
    END_OF_STREAM = "end_of_stream"


@dataclass(frozen=True)
class ExchangeReport:
    """Outcome of one exchange plus the counters shown to the user."""

    result: ExchangeResult
    payload: bytes
    bytes_written: int
    elapsed: float
    stop_reason: StopReason


class Exchange:
    """Drive a single request/response cycle on a fresh :class:`PortSession`."""

    def __init__(
        self,
        params: ConnectionParams,
        *,
        newline: bool = True,
        capacity: int = RECEIVE_CAPACITY,
        poll_interval: float = POLL_INTERVAL,
        session_factory: SessionFactory = PortSession,
    ) -> None:
        self.params = params
        self.newline = newline
        self.capacity = capacity
        self.poll_interval = poll_interval
        self._session_factory = session_factory

    def payload_for(self, message: str) -> bytes:
        return encode_message(message, self.newline)

    def run(
        self, message: str, *, on_written: Optional[WrittenCallback] = None
    ) -> ExchangeReport:
        """Send *message* and collect the reply.

        *on_written* receives the accepted byte count after the write and
        before the read window opens.

        Open, write and read failures propagate unchanged; the port is
        closed on every path.
        """

        payload = self.payload_for(message)
        with self._session_factory(self.params) as session:
            written = session.write(payload)
            if written != len(payload):
                logger.warning(
                    "Partial write to %s: %d of %d bytes accepted",
                    self.params.device,
                    written,
                    len(payload),
                )
            if on_written:
                on_written(written)
            buffer = ReceiveBuffer(self.capacity)
            started = time.monotonic()
            reason = self._collect(session, buffer, started)
            elapsed = time.monotonic() - started

        data = buffer.getvalue()
        result: ExchangeResult = Response(len(data), data) if data else NoResponse()
        logger.debug(
            "Exchange on %s finished after %.3fs (%s, %d bytes)",
            self.params.device,
            elapsed,
            reason.value,
            len(data),
        )
        return ExchangeReport(
            result=result,
            payload=payload,
            bytes_written=written,
            elapsed=elapsed,
            stop_reason=reason,
        )

    def _collect(
        self, session: PortSession, buffer: ReceiveBuffer, started: float
    ) -> StopReason:
        timeout = self.params.timeout
        while True:
            if time.monotonic() - started >= timeout:
                return StopReason.TIMEOUT
            if buffer.is_full:
                return StopReason.BUFFER_FULL
            available = session.bytes_available()
            if available < 0:
                return StopReason.END_OF_STREAM
            if available == 0:
                time.sleep(self.poll_interval)
                continue
            buffer.fill_from(session, available)


def send_and_receive(
    params: ConnectionParams, message: str, newline: bool = True
) -> ExchangeReport:
    """Open *params*, send *message* once and return what came back."""

    return Exchange(params, newline=newline).run(message)
