"""Connection parameters and the optional JSON defaults file."""
from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import serial

from .errors import ConfigError
from .settings import (
    CONFIG_FILE,
    DEFAULT_BAUDRATE,
    DEFAULT_MESSAGE,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_MS,
)

logger = logging.getLogger(__name__)


class StopBits(Enum):
    ONE = serial.STOPBITS_ONE
    ONE_POINT_FIVE = serial.STOPBITS_ONE_POINT_FIVE
    TWO = serial.STOPBITS_TWO

    @classmethod
    def parse(cls, value: Any) -> "StopBits":
        """Accept ``1``, ``1.5``, ``2`` as numbers or strings."""
        if isinstance(value, StopBits):
            return value
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid stop bits: {value!r}") from None
        for member in cls:
            if member.value == number:
                return member
        raise ConfigError(f"Invalid stop bits: {value!r} (expected 1, 1.5 or 2)")

    def __str__(self) -> str:
        return f"{self.value:g}"


class Parity(Enum):
    NONE = serial.PARITY_NONE
    ODD = serial.PARITY_ODD
    EVEN = serial.PARITY_EVEN
    MARK = serial.PARITY_MARK
    SPACE = serial.PARITY_SPACE

    @classmethod
    def parse(cls, value: Any) -> "Parity":
        """Accept names (``"even"``) or pyserial letters (``"E"``), any case."""
        if isinstance(value, Parity):
            return value
        text = str(value).strip().upper()
        for member in cls:
            if text in (member.name, member.value):
                return member
        raise ConfigError(
            f"Invalid parity: {value!r} (expected none, odd, even, mark or space)"
        )

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class ConnectionParams:
    """Everything needed to open one serial link.

    ``timeout`` is in seconds and bounds both the response window and the
    underlying read/write calls. Zero means non-blocking.
    """

    device: str
    baudrate: int = DEFAULT_BAUDRATE
    data_bits: int = 8
    stop_bits: StopBits = StopBits.ONE
    parity: Parity = Parity.NONE
    timeout: float = DEFAULT_TIMEOUT_MS / 1000.0

    def __post_init__(self) -> None:
        if not isinstance(self.device, str) or not self.device.strip():
            raise ConfigError("A serial device is required (e.g. /dev/ttyACM0)")
        if isinstance(self.baudrate, bool) or not isinstance(self.baudrate, int):
            raise ConfigError(f"Baud rate must be an integer, got {self.baudrate!r}")
        if self.baudrate <= 0:
            raise ConfigError(f"Baud rate must be positive, got {self.baudrate}")
        if isinstance(self.data_bits, bool) or not isinstance(self.data_bits, int):
            raise ConfigError(f"Data bits must be an integer, got {self.data_bits!r}")
        if self.data_bits not in (5, 6, 7, 8):
            raise ConfigError(f"Data bits must be between 5 and 8, got {self.data_bits!r}")
        if not isinstance(self.stop_bits, StopBits):
            raise ConfigError(f"Invalid stop bits: {self.stop_bits!r}")
        if not isinstance(self.parity, Parity):
            raise ConfigError(f"Invalid parity: {self.parity!r}")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigError(f"Timeout must be a number of seconds, got {self.timeout!r}")
        if not math.isfinite(self.timeout) or self.timeout < 0:
            raise ConfigError(f"Timeout must be non-negative, got {self.timeout!r}")

    @property
    def framing(self) -> str:
        """Short ``8N1`` style description of the line settings."""
        return f"{self.data_bits}{self.parity.value}{self.stop_bits}"


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
    return default


@dataclass
class CliDefaults:
    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    data_bits: int = 8
    stop_bits: str = "1"
    parity: str = "none"
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    message: str = DEFAULT_MESSAGE
    newline: bool = True


def load_config(path: str | Path = CONFIG_FILE) -> CliDefaults:
    """Load command line defaults from *path* or return built-in defaults on failure."""

    defaults = CliDefaults()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return defaults

    try:
        raw = json.loads(cfg_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.error("Config file %s contains invalid JSON: %s", cfg_path, exc)
        return defaults
    except OSError as exc:
        logger.error("Could not read config file %s: %s", cfg_path, exc)
        return defaults

    if not isinstance(raw, dict):
        logger.error("Config file %s did not contain an object", cfg_path)
        return defaults

    data = asdict(defaults)
    data["port"] = str(raw.get("port", data["port"]))
    data["baudrate"] = _coerce_int(raw.get("baudrate"), defaults.baudrate)
    data["data_bits"] = _coerce_int(raw.get("data_bits"), defaults.data_bits)
    data["stop_bits"] = str(raw.get("stop_bits", data["stop_bits"]))
    data["parity"] = str(raw.get("parity", data["parity"]))
    data["timeout_ms"] = max(0, _coerce_int(raw.get("timeout_ms"), defaults.timeout_ms))
    data["message"] = str(raw.get("message", data["message"]))
    data["newline"] = _coerce_bool(raw.get("newline"), defaults.newline)

    logger.debug("Loaded defaults from %s", cfg_path)
    return CliDefaults(**data)
