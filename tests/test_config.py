import json
import tempfile
import unittest
from pathlib import Path

import serial

from serialping.config import (
    CliDefaults,
    ConnectionParams,
    Parity,
    StopBits,
    load_config,
)
from serialping.errors import ConfigError


class ConnectionParamsTests(unittest.TestCase):
    def test_defaults_describe_8n1(self) -> None:
        params = ConnectionParams(device="/dev/ttyACM0")
        self.assertEqual(params.baudrate, 115200)
        self.assertEqual(params.timeout, 1.5)
        self.assertEqual(params.framing, "8N1")

    def test_rejects_blank_device(self) -> None:
        with self.assertRaises(ConfigError):
            ConnectionParams(device="  ")

    def test_rejects_out_of_range_values(self) -> None:
        bad = [
            {"baudrate": 0},
            {"baudrate": "9600"},
            {"data_bits": 9},
            {"data_bits": 4},
            {"data_bits": 8.0},
            {"data_bits": True},
            {"timeout": -0.1},
            {"timeout": float("nan")},
            {"timeout": float("inf")},
            {"timeout": "1.5"},
            {"timeout": None},
            {"parity": "N"},
            {"stop_bits": 1},
        ]
        for overrides in bad:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ConfigError):
                    ConnectionParams(device="COM3", **overrides)

    def test_zero_timeout_is_allowed(self) -> None:
        self.assertEqual(ConnectionParams(device="COM3", timeout=0).timeout, 0)

    def test_is_immutable(self) -> None:
        params = ConnectionParams(device="COM3")
        with self.assertRaises(AttributeError):
            params.baudrate = 9600  # type: ignore[misc]


class LineSettingParsingTests(unittest.TestCase):
    def test_stop_bits_parse(self) -> None:
        self.assertIs(StopBits.parse("1"), StopBits.ONE)
        self.assertIs(StopBits.parse("1.5"), StopBits.ONE_POINT_FIVE)
        self.assertIs(StopBits.parse(2), StopBits.TWO)
        self.assertEqual(StopBits.ONE_POINT_FIVE.value, serial.STOPBITS_ONE_POINT_FIVE)
        self.assertEqual(str(StopBits.ONE_POINT_FIVE), "1.5")
        with self.assertRaises(ConfigError):
            StopBits.parse("3")
        with self.assertRaises(ConfigError):
            StopBits.parse("one")

    def test_parity_parse(self) -> None:
        self.assertIs(Parity.parse("even"), Parity.EVEN)
        self.assertIs(Parity.parse("O"), Parity.ODD)
        self.assertIs(Parity.parse(" Space "), Parity.SPACE)
        self.assertEqual(Parity.MARK.value, serial.PARITY_MARK)
        with self.assertRaises(ConfigError):
            Parity.parse("parity")


class LoadConfigTests(unittest.TestCase):
    def test_load_returns_defaults_when_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_config(Path(tmp) / "serialping.json")
        self.assertEqual(cfg, CliDefaults())

    def test_load_merges_and_coerces_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "serialping.json"
            payload = {
                "port": "COM7",
                "baudrate": "9600",
                "timeout_ms": "-5",
                "newline": "false",
                "parity": "even",
            }
            path.write_text(json.dumps(payload), encoding="utf-8")
            cfg = load_config(path)
        self.assertEqual(cfg.port, "COM7")
        self.assertEqual(cfg.baudrate, 9600)
        self.assertEqual(cfg.timeout_ms, 0)
        self.assertFalse(cfg.newline)
        self.assertEqual(cfg.parity, "even")
        # Unspecified fields fall back to defaults
        self.assertEqual(cfg.message, CliDefaults().message)

    def test_invalid_json_falls_back_and_logs(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "serialping.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("serialping.config", level="ERROR"):
                cfg = load_config(path)
        self.assertEqual(cfg, CliDefaults())

    def test_non_object_falls_back(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "serialping.json"
            path.write_text("[1, 2]", encoding="utf-8")
            with self.assertLogs("serialping.config", level="ERROR"):
                cfg = load_config(path)
        self.assertEqual(cfg, CliDefaults())


if __name__ == "__main__":
    unittest.main()
