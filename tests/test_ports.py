import unittest
from types import SimpleNamespace
from unittest import mock

from serialping.services import PortDescriptor, PortService, format_port_listing


class PortServiceTests(unittest.TestCase):
    @mock.patch("serialping.services.ports.serial.tools.list_ports.comports")
    def test_list_ports_wraps_comports(self, mock_comports) -> None:
        mock_comports.return_value = [
            SimpleNamespace(
                device="/dev/ttyUSB0",
                name="ttyUSB0",
                description="CP2102 USB to UART",
                hwid="USB VID:PID=10C4:EA60",
            ),
            SimpleNamespace(device="/dev/ttyACM0", name=None, description="", hwid=None),
            SimpleNamespace(device=None),
        ]

        ports = PortService().list_ports()

        self.assertEqual(
            ports,
            [
                PortDescriptor("/dev/ttyACM0", "/dev/ttyACM0", "n/a", ""),
                PortDescriptor(
                    "/dev/ttyUSB0",
                    "ttyUSB0",
                    "CP2102 USB to UART",
                    "USB VID:PID=10C4:EA60",
                ),
            ],
        )

    def test_format_listing(self) -> None:
        text = format_port_listing(
            [PortDescriptor("/dev/ttyACM0", "ttyACM0", "USB Serial Device")]
        )
        self.assertEqual(
            text, "Available serial ports:\n- ttyACM0 (USB Serial Device) /dev/ttyACM0"
        )

    def test_format_empty_listing(self) -> None:
        self.assertEqual(
            format_port_listing([]), "Available serial ports:\n(none detected)"
        )


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
