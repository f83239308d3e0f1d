"""Serial port enumeration for the ``--list`` mode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import serial.tools.list_ports


@dataclass(frozen=True)
class PortDescriptor:
    """Identifier and human-readable details of one serial port."""

    device: str
    name: str
    description: str
    hwid: str = ""


class PortService:
    """Wrap pyserial's port enumeration to ease testing."""

    def list_ports(self) -> List[PortDescriptor]:
        ports = []
        for info in serial.tools.list_ports.comports():
            device = getattr(info, "device", None)
            if not device:
                continue
            ports.append(
                PortDescriptor(
                    device=device,
                    name=getattr(info, "name", None) or device,
                    description=getattr(info, "description", None) or "n/a",
                    hwid=getattr(info, "hwid", None) or "",
                )
            )
        return sorted(ports, key=lambda port: port.device)


def format_port_listing(ports: Iterable[PortDescriptor]) -> str:
    lines = ["Available serial ports:"]
    for port in ports:
        lines.append(f"- {port.name} ({port.description}) {port.device}")
    if len(lines) == 1:
        lines.append("(none detected)")
    return "\n".join(lines)
