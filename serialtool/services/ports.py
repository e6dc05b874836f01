"""Serial port enumeration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import serial.tools.list_ports


@dataclass
class PortInfo:
    """A port the host reports, as shown by ``--list``."""

    device: str
    description: str

    def __str__(self) -> str:
        if not self.description or self.description == "n/a":
            return self.device
        return f"{self.device} - {self.description}"


class PortService:
    """Wrap pyserial's port listing to ease testing."""

    def list_ports(self) -> List[PortInfo]:
        return [
            PortInfo(device=info.device, description=info.description or "")
            for info in sorted(serial.tools.list_ports.comports(), key=lambda p: p.device)
        ]
