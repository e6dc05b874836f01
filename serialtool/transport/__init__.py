"""Transport layer abstractions for the serial tool."""

from .serial_port import (
    BAUD_RATES,
    DEFAULT_BAUDRATE,
    SerialPort,
    Transport,
    open_port,
    resolve_baudrate,
)

__all__ = [
    "BAUD_RATES",
    "DEFAULT_BAUDRATE",
    "SerialPort",
    "Transport",
    "open_port",
    "resolve_baudrate",
]
