"""Serial port transport built on pyserial."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import serial

from ..errors import (
    ConfigureError,
    OpenError,
    ReadError,
    WriteError,
    describe_os_error,
)

DEFAULT_BAUDRATE = 9600
BAUD_RATES = (9600, 19200, 38400, 57600, 115200, 230400, 460800, 921600)
DEFAULT_READ_TIMEOUT = 0.05
DEFAULT_WRITE_TIMEOUT = 1.0
_LOGGER = logging.getLogger(__name__)


class Transport(Protocol):
    """Byte transport consumed by the interactive session."""

    @property
    def is_open(self) -> bool: ...

    def read(self, max_len: int) -> bytes: ...

    def write(self, data: bytes) -> int: ...

    def close(self) -> None: ...


def resolve_baudrate(requested: int) -> int:
    """Map *requested* onto the supported table, degrading to 9600.

    Unknown rates are not an error: the port still opens at the default speed.
    """

    if requested in BAUD_RATES:
        return requested
    _LOGGER.warning(
        "Unsupported baud rate %s; falling back to %d", requested, DEFAULT_BAUDRATE
    )
    return DEFAULT_BAUDRATE


class SerialPort:
    """One open serial device with raw 8N1 settings and short read timeouts."""

    def __init__(
        self, path: str, requested_baudrate: int, ser: serial.SerialBase
    ) -> None:
        self.path = path
        self.requested_baudrate = requested_baudrate
        self.baudrate = ser.baudrate
        self._serial: Optional[serial.SerialBase] = ser

    def __enter__(self) -> "SerialPort":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"SerialPort({self.path!r}, baudrate={self.baudrate}, {state})"

    @property
    def is_open(self) -> bool:
        return bool(self._serial and self._serial.is_open)

    def read(self, max_len: int) -> bytes:
        """Return up to *max_len* bytes; ``b""`` when nothing arrived in time."""

        if max_len <= 0:
            return b""
        ser = self._serial
        if ser is None or not ser.is_open:
            raise ReadError(self.path, "port is closed")
        try:
            waiting = ser.in_waiting
            if waiting:
                data = ser.read(min(max_len, waiting))
            else:
                data = ser.read(1)
                waiting = ser.in_waiting if data and max_len > 1 else 0
                if waiting:
                    data += ser.read(min(max_len - 1, waiting))
        except (serial.SerialException, OSError) as exc:
            raise ReadError(self.path, describe_os_error(exc)) from exc
        if data:
            _LOGGER.debug("Read %d bytes from %s", len(data), self.path)
        return bytes(data)

    def write(self, data: bytes) -> int:
        """Write *data* and return how many bytes the driver accepted."""

        ser = self._serial
        if ser is None or not ser.is_open:
            raise WriteError(self.path, "port is closed")
        if not data:
            return 0
        try:
            written = ser.write(data)
            ser.flush()
        except serial.SerialTimeoutException as exc:
            raise WriteError(self.path, "write timed out") from exc
        except (serial.SerialException, OSError) as exc:
            raise WriteError(self.path, describe_os_error(exc)) from exc
        # Some pyserial backends return None for a complete write.
        count = len(data) if written is None else int(written)
        _LOGGER.debug("Wrote %d/%d bytes to %s", count, len(data), self.path)
        return count

    def close(self) -> None:
        ser = self._serial
        self._serial = None
        if ser is None:
            return
        try:
            ser.close()
        except (serial.SerialException, OSError):
            _LOGGER.warning("Error while closing %s", self.path, exc_info=True)
        else:
            _LOGGER.info("Closed %s", self.path)


def _configure(
    ser: serial.SerialBase,
    baudrate: int,
    *,
    read_timeout: float,
    write_timeout: Optional[float],
) -> None:
    # Each assignment reapplies the settings to the open device.
    ser.baudrate = baudrate
    ser.bytesize = serial.EIGHTBITS
    ser.parity = serial.PARITY_NONE
    ser.stopbits = serial.STOPBITS_ONE
    ser.xonxoff = False
    ser.rtscts = False
    ser.dsrdtr = False
    ser.timeout = read_timeout
    ser.write_timeout = write_timeout


def open_port(
    path: str,
    baudrate: int = DEFAULT_BAUDRATE,
    *,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
    write_timeout: Optional[float] = DEFAULT_WRITE_TIMEOUT,
) -> SerialPort:
    """Open *path* and configure it for raw 8N1 without flow control.

    Raises:
        OpenError: the device could not be opened.
        ConfigureError: the device opened but rejected the line settings. The
            device is closed before the error propagates.
    """

    speed = resolve_baudrate(baudrate)
    try:
        ser = serial.serial_for_url(path, do_not_open=True)
        ser.open()
    except (serial.SerialException, ValueError, OSError) as exc:
        raise OpenError(path, describe_os_error(exc)) from exc

    try:
        _configure(
            ser, speed, read_timeout=read_timeout, write_timeout=write_timeout
        )
    except (serial.SerialException, ValueError, OSError) as exc:
        try:
            ser.close()
        except (serial.SerialException, OSError):
            _LOGGER.debug("Failed to close %s after configure error", path, exc_info=True)
        raise ConfigureError(path, describe_os_error(exc)) from exc

    _LOGGER.info("Opened %s at %d baud", path, speed)
    return SerialPort(path, baudrate, ser)
