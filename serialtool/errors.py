"""Error types raised by the serial tool."""

from __future__ import annotations

from typing import Optional


class SerialToolError(Exception):
    """Base class for all serial tool failures."""


class TransportError(SerialToolError):
    """A port operation failed; carries the port path and the OS-level reason."""

    operation = "access"

    def __init__(self, port: str, reason: object) -> None:
        self.port = port
        self.reason = str(reason)
        super().__init__(f"Could not {self.operation} {port}: {self.reason}")


class OpenError(TransportError):
    operation = "open"


class ConfigureError(TransportError):
    operation = "configure"


class ReadError(TransportError):
    operation = "read from"


class WriteError(TransportError):
    operation = "write to"


def describe_os_error(exc: BaseException) -> str:
    """Return the most specific human-readable reason for *exc*."""

    strerror: Optional[str] = getattr(exc, "strerror", None)
    if strerror:
        return strerror
    return str(exc) or exc.__class__.__name__
