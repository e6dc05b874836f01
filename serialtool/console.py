"""Operator input polling with a bounded wait on each platform."""

from __future__ import annotations

import os
import queue
import select
import sys
import threading
import time
from typing import Optional, Protocol, TextIO

_READ_CHUNK = 4096


class Console(Protocol):
    def readline(self, timeout: float) -> Optional[str]:
        """Return a full line, ``""`` at end of input, or ``None`` if none is ready."""


class PosixConsole:
    """Poll a file descriptor with ``select`` and split what arrives into lines.

    Reading the raw descriptor rather than the text wrapper keeps ``select``
    and the buffer in agreement when several lines arrive at once.
    """

    def __init__(self, fd: int, *, encoding: str = "utf-8") -> None:
        self._fd = fd
        self._encoding = encoding
        self._buffer = bytearray()
        self._eof = False

    def _pop_line(self) -> Optional[str]:
        end = self._buffer.find(b"\n")
        if end < 0:
            return None
        raw = bytes(self._buffer[: end + 1])
        del self._buffer[: end + 1]
        return raw.decode(self._encoding, errors="replace")

    def readline(self, timeout: float) -> Optional[str]:
        line = self._pop_line()
        if line is not None:
            return line
        if self._eof:
            return self._drain()
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return None
        chunk = os.read(self._fd, _READ_CHUNK)
        if not chunk:
            self._eof = True
            return self._drain()
        self._buffer.extend(chunk)
        return self._pop_line()

    def _drain(self) -> str:
        # An unterminated final line is still delivered before end of input.
        raw = bytes(self._buffer)
        self._buffer.clear()
        return raw.decode(self._encoding, errors="replace")


class WindowsConsole:
    """Poll the Windows keyboard with ``msvcrt`` until a line is entered.

    Redirected input cannot be polled, so a daemon thread reads it line by
    line into a queue and ``readline`` waits on the queue instead.
    """

    _POLL_STEP = 0.01

    def __init__(self, stream: TextIO) -> None:
        import msvcrt

        self._msvcrt = msvcrt
        self._stream = stream
        self._interactive = stream.isatty()
        self._pending: list[str] = []
        self._lines: "queue.Queue[str]" = queue.Queue()
        self._reader_thread: Optional[threading.Thread] = None
        self._eof = False

    def readline(self, timeout: float) -> Optional[str]:
        if not self._interactive:
            return self._readline_redirected(timeout)
        deadline = time.monotonic() + timeout
        while True:
            while self._msvcrt.kbhit():
                ch = self._msvcrt.getwche()
                if ch in ("\r", "\n"):
                    self._msvcrt.putwch("\n")
                    line = "".join(self._pending) + "\n"
                    self._pending.clear()
                    return line
                if ch == "\x1a":
                    return ""
                if ch == "\x08":
                    if self._pending:
                        self._pending.pop()
                        self._msvcrt.putwch(" ")
                        self._msvcrt.putwch("\x08")
                    continue
                self._pending.append(ch)
            if time.monotonic() >= deadline:
                return None
            time.sleep(self._POLL_STEP)

    def _readline_redirected(self, timeout: float) -> Optional[str]:
        if self._eof:
            return ""
        if self._reader_thread is None:
            self._reader_thread = threading.Thread(
                target=self._reader_loop, name="WindowsConsoleReader", daemon=True
            )
            self._reader_thread.start()
        try:
            line = self._lines.get(timeout=timeout)
        except queue.Empty:
            return None
        if line == "":
            self._eof = True
        return line

    def _reader_loop(self) -> None:
        try:
            for line in iter(self._stream.readline, ""):
                self._lines.put(line)
        finally:
            self._lines.put("")


def create_console(stream: Optional[TextIO] = None) -> Console:
    """Return the console backend for the current platform."""

    stream = stream or sys.stdin
    if os.name == "nt":
        return WindowsConsole(stream)
    encoding = getattr(stream, "encoding", None) or "utf-8"
    return PosixConsole(stream.fileno(), encoding=encoding)
