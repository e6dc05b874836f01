"""Interactive duplex session between the operator and one serial port."""

from __future__ import annotations

import enum
import logging
import signal
import sys
import threading
import time
from typing import Callable, Dict, Optional, TextIO

from .commands import CommandKind, parse_command
from .console import Console
from .errors import ReadError, WriteError
from .formatting import format_received, format_sent_hex, format_sent_text
from .transport import Transport

PROMPT = "> "
DEFAULT_READ_SIZE = 1023
DEFAULT_INPUT_TIMEOUT = 0.1
DEFAULT_IDLE_SLEEP = 0.01
_LOGGER = logging.getLogger(__name__)

SignalHandlers = Dict[int, Callable]


class SessionState(enum.Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


def install_signal_handlers(shutdown: threading.Event) -> SignalHandlers:
    """Route SIGINT (and SIGTERM where it exists) to *shutdown*.

    Returns the handlers that were replaced so they can be restored.
    """

    def _handler(_signum, _frame) -> None:
        shutdown.set()

    previous: SignalHandlers = {}
    for name in ("SIGINT", "SIGTERM"):
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        previous[signum] = signal.signal(signum, _handler)
    return previous


def restore_signal_handlers(previous: SignalHandlers) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


class DuplexSession:
    """Poll the transport and the console in turn until told to stop."""

    def __init__(
        self,
        transport: Transport,
        console: Console,
        *,
        output: Optional[TextIO] = None,
        shutdown: Optional[threading.Event] = None,
        read_size: int = DEFAULT_READ_SIZE,
        input_timeout: float = DEFAULT_INPUT_TIMEOUT,
        idle_sleep: float = DEFAULT_IDLE_SLEEP,
    ) -> None:
        self.transport = transport
        self.console = console
        self.output = output or sys.stdout
        self.shutdown = shutdown or threading.Event()
        self.read_size = read_size
        self.input_timeout = input_timeout
        self.idle_sleep = idle_sleep
        self.state = SessionState.RUNNING

    def _emit(self, text: str, *, prompt: bool = True) -> None:
        self.output.write(text + "\n")
        if prompt:
            self.output.write(PROMPT)
        self.output.flush()

    def _terminate(self) -> bool:
        self.state = SessionState.TERMINATED
        return False

    def run(self) -> None:
        self.output.write(PROMPT)
        self.output.flush()
        while self.poll_once():
            pass

    def poll_once(self) -> bool:
        """Run one iteration; return ``False`` once the session has ended."""

        if self.state is SessionState.TERMINATED:
            return False
        if self.shutdown.is_set():
            self._emit("\nShutting down...", prompt=False)
            return self._terminate()

        busy = self._pump_inbound()

        line = self.console.readline(self.input_timeout)
        if line is not None:
            if line == "":
                _LOGGER.debug("Operator input reached end of stream")
                self._emit("", prompt=False)
                return self._terminate()
            busy = True
            if not self._handle_line(line.rstrip("\r\n")):
                return self._terminate()

        if not busy:
            time.sleep(self.idle_sleep)
        return True

    def _pump_inbound(self) -> bool:
        try:
            data = self.transport.read(self.read_size)
        except ReadError as exc:
            _LOGGER.debug("Read failed", exc_info=True)
            self._emit(f"Read error: {exc.reason}")
            return True
        if not data:
            return False
        self._emit("\n" + format_received(data))
        return True

    def _handle_line(self, line: str) -> bool:
        command = parse_command(line)
        if command is None:
            return True
        if command.kind is CommandKind.QUIT:
            return False
        if command.kind is CommandKind.HEX and not command.payload:
            self._emit("No valid hex data to send")
            return True
        try:
            sent = self.transport.write(command.payload)
        except WriteError as exc:
            _LOGGER.debug("Write failed", exc_info=True)
            self._emit(f"Write error: {exc.reason}")
            return True
        if command.kind is CommandKind.HEX:
            self._emit(format_sent_hex(sent))
        else:
            self._emit(format_sent_text(sent, command.text))
        return True
