"""Command line entry point for the serial tool."""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
import threading
from typing import List, Optional, TextIO

from .config import ToolConfig
from .config import load_config as load_tool_config
from .console import Console, create_console
from .errors import TransportError
from .services import PortService
from .session import DuplexSession, install_signal_handlers, restore_signal_handlers
from .settings import CONFIG_FILE, configure_logging
from .transport import DEFAULT_BAUDRATE, SerialPort, open_port

_LOGGER = logging.getLogger(__name__)
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

if os.name == "nt":
    _EXAMPLE_PORTS = ("COM3 115200", "COM1")
else:
    _EXAMPLE_PORTS = ("/dev/ttyUSB0 115200", "/dev/ttyACM0")

COMMAND_HELP = (
    "Commands:\n"
    "  :hex <data>  - Send hex data (e.g., :hex 48656C6C6F)\n"
    "  :quit        - Exit program\n"
    "  <text>       - Send text data\n"
)


def parse_baud_argument(value: Optional[str], default: int = DEFAULT_BAUDRATE) -> int:
    """Parse a baud argument the way ``atoi`` would: leading digits or 0."""

    if value is None:
        return default
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def build_parser() -> argparse.ArgumentParser:
    prog = "serialtool"
    examples = "\n".join(f"  {prog} {example}" for example in _EXAMPLE_PORTS)
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Interactive terminal for a serial port.",
        epilog=f"Examples:\n{examples}\n\nDefault baud rate: {DEFAULT_BAUDRATE}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("port", nargs="?", help="serial device path or pyserial URL")
    parser.add_argument("baud", nargs="?", help="baud rate (unsupported values use 9600)")
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help=f"JSON settings file (default: {CONFIG_FILE})",
    )
    parser.add_argument(
        "--list", dest="list_ports", action="store_true", help="list serial ports and exit"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log debug output to stderr"
    )
    return parser


def print_banner(port: SerialPort, out: TextIO) -> None:
    out.write("Serial Communication Tool - Interactive Mode\n")
    out.write(f"Port: {port.path} @ {port.baudrate} baud\n")
    out.write(COMMAND_HELP + "\n")
    out.flush()


def list_ports(out: TextIO, service: Optional[PortService] = None) -> int:
    ports = (service or PortService()).list_ports()
    if not ports:
        out.write("No serial ports found\n")
    for info in ports:
        out.write(f"{info}\n")
    return 0


def create_session(
    port: SerialPort,
    config: ToolConfig,
    *,
    console: Optional[Console] = None,
    output: Optional[TextIO] = None,
    shutdown: Optional[threading.Event] = None,
) -> DuplexSession:
    """Build the interactive session for an already-open *port*."""

    return DuplexSession(
        port,
        console or create_console(),
        output=output,
        shutdown=shutdown,
        read_size=config.read_size,
        input_timeout=config.input_timeout,
        idle_sleep=config.idle_sleep,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the tool and return the process exit status."""

    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_tool_config(args.config)
    configure_logging(level=logging.DEBUG if args.verbose else config.logging_level)

    if args.list_ports:
        return list_ports(sys.stdout)
    if not args.port:
        parser.print_help(sys.stdout)
        return 1

    baudrate = parse_baud_argument(args.baud, config.baudrate)
    shutdown = threading.Event()
    previous = install_signal_handlers(shutdown)
    try:
        try:
            port = open_port(
                args.port,
                baudrate,
                read_timeout=config.read_timeout,
                write_timeout=config.write_timeout,
            )
        except TransportError as exc:
            _LOGGER.debug("Startup failed", exc_info=True)
            print(
                f"Failed to open serial port {args.port} ({exc.operation}): {exc.reason}",
                file=sys.stderr,
            )
            return 1

        print(f"Successfully opened {port.path} at {port.baudrate} baud")
        try:
            print_banner(port, sys.stdout)
            create_session(port, config, shutdown=shutdown).run()
        finally:
            port.close()
            print("Serial port closed.")
    finally:
        restore_signal_handlers(previous)
    return 0


if __name__ == "__main__":
    sys.exit(main())
