"""Shared constants and logging setup for the serial tool."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

CONFIG_FILE = "serialtool.json"
LOG_LEVEL = logging.WARNING
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(
    *,
    level: int = LOG_LEVEL,
    fmt: str = LOG_FORMAT,
    stream: Optional[TextIO] = None,
) -> None:
    """Send log records to stderr so they never mix with session output on stdout.

    An existing root handler is left alone; only its level is updated.
    """

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(level=level, format=fmt, stream=stream or sys.stderr)
