"""Parsing of operator input lines into commands."""

from __future__ import annotations

import enum
import string
from dataclasses import dataclass
from typing import Optional

QUIT_COMMAND = ":quit"
HEX_PREFIX = ":hex "
MAX_HEX_PAYLOAD = 512

_HEX_DIGITS = frozenset(string.hexdigits)


class CommandKind(enum.Enum):
    QUIT = "quit"
    HEX = "hex"
    TEXT = "text"


@dataclass(frozen=True)
class PendingCommand:
    """A single operator line, ready to be acted on."""

    kind: CommandKind
    text: str
    payload: bytes = b""


def parse_hex(text: str, limit: int = MAX_HEX_PAYLOAD) -> bytes:
    """Decode pairs of hex digits from *text*.

    Spaces between pairs are skipped. Decoding stops at the first pair that is
    not two hex digits (including a dangling final nibble) and after *limit*
    bytes.
    """

    out = bytearray()
    i = 0
    length = len(text)
    while i < length and len(out) < limit:
        if text[i] == " ":
            i += 1
            continue
        pair = text[i : i + 2]
        if len(pair) < 2 or not set(pair) <= _HEX_DIGITS:
            break
        out.append(int(pair, 16))
        i += 2
    return bytes(out)


def parse_command(line: str) -> Optional[PendingCommand]:
    """Classify a line already stripped of its terminator; ``None`` if empty."""

    if not line:
        return None
    if line == QUIT_COMMAND:
        return PendingCommand(CommandKind.QUIT, line)
    if line.startswith(HEX_PREFIX):
        return PendingCommand(
            CommandKind.HEX, line, parse_hex(line[len(HEX_PREFIX) :])
        )
    return PendingCommand(CommandKind.TEXT, line, line.encode("utf-8"))
