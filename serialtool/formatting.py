"""Rendering of inbound and outbound traffic for the operator."""

from __future__ import annotations

from typing import List

HEX_BYTES_PER_LINE = 16
_ALLOWED_CONTROL = frozenset(b"\n\r\t")


def is_printable(data: bytes) -> bool:
    return all(b >= 32 or b in _ALLOWED_CONTROL for b in data)


def hex_dump_lines(data: bytes, width: int = HEX_BYTES_PER_LINE) -> List[str]:
    """Return ``XX `` groups, *width* per line, with a short final line."""

    return [
        "".join(f"{b:02X} " for b in data[start : start + width])
        for start in range(0, len(data), width)
    ]


def format_received(data: bytes) -> str:
    header = f"Received ({len(data)} bytes):"
    if is_printable(data):
        return f"{header} '{data.decode('utf-8', errors='replace')}'"
    return "\n".join([header, *hex_dump_lines(data)])


def format_sent_text(count: int, text: str) -> str:
    return f"Sent {count} bytes: '{text}'"


def format_sent_hex(count: int) -> str:
    return f"Sent {count} bytes (hex)"
