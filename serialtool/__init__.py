"""Serial tool package: an interactive terminal for one serial port."""

from __future__ import annotations

from typing import List, Optional

__all__ = ["main"]


def main(argv: Optional[List[str]] = None) -> int:
    """Run the interactive serial terminal."""

    from .app import main as _app_main

    return _app_main(argv)
