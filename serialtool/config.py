"""Configuration file support for the serial tool."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any

from .settings import CONFIG_FILE
from .transport import DEFAULT_BAUDRATE

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_float(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 0 else default


@dataclass
class ToolConfig:
    baudrate: int = DEFAULT_BAUDRATE
    read_timeout: float = 0.05
    write_timeout: float = 1.0
    input_timeout: float = 0.1
    idle_sleep: float = 0.01
    read_size: int = 1023
    log_level: str = "WARNING"

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def load_config(path: str | Path = CONFIG_FILE) -> ToolConfig:
    """Load configuration data from *path* or return defaults on failure."""

    defaults = ToolConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return defaults

    try:
        raw = json.loads(cfg_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.error("Config file %s contains invalid JSON: %s", cfg_path, exc)
        return defaults
    except OSError as exc:
        logger.error("Could not read config file %s: %s", cfg_path, exc)
        return defaults

    if not isinstance(raw, dict):
        logger.error("Config file %s did not contain an object", cfg_path)
        return defaults

    data = asdict(defaults)
    data["baudrate"] = _coerce_int(raw.get("baudrate"), defaults.baudrate)
    for key in ("read_timeout", "write_timeout", "input_timeout", "idle_sleep"):
        data[key] = _coerce_float(raw.get(key), data[key])
    data["read_size"] = max(1, _coerce_int(raw.get("read_size"), defaults.read_size))
    level = str(raw.get("log_level", defaults.log_level)).upper()
    if level not in _LOG_LEVELS:
        logger.error("Unknown log level %r in %s", level, cfg_path)
        level = defaults.log_level
    data["log_level"] = level

    return ToolConfig(**data)