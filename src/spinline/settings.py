from __future__ import annotations
import os
from datetime import timedelta

from .durations import format_duration, parse_duration
from .errors import ConfigError


def duration_env(name: str, default: str) -> timedelta:
    """Read a positive duration from the environment, or raise ConfigError naming the variable."""
    raw = os.environ.get(name, default)
    try:
        value = parse_duration(raw)
    except ValueError as e:
        raise ConfigError(f"{name}: {e}") from e
    if value <= timedelta(0):
        raise ConfigError(f"{name} must be positive, got {format_duration(value)}")
    return value


DEFAULT_TIMEOUT = duration_env("SPINLINE_DEFAULT_TIMEOUT", "10m")
LOG_LEVEL = os.environ.get("SPINLINE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("SPINLINE_LOG_FORMAT", "console")  # console|json
KILL_GRACE = duration_env("SPINLINE_KILL_GRACE", "2s")
POLL_INTERVAL = duration_env("SPINLINE_POLL_INTERVAL", "50ms")
