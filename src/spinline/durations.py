# durations.py
from __future__ import annotations

import re
from datetime import timedelta
from typing import Union

# Durations are numbers with unit suffixes: "300ms", "1.5s", "1h30m".
# Bare numbers are seconds.

_UNIT_US = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_FULL = re.compile(r"[-+]?(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|μs|ms|s|m|h))+")
_PLAIN_NUMBER = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """
    Parse a duration.

    Accepts a timedelta, a number of seconds, a numeric string (seconds) or a
    duration string made of one or more <number><unit> parts.

    Raises:
        ValueError: if the value can't be read as a duration.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration: {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("invalid duration: empty string")

    if _PLAIN_NUMBER.fullmatch(text):
        return timedelta(seconds=float(text))
    if not _DURATION_FULL.fullmatch(text):
        raise ValueError(f"invalid duration: {value!r}")

    sign = -1 if text.startswith("-") else 1
    total_us = 0.0
    for number, unit in _DURATION_PART.findall(text):
        total_us += float(number) * _UNIT_US[unit]

    return timedelta(microseconds=sign * round(total_us))


def format_duration(td: timedelta) -> str:
    """Render a timedelta as a duration string ("100ms", "1m30s")."""
    total_us = td // timedelta(microseconds=1)
    if total_us == 0:
        return "0s"

    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)

    if total_us < 1_000:
        return f"{sign}{total_us}us"
    if total_us < 1_000_000:
        ms, us = divmod(total_us, 1_000)
        frac = f".{us:03d}".rstrip("0") if us else ""
        return f"{sign}{ms}{frac}ms"

    hours, rem = divmod(total_us, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    seconds, us = divmod(rem, 1_000_000)
    frac = f".{us:06d}".rstrip("0") if us else ""

    out = sign
    if hours:
        out += f"{hours}h{minutes}m"
    elif minutes:
        out += f"{minutes}m"
    return f"{out}{seconds}{frac}s"
