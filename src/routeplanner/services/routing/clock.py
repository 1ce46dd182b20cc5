"""Conversions between ``HH:MM`` clock strings and minutes since midnight.

Times are parsed once at the request boundary; everything downstream works on
integer minutes and is only formatted back for presentation.
"""

from __future__ import annotations

import re

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def parse_clock(value: str) -> int:
    match = _CLOCK_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time {value!r}; expected HH:MM in 24-hour format.")
    hours, minutes = int(match.group(1)), int(match.group(2))
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``, wrapping past midnight."""

    hours, mins = divmod(int(minutes) % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{mins:02d}"


def format_duration(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m"


def format_hours_minutes(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}:{mins:02d}"
