"""HH:MM time helpers used by schedule validation."""

import re

from labmonitor.errors import InvalidFormatError

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def parse_time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight."""
    if not isinstance(value, str):
        raise InvalidFormatError("Time must be a string in HH:MM format", value)
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidFormatError(f"Invalid time format: {value!r}", value)
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidFormatError(f"Time out of range: {value!r}", value)
    return hours * 60 + minutes


def block_duration_hours(start: str, end: str) -> float:
    """Length of a block in hours; an end at or before the start wraps past midnight."""
    start_minutes = parse_time_to_minutes(start)
    end_minutes = parse_time_to_minutes(end)
    if end_minutes <= start_minutes:
        return (MINUTES_PER_DAY + end_minutes - start_minutes) / 60
    return (end_minutes - start_minutes) / 60


def intervals_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open overlap test: back-to-back blocks do not overlap."""
    s1 = parse_time_to_minutes(start1)
    e1 = parse_time_to_minutes(end1)
    s2 = parse_time_to_minutes(start2)
    e2 = parse_time_to_minutes(end2)
    return s1 < e2 and s2 < e1
