"""Shared validation utilities"""

import re
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ValidationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

FREQUENCIES = ("weekly", "biweekly", "one-time", "new-start")
RECURRING_FREQUENCIES = ("weekly", "biweekly")
MAX_DAYS_PER_RULE = 5


def validate_time_of_day(value: str, field: str = "time") -> str:
    """
    Validate a local time-of-day string.

    Accepts "H:MM" as well as "HH:MM" and returns the zero-padded form.

    Raises:
        ValidationError: If the value is not a valid 24h time
    """
    if value is None:
        raise ValidationError(f"{field} is required", field=field)

    value = value.strip()
    if len(value) == 4 and value[1] == ":":
        value = f"0{value}"

    if not TIME_PATTERN.match(value):
        raise ValidationError(f"{field} must be in HH:MM format", field=field)
    return value


def validate_window(window_start: str, window_end: str) -> None:
    """Ensure the visit window is non-empty (zero-padded HH:MM compares lexically)"""
    if window_start >= window_end:
        raise ValidationError("windowStart must be before windowEnd", field="windowEnd")


def validate_frequency(frequency: str) -> str:
    if frequency not in FREQUENCIES:
        raise ValidationError(
            f"frequency must be one of {', '.join(FREQUENCIES)}", field="frequency"
        )
    return frequency


def validate_by_day(by_day: Iterable[int], frequency: Optional[str] = None) -> list[int]:
    """
    Validate and normalize a weekday list (0=Sunday .. 6=Saturday).

    Duplicates are collapsed and the result is sorted. An empty list is
    allowed so rules can be saved before days are chosen.

    Raises:
        ValidationError: On out-of-range values or too many days
    """
    days = []
    for day in by_day or []:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationError(
                f"byDay values must be integers 0-6 (Sunday=0), got {day!r}", field="byDay"
            )
        days.append(day)

    days = sorted(set(days))
    if frequency in RECURRING_FREQUENCIES and len(days) > MAX_DAYS_PER_RULE:
        raise ValidationError(
            f"A {frequency} rule can have at most {MAX_DAYS_PER_RULE} days", field="byDay"
        )
    return days


def validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone: {name}", field="timezone") from e
    return name
