"""
Calendar-date helpers.

Everything here works on immutable `date` values; no function mutates its
argument or reads the wall clock.
"""

import re
from datetime import date, datetime, timedelta

HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD string (any time portion is ignored)."""
    if "T" in value:
        value = value.split("T")[0]
    return datetime.strptime(value, "%Y-%m-%d").date()


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def start_of_iso_week(d: date) -> date:
    """Monday of the ISO week containing d."""
    return d - timedelta(days=d.weekday())


def weekday_ordinal(d: date) -> int:
    """Weekday as 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def workweek(monday: date) -> list[date]:
    """Monday through Friday starting at the given Monday."""
    return [add_days(monday, offset) for offset in range(5)]


def parse_hhmm(value: str) -> tuple[int, int]:
    """
    Parse 'HH:MM' into (hour, minute).

    Raises:
        ValueError: if the value is not a valid time of day
    """
    match = HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return hour, minute


def minutes_of_day(value: str) -> int:
    hour, minute = parse_hhmm(value)
    return hour * 60 + minute


def format_hhmm(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"
