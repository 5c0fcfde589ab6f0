"""
Data models for temporal parsing and calendar conflict detection.

Engine values are frozen dataclasses created fresh per call. Shapes that
cross the calendar boundary (busy intervals, free slots) are TypedDicts,
matching what calendar collaborators hand back.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, NotRequired, TypedDict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.config import (
    DEFAULT_TIMEZONE,
    DEFAULT_WORKING_DAYS,
    DEFAULT_WORKING_HOURS_END,
    DEFAULT_WORKING_HOURS_START,
)
from core.dates import minutes_of_day, parse_hhmm

TemporalType = Literal["date", "datetime", "recurring", "duration", "relative"]
ConflictStatus = Literal["busy", "partial"]


# =============================================================================
# CONTEXT
# =============================================================================


@dataclass(frozen=True)
class WorkingHours:
    """Working day window as HH:MM strings."""

    start: str = DEFAULT_WORKING_HOURS_START
    end: str = DEFAULT_WORKING_HOURS_END

    def __post_init__(self):
        if minutes_of_day(self.start) >= minutes_of_day(self.end):
            raise ValueError(f"Working hours start {self.start} must precede end {self.end}")


@dataclass(frozen=True)
class TemporalContext:
    """
    Reference frame for one parse call.

    `current_date` may be an aware or naive datetime (naive values are taken
    as already expressed in `user_timezone`) or a plain date.
    `working_days` holds weekday ordinals, 0=Sunday.
    """

    current_date: datetime | date
    user_timezone: str = DEFAULT_TIMEZONE
    working_hours: WorkingHours = field(default_factory=WorkingHours)
    working_days: frozenset[int] = DEFAULT_WORKING_DAYS

    def __post_init__(self):
        try:
            ZoneInfo(self.user_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{self.user_timezone}'") from e

        days = frozenset(self.working_days)
        if any(day < 0 or day > 6 for day in days):
            raise ValueError(f"Working days must be ordinals 0-6, got {sorted(days)}")
        object.__setattr__(self, "working_days", days)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.user_timezone)

    @property
    def today(self) -> date:
        """Calendar date of `current_date` in the user's timezone."""
        current = self.current_date
        if isinstance(current, datetime):
            if current.tzinfo is not None:
                current = current.astimezone(self.tzinfo)
            return current.date()
        return current

    @classmethod
    def now(cls, **overrides) -> "TemporalContext":
        """Context anchored on the wall clock in the configured timezone."""
        timezone_name = overrides.pop("user_timezone", DEFAULT_TIMEZONE)
        return cls(
            current_date=datetime.now(ZoneInfo(timezone_name)),
            user_timezone=timezone_name,
            **overrides,
        )


# =============================================================================
# PARSE RESULT
# =============================================================================


@dataclass(frozen=True)
class Recurrence:
    pattern: str | None = None
    frequency: str | None = None
    weekdays: tuple[str, ...] | None = None

    def to_dict(self) -> dict:
        result = {}
        if self.pattern is not None:
            result["pattern"] = self.pattern
        if self.frequency is not None:
            result["frequency"] = self.frequency
        if self.weekdays is not None:
            result["weekdays"] = list(self.weekdays)
        return result


@dataclass(frozen=True)
class Constraints:
    """Implicit constraints inferred from vocabulary; unset fields are None."""

    before_time: str | None = None
    after_time: str | None = None
    working_hours: bool | None = None
    weekends_only: bool | None = None
    weekdays_only: bool | None = None

    def to_dict(self) -> dict:
        keys = {
            "before_time": "beforeTime",
            "after_time": "afterTime",
            "working_hours": "workingHours",
            "weekends_only": "weekendsOnly",
            "weekdays_only": "weekdaysOnly",
        }
        return {
            wire: getattr(self, attr)
            for attr, wire in keys.items()
            if getattr(self, attr) is not None
        }


@dataclass(frozen=True)
class PartialCandidates:
    """What a single extractor contributes. Empty by default."""

    dates: tuple[str, ...] = ()
    times: tuple[str, ...] = ()
    durations: tuple[str, ...] = ()
    recurring: Recurrence = field(default_factory=Recurrence)
    constraints: Constraints = field(default_factory=Constraints)


@dataclass(frozen=True)
class CounterfactualChecks:
    passed: bool = True
    conflicts: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "conflicts": list(self.conflicts),
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class Extracted:
    dates: tuple[str, ...] = ()
    times: tuple[str, ...] = ()
    durations: tuple[str, ...] = ()
    recurring: Recurrence = field(default_factory=Recurrence)
    constraints: Constraints = field(default_factory=Constraints)

    def to_dict(self) -> dict:
        return {
            "dates": list(self.dates),
            "times": list(self.times),
            "durations": list(self.durations),
            "recurring": self.recurring.to_dict(),
            "constraints": self.constraints.to_dict(),
        }


@dataclass(frozen=True)
class ParsedTemporal:
    """Structured reading of one scheduling sentence."""

    original_text: str
    confidence: float
    temporal_type: TemporalType
    extracted: Extracted
    counterfactual_checks: CounterfactualChecks

    def to_dict(self) -> dict:
        """Wire shape consumed by the poll-creation flow."""
        return {
            "originalText": self.original_text,
            "confidence": self.confidence,
            "temporalType": self.temporal_type,
            "extracted": self.extracted.to_dict(),
            "counterfactualChecks": self.counterfactual_checks.to_dict(),
        }


# =============================================================================
# CALENDAR / CONFLICTS
# =============================================================================


class BusyInterval(TypedDict):
    """Busy interval as returned by a calendar collaborator."""
    start: str
    end: str
    event_title: NotRequired[str]


class FreeSlot(TypedDict):
    """Suggested free slot (ISO 8601 start/end)."""
    start: str
    end: str


def busy_to_dict(busy: BusyInterval) -> dict:
    """Wire shape of a busy interval (camelCase eventTitle)."""
    result = {"start": busy["start"], "end": busy["end"]}
    if "event_title" in busy:
        result["eventTitle"] = busy["event_title"]
    return result


@dataclass(frozen=True)
class TimeSlot:
    """Candidate slot on a day; duration in minutes, None = granularity."""

    hour: int
    minute: int
    enabled: bool = True
    duration: int | None = None

    def __post_init__(self):
        parse_hhmm(f"{self.hour}:{self.minute:02d}")
        if self.duration is not None and self.duration <= 0:
            raise ValueError(f"Slot duration must be positive, got {self.duration}")

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimeSlotConflict:
    date: str
    time_slot: TimeSlot
    status: ConflictStatus
    conflicts: tuple[BusyInterval, ...]
    suggestions: tuple[FreeSlot, ...] = ()

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "timeSlot": {
                "hour": self.time_slot.hour,
                "minute": self.time_slot.minute,
                "enabled": self.time_slot.enabled,
                "duration": self.time_slot.duration,
            },
            "status": self.status,
            "conflicts": [busy_to_dict(busy) for busy in self.conflicts],
            "suggestions": [dict(slot) for slot in self.suggestions],
        }


@dataclass(frozen=True)
class DayAvailability:
    """Busy intervals of a day and the default windows still free."""

    date: str
    busy: tuple[BusyInterval, ...] = ()
    suggested: tuple[FreeSlot, ...] = ()
