"""
Calendar conflict detection for candidate time slots.

One free/busy call per date, issued with bounded concurrency and a per-call
timeout. A date whose lookup fails is skipped and logged as such; it never
aborts the batch.
"""

import asyncio
import logging
import time as timer
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from core.config import (
    AVAILABILITY_WINDOWS,
    CALENDAR_MAX_CONCURRENCY,
    CALENDAR_TIMEOUT_SECONDS,
    DEFAULT_GRANULARITY_MINUTES,
    DEFAULT_TIMEZONE,
)
from core.dates import parse_hhmm, parse_iso_date
from core.telemetry import FetchLog, FetchOutcome, log_fetch
from models.temporal import (
    BusyInterval,
    DayAvailability,
    FreeSlot,
    TimeSlot,
    TimeSlotConflict,
)
from services.calendar import CalendarClient, day_window

logger = logging.getLogger(__name__)

# (interval as returned, parsed start, parsed end)
ParsedBusy = tuple[BusyInterval, datetime, datetime]


class InvalidBusyData(ValueError):
    """The calendar returned an interval that cannot be read."""


def parse_instant(value: str, tz: ZoneInfo) -> datetime:
    """ISO 8601 string to an aware datetime; naive values are taken in tz."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def parse_busy_intervals(busy: list[BusyInterval], tz: ZoneInfo) -> list[ParsedBusy]:
    """
    Raises:
        InvalidBusyData: if any interval is missing bounds or is unparseable
    """
    parsed = []
    for interval in busy:
        try:
            start = parse_instant(interval["start"], tz)
            end = parse_instant(interval["end"], tz)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise InvalidBusyData(f"Unreadable busy interval {interval!r}: {e}") from e
        parsed.append((interval, start, end))
    return parsed


def overlaps(start: datetime, end: datetime, busy: ParsedBusy) -> bool:
    _, busy_start, busy_end = busy
    return start < busy_end and end > busy_start


def is_free(start: datetime, end: datetime, intervals: list[ParsedBusy]) -> bool:
    return not any(overlaps(start, end, busy) for busy in intervals)


def classify_slot(
    date_str: str,
    slot: TimeSlot,
    granularity: int,
    intervals: list[ParsedBusy],
    tz: ZoneInfo,
) -> TimeSlotConflict | None:
    """
    Compare one slot with the day's busy intervals.

    Returns None when the slot is free. Otherwise the status is "busy" if a
    single interval covers the whole slot and "partial" if not, with the free
    neighbours one granularity step before and after as suggestions.
    """
    day = parse_iso_date(date_str)
    length = timedelta(minutes=slot.duration or granularity)
    slot_start = datetime.combine(day, time(slot.hour, slot.minute), tzinfo=tz)
    slot_end = slot_start + length

    overlapping = [busy for busy in intervals if overlaps(slot_start, slot_end, busy)]
    if not overlapping:
        return None

    covered = any(start <= slot_start and end >= slot_end for _, start, end in overlapping)

    step = timedelta(minutes=granularity)
    suggestions: list[FreeSlot] = []
    for candidate in (slot_start - step, slot_start + step):
        if is_free(candidate, candidate + length, intervals):
            suggestions.append(
                {"start": candidate.isoformat(), "end": (candidate + length).isoformat()}
            )

    return TimeSlotConflict(
        date=date_str,
        time_slot=slot,
        status="busy" if covered else "partial",
        conflicts=tuple(raw for raw, _, _ in overlapping),
        suggestions=tuple(suggestions),
    )


class ConflictDetector:
    """Checks candidate slots against one calendar collaborator."""

    def __init__(
        self,
        calendar: CalendarClient,
        timezone: str = DEFAULT_TIMEZONE,
        timeout: float = CALENDAR_TIMEOUT_SECONDS,
        max_concurrency: int = CALENDAR_MAX_CONCURRENCY,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.calendar = calendar
        self.tz = ZoneInfo(timezone)
        self.timeout = timeout
        self.max_concurrency = max_concurrency

    async def _fetch_day(
        self, date_str: str, semaphore: asyncio.Semaphore, log: FetchLog
    ) -> list[ParsedBusy] | None:
        """Busy intervals for one day, or None if the lookup failed (already logged)."""
        started = timer.monotonic()
        try:
            parse_iso_date(date_str)
            start, end = day_window(date_str)
            async with semaphore:
                busy = await asyncio.wait_for(
                    self.calendar.get_free_busy(start, end), timeout=self.timeout
                )
            intervals = parse_busy_intervals(busy or [], self.tz)
        except asyncio.TimeoutError:
            log.outcome = FetchOutcome.SKIPPED_TIMEOUT
            log.error_message = f"no answer within {self.timeout}s"
        except InvalidBusyData as e:
            log.outcome = FetchOutcome.SKIPPED_INVALID_DATA
            log.error_message = str(e)
        except Exception as e:
            log.outcome = FetchOutcome.SKIPPED_ERROR
            log.error_message = f"{type(e).__name__}: {e}"
        else:
            log.busy_intervals = len(intervals)
            return intervals
        finally:
            log.processing_time_ms = int((timer.monotonic() - started) * 1000)

        log_fetch(log)
        return None

    async def _check_date(
        self,
        date_str: str,
        slots: list[TimeSlot],
        granularity: int,
        semaphore: asyncio.Semaphore,
    ) -> list[TimeSlotConflict]:
        log = FetchLog(date=date_str, slots_checked=len(slots))
        intervals = await self._fetch_day(date_str, semaphore, log)
        if intervals is None:
            return []

        conflicts = []
        for slot in slots:
            conflict = classify_slot(date_str, slot, granularity, intervals, self.tz)
            if conflict is not None:
                conflicts.append(conflict)

        log.conflicts_found = len(conflicts)
        log.outcome = FetchOutcome.CONFLICTS if conflicts else FetchOutcome.CHECKED
        log_fetch(log)
        return conflicts

    async def detect_conflicts(
        self,
        dates: list[str],
        time_slots_by_date: dict[str, list[TimeSlot]],
        granularity: int = DEFAULT_GRANULARITY_MINUTES,
    ) -> list[TimeSlotConflict]:
        """
        Find enabled slots that collide with busy calendar time.

        Args:
            dates: ISO dates to check
            time_slots_by_date: Candidate slots per ISO date
            granularity: Default slot length in minutes, also the step used
                to look for neighbouring suggestions

        Returns:
            Conflicts ordered by input date, then slot. Free slots and dates
            whose lookup failed produce no entries.
        """
        if granularity <= 0:
            raise ValueError(f"Granularity must be positive, got {granularity}")

        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = []
        for date_str in dict.fromkeys(dates):
            enabled = [slot for slot in time_slots_by_date.get(date_str, []) if slot.enabled]
            if not enabled:
                continue
            tasks.append(self._check_date(date_str, enabled, granularity, semaphore))

        results = await asyncio.gather(*tasks)
        conflicts = [conflict for day in results for conflict in day]
        logger.info(
            "Checked %d date(s) for conflicts, %d conflicting slot(s)",
            len(tasks),
            len(conflicts),
        )
        return conflicts

    async def _availability_for(
        self, date_str: str, semaphore: asyncio.Semaphore
    ) -> DayAvailability:
        log = FetchLog(date=date_str)
        intervals = await self._fetch_day(date_str, semaphore, log)
        if intervals is None:
            return DayAvailability(date=date_str)

        day = parse_iso_date(date_str)
        suggested: list[FreeSlot] = []
        for window_start, window_end in AVAILABILITY_WINDOWS:
            start = datetime.combine(day, time(*parse_hhmm(window_start)), tzinfo=self.tz)
            end = datetime.combine(day, time(*parse_hhmm(window_end)), tzinfo=self.tz)
            if is_free(start, end, intervals):
                suggested.append({"start": start.isoformat(), "end": end.isoformat()})

        log.outcome = FetchOutcome.CHECKED
        log_fetch(log)
        return DayAvailability(
            date=date_str,
            busy=tuple(raw for raw, _, _ in intervals),
            suggested=tuple(suggested),
        )

    async def analyze_availability(self, dates: list[str]) -> dict[str, DayAvailability]:
        """
        Busy intervals per date plus the default windows that are still free.

        A date whose lookup fails comes back with empty busy/suggested lists.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        unique_dates = list(dict.fromkeys(dates))
        days = await asyncio.gather(
            *(self._availability_for(date_str, semaphore) for date_str in unique_dates)
        )
        return {day.date: day for day in days}
