"""
Candidate slot generation from a parse result.

Bridges services.temporal_parser and services.conflicts: explicit times
become slots as-is, otherwise the constraint window (or the context's
working hours) is cut into granularity-sized slots.
"""

from core.config import DEFAULT_GRANULARITY_MINUTES, LATEST_SLOT_END
from core.dates import minutes_of_day, parse_hhmm, parse_iso_date, weekday_ordinal
from models.temporal import Constraints, ParsedTemporal, TemporalContext, TimeSlot


def slot_window(constraints: Constraints, context: TemporalContext) -> tuple[int, int]:
    """(start, end) in minutes of day for constraint-driven slots."""
    work_start = minutes_of_day(context.working_hours.start)
    work_end = minutes_of_day(context.working_hours.end)
    start, end = work_start, work_end

    if constraints.after_time:
        start = minutes_of_day(constraints.after_time)
        if constraints.working_hours:
            start = max(start, work_start)
    if constraints.before_time:
        end = minutes_of_day(constraints.before_time)
        if constraints.working_hours:
            end = min(end, work_end)

    # "le soir" starts after the working day ends
    if constraints.after_time and not constraints.before_time and start >= end:
        end = minutes_of_day(LATEST_SLOT_END)

    return start, end


def build_time_slots(
    parsed: ParsedTemporal,
    context: TemporalContext,
    granularity: int = DEFAULT_GRANULARITY_MINUTES,
) -> dict[str, list[TimeSlot]]:
    """
    Slots per extracted date, ready for ConflictDetector.detect_conflicts.

    Office-hours requests ("heures de bureau") also keep only the context's
    working days.
    """
    if granularity <= 0:
        raise ValueError(f"Granularity must be positive, got {granularity}")

    extracted = parsed.extracted
    constraints = extracted.constraints

    if extracted.times:
        day_slots = [TimeSlot(*parse_hhmm(time_str)) for time_str in extracted.times]
    else:
        start, end = slot_window(constraints, context)
        day_slots = [
            TimeSlot(minute_of_day // 60, minute_of_day % 60)
            for minute_of_day in range(start, end - granularity + 1, granularity)
        ]

    slots_by_date = {}
    for date_str in extracted.dates:
        if constraints.working_hours:
            if weekday_ordinal(parse_iso_date(date_str)) not in context.working_days:
                continue
        slots_by_date[date_str] = list(day_slots)
    return slots_by_date
