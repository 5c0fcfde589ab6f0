"""
Independent pattern extractors.

Each extractor reads normalized text plus the temporal context and returns a
PartialCandidates; none looks at another extractor's output. The merge step
in services.temporal_parser composes them in DEFAULT_EXTRACTORS order.
"""

import logging
from collections.abc import Callable
from datetime import datetime, time

from dateparser.search import search_dates

from core.config import RECOGNIZER_LANGUAGES
from core.dates import add_days, start_of_iso_week, workweek
from core.rules import (
    CONSTRAINT_VOCABULARY,
    DAY_AFTER_TOMORROW_PHRASES,
    DURATION_PATTERN,
    DURATION_UNITS,
    NEXT_WEEK_PHRASES,
    RECURRENCE_PATTERNS,
    RELATIVE_PHRASES,
    THIS_WEEK_PHRASES,
    TIME_ONLY_PATTERN,
    TODAY_PHRASES,
    TOMORROW_PHRASES,
    WEEKDAY_CLASS_WORD,
    WEEKEND_CLASS_WORD,
)
from models.temporal import Constraints, PartialCandidates, Recurrence, TemporalContext

logger = logging.getLogger(__name__)

# (normalized text, relative base) -> (matched substring, datetime) pairs
Recognizer = Callable[[str, datetime], list[tuple[str, datetime]]]


def _unique(values) -> tuple:
    """Deduplicate while keeping first-seen order."""
    return tuple(dict.fromkeys(values))


def dateparser_recognizer(text: str, relative_base: datetime) -> list[tuple[str, datetime]]:
    """Find date/time mentions with dateparser, anchored on relative_base."""
    matches = search_dates(
        text,
        languages=RECOGNIZER_LANGUAGES,
        settings={
            "RELATIVE_BASE": relative_base,
            "PREFER_DATES_FROM": "future",
            "RETURN_AS_TIMEZONE_AWARE": False,
        },
    )
    return list(matches or [])


class Extractor:
    """Base class: turns normalized text into partial candidates."""

    name = "extractor"

    def extract(self, text: str, context: TemporalContext) -> PartialCandidates:
        raise NotImplementedError


def without_relative_phrases(text: str) -> str:
    """Blank out the phrases RelativeReferenceResolver owns."""
    for phrase in RELATIVE_PHRASES:
        text = text.replace(phrase, " ")
    return text


def is_time_only(matched: str) -> bool:
    """True for matches like "14:00" or "avant 9:30" that carry no day."""
    return TIME_ONLY_PATTERN.fullmatch(matched.strip()) is not None


class DateTimeExtractor(Extractor):
    """
    Explicit date/time mentions via a general-purpose recognizer.

    Relative phrases ("next week", "demain"...) are hidden from the
    recognizer; RelativeReferenceResolver resolves them. A match that is only
    a clock time contributes its time but no date, since the recognizer
    would otherwise anchor it on today. Dates before today are dropped here
    already. A 00:00 time is read as "no time given": recognizers emit
    midnight for date-only phrases. Recognizer failures degrade to an empty
    partial.
    """

    name = "datetime"

    def __init__(self, recognizer: Recognizer | None = None):
        self.recognizer = recognizer or dateparser_recognizer

    def extract(self, text: str, context: TemporalContext) -> PartialCandidates:
        today = context.today
        relative_base = datetime.combine(today, time.min)

        try:
            found = self.recognizer(without_relative_phrases(text), relative_base)
            dates = []
            times = []
            for matched, value in found:
                if not isinstance(value, datetime):
                    raise TypeError(f"Recognizer returned {type(value).__name__}, not datetime")
                if value.tzinfo is not None:
                    value = value.astimezone(context.tzinfo)

                if value.date() >= today and not is_time_only(matched):
                    dates.append(value.date().isoformat())
                clock = value.strftime("%H:%M")
                if clock != "00:00":
                    times.append(clock)
        except Exception:
            logger.warning("Date recognizer failed on %r", text, exc_info=True)
            return PartialCandidates()

        return PartialCandidates(dates=_unique(dates), times=_unique(times))


class RecurrenceDetector(Extractor):
    """Fixed recurring-weekday phrases; the first table entry found wins."""

    name = "recurrence"

    def __init__(self, patterns: dict[str, list[str]] | None = None):
        self.patterns = patterns if patterns is not None else RECURRENCE_PATTERNS

    def extract(self, text: str, context: TemporalContext) -> PartialCandidates:
        for phrase, weekdays in self.patterns.items():
            if phrase in text:
                return PartialCandidates(
                    recurring=Recurrence(
                        pattern="weekly",
                        frequency="weekly",
                        weekdays=tuple(weekdays),
                    )
                )
        return PartialCandidates()


class ConstraintExtractor(Extractor):
    """Implicit time-of-day and day-class constraints from vocabulary."""

    name = "constraints"

    def extract(self, text: str, context: TemporalContext) -> PartialCandidates:
        fields = {}
        for phrases, effect in CONSTRAINT_VOCABULARY:
            if any(phrase in text for phrase in phrases):
                fields.update(effect)

        if WEEKDAY_CLASS_WORD in text and WEEKEND_CLASS_WORD not in text:
            fields["weekdays_only"] = True

        return PartialCandidates(constraints=Constraints(**fields))


class RelativeReferenceResolver(Extractor):
    """
    Coarse relative expressions resolved against context.today.

    "this week" yields the remaining Monday-Friday days of the current ISO
    week, "next week" all of next week's Monday-Friday, plus today, tomorrow
    and the day after tomorrow. Duplicates are left for the merge step.
    """

    name = "relative"

    def extract(self, text: str, context: TemporalContext) -> PartialCandidates:
        today = context.today
        monday = start_of_iso_week(today)
        dates = []

        if any(phrase in text for phrase in THIS_WEEK_PHRASES):
            dates.extend(d for d in workweek(monday) if d >= today)

        if any(phrase in text for phrase in NEXT_WEEK_PHRASES):
            dates.extend(workweek(add_days(monday, 7)))

        if any(phrase in text for phrase in TODAY_PHRASES):
            dates.append(today)

        # "après-demain" must not also count as "demain"
        remaining = text
        if any(phrase in text for phrase in DAY_AFTER_TOMORROW_PHRASES):
            dates.append(add_days(today, 2))
            for phrase in DAY_AFTER_TOMORROW_PHRASES:
                remaining = remaining.replace(phrase, " ")

        if any(phrase in remaining for phrase in TOMORROW_PHRASES):
            dates.append(add_days(today, 1))

        return PartialCandidates(dates=tuple(d.isoformat() for d in dates))


class DurationExtractor(Extractor):
    """Durations such as "30 minutes" or "2 heures", as ISO 8601 (PT30M, PT2H)."""

    name = "duration"

    def extract(self, text: str, context: TemporalContext) -> PartialCandidates:
        durations = []
        for amount, unit in DURATION_PATTERN.findall(text):
            if int(amount) > 0:
                durations.append(f"PT{int(amount)}{DURATION_UNITS[unit]}")
        return PartialCandidates(durations=_unique(durations))


DEFAULT_EXTRACTORS: list[Extractor] = [
    DateTimeExtractor(),
    RecurrenceDetector(),
    ConstraintExtractor(),
    RelativeReferenceResolver(),
    DurationExtractor(),
]
