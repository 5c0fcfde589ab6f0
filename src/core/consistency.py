"""
Counterfactual consistency checks.

Re-reads the normalized text against the candidate dates and times and
reports every disagreement. Nothing here alters the candidates; conflicts are
data for the caller.
"""

import re

from core.dates import minutes_of_day, parse_iso_date, weekday_ordinal
from core.rules import (
    FRENCH_WEEKDAYS,
    TIME_OF_DAY_SUGGESTIONS,
    TIME_OF_DAY_WINDOWS,
    WEEKDAY_CLASS_WORD,
    WEEKDAY_WORDS,
    WEEKEND_CLASS_WORD,
    WEEKEND_ORDINALS,
)
from models.temporal import CounterfactualChecks

WEEKDAY_MAPPING_SUGGESTION = "Vérifier la correspondance jour/date demandée"
ORDERING_CONFLICT = "Incohérence temporelle: avant doit être antérieur à après"

_WEEKDAY_RE = re.compile(
    r"\b(" + "|".join(sorted(WEEKDAY_WORDS, key=len, reverse=True)) + r")\b"
)
_BEFORE_RE = re.compile(r"\bavant (\d{1,2})(?::(\d{2}))?")
_AFTER_RE = re.compile(r"\baprès (\d{1,2})(?::(\d{2}))?")


def named_weekdays(text: str) -> list[int]:
    """Weekday ordinals (0=Sunday) named in the text, in order of appearance."""
    ordinals = [WEEKDAY_WORDS[word] for word in _WEEKDAY_RE.findall(text)]
    return list(dict.fromkeys(ordinals))


def _clock_minutes(match: re.Match) -> int:
    return int(match.group(1)) * 60 + int(match.group(2) or 0)


def check_weekday_names(text: str, dates: list[str]) -> tuple[list[str], list[str]]:
    """A named weekday must match the weekday each candidate date falls on."""
    conflicts = []
    suggestions = []
    named = named_weekdays(text)
    if not named:
        return conflicts, suggestions

    expected = " ou ".join(FRENCH_WEEKDAYS[ordinal] for ordinal in named)
    for date_str in dates:
        actual = weekday_ordinal(parse_iso_date(date_str))
        if actual not in named:
            conflicts.append(
                f"Date {date_str} tombe un {FRENCH_WEEKDAYS[actual]}, pas un {expected}"
            )
            suggestions.append(WEEKDAY_MAPPING_SUGGESTION)
    return conflicts, suggestions


def check_day_class(text: str, dates: list[str]) -> list[str]:
    """Weekend wording against weekdays and weekday wording against weekends."""
    conflicts = []
    wants_weekend = WEEKEND_CLASS_WORD in text
    wants_weekdays = WEEKDAY_CLASS_WORD in text and not wants_weekend

    for date_str in dates:
        is_weekend = weekday_ordinal(parse_iso_date(date_str)) in WEEKEND_ORDINALS
        if wants_weekend and not is_weekend:
            conflicts.append(f"Date {date_str} n'est pas un weekend")
        if wants_weekdays and is_weekend:
            conflicts.append(f"Date {date_str} est un weekend mais le texte demande la semaine")
    return conflicts


def check_before_after(text: str) -> list[str]:
    """'avant H1' together with 'après H2' needs H1 later than H2."""
    before = _BEFORE_RE.search(text)
    after = _AFTER_RE.search(text)
    if before and after and _clock_minutes(before) <= _clock_minutes(after):
        return [ORDERING_CONFLICT]
    return []


def check_time_windows(text: str, times: list[str]) -> tuple[list[str], list[str]]:
    """Each candidate time must sit inside the window its label implies."""
    conflicts = []
    suggestions = []
    labels = {
        "matin": "le matin",
        "après-midi": "l'après-midi",
    }
    for time_str in times:
        hour = minutes_of_day(time_str) // 60
        for label, (start_hour, end_hour) in TIME_OF_DAY_WINDOWS.items():
            if label in text and not start_hour <= hour < end_hour:
                conflicts.append(f"Heure {time_str} n'est pas {labels[label]}")
                suggestions.append(TIME_OF_DAY_SUGGESTIONS[label])
    return conflicts, suggestions


def verify_consistency(text: str, dates: list[str], times: list[str]) -> CounterfactualChecks:
    """
    Run every consistency check over already past-filtered candidates.

    Args:
        text: Normalized text (as produced by normalize_text)
        dates: Candidate ISO dates, deduplicated and sorted
        times: Candidate HH:MM times

    Returns:
        CounterfactualChecks with passed=True only when no conflict was found
    """
    conflicts = []
    suggestions = []

    weekday_conflicts, weekday_suggestions = check_weekday_names(text, dates)
    conflicts.extend(weekday_conflicts)
    suggestions.extend(weekday_suggestions)

    conflicts.extend(check_day_class(text, dates))
    conflicts.extend(check_before_after(text))

    window_conflicts, window_suggestions = check_time_windows(text, times)
    conflicts.extend(window_conflicts)
    suggestions.extend(window_suggestions)

    return CounterfactualChecks(
        passed=not conflicts,
        conflicts=tuple(conflicts),
        suggestions=tuple(dict.fromkeys(suggestions)),
    )
