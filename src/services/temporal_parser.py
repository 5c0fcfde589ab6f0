"""
Temporal intent resolution: normalize, extract, verify, merge, score.

parse() is a pure function of (text, context). It never raises: extractor
failures degrade to empty partials, inconsistencies come back as data.
"""

import logging

from core.config import (
    CONFIDENCE_BASE,
    CONFIDENCE_CONFLICT_PENALTY,
    CONFIDENCE_DATES_BONUS,
    CONFIDENCE_PASSED_BONUS,
    CONFIDENCE_RECURRENCE_BONUS,
    CONFIDENCE_TIMES_BONUS,
    LOW_CONFIDENCE_THRESHOLD,
)
from core.consistency import verify_consistency
from core.dates import parse_hhmm, parse_iso_date, weekday_ordinal
from core.rules import WEEKEND_ORDINALS
from models.temporal import (
    Constraints,
    CounterfactualChecks,
    Extracted,
    ParsedTemporal,
    PartialCandidates,
    Recurrence,
    TemporalContext,
    TemporalType,
)
from services.extractors import DEFAULT_EXTRACTORS, Extractor
from services.normalizer import normalize_text

logger = logging.getLogger(__name__)


def run_extractors(
    text: str, context: TemporalContext, extractors: list[Extractor]
) -> list[PartialCandidates]:
    """Run each extractor in isolation; a failing one contributes nothing."""
    partials = []
    for extractor in extractors:
        try:
            partials.append(extractor.extract(text, context))
        except Exception:
            logger.warning("Extractor '%s' failed on %r", extractor.name, text, exc_info=True)
            partials.append(PartialCandidates())
    return partials


def drop_past_dates(dates: list[str], context: TemporalContext) -> list[str]:
    """Keep today-or-later dates, deduplicated and sorted."""
    today = context.today.isoformat()
    kept = set()
    for date_str in dates:
        try:
            date_str = parse_iso_date(date_str).isoformat()
        except (TypeError, ValueError):
            logger.warning("Ignored malformed candidate date %r", date_str)
            continue
        if date_str < today:
            logger.info("Dropped past date %s (before %s)", date_str, today)
            continue
        kept.add(date_str)
    return sorted(kept)


def drop_malformed_times(times: tuple[str, ...]) -> tuple[str, ...]:
    kept = []
    for time_str in times:
        try:
            parse_hhmm(time_str)
        except ValueError:
            logger.warning("Ignored malformed candidate time %r", time_str)
            continue
        kept.append(time_str)
    return tuple(kept)


def apply_day_class(dates: list[str], constraints: Constraints) -> list[str]:
    """Weekend filter first, then weekday filter; both may empty the list."""
    if constraints.weekends_only:
        dates = [
            d for d in dates if weekday_ordinal(parse_iso_date(d)) in WEEKEND_ORDINALS
        ]
    if constraints.weekdays_only:
        dates = [
            d for d in dates if weekday_ordinal(parse_iso_date(d)) not in WEEKEND_ORDINALS
        ]
    return dates


def merge_partials(partials: list[PartialCandidates]) -> PartialCandidates:
    """
    Union all partial candidates.

    Recurrence: first extractor with a pattern wins. Constraints: set fields
    from later partials override earlier ones.
    """
    dates = []
    times = []
    durations = []
    recurring = Recurrence()
    constraint_fields = {}

    for partial in partials:
        dates.extend(partial.dates)
        times.extend(partial.times)
        durations.extend(partial.durations)
        if recurring.pattern is None and partial.recurring.pattern is not None:
            recurring = partial.recurring
        for key, value in vars(partial.constraints).items():
            if value is not None:
                constraint_fields[key] = value

    return PartialCandidates(
        dates=tuple(dates),
        times=drop_malformed_times(tuple(dict.fromkeys(times))),
        durations=tuple(dict.fromkeys(durations)),
        recurring=recurring,
        constraints=Constraints(**constraint_fields),
    )


def calculate_confidence(extracted: Extracted, checks: CounterfactualChecks) -> float:
    """Additive score from base 0.5, clamped to [0, 1]."""
    confidence = CONFIDENCE_BASE
    if extracted.dates:
        confidence += CONFIDENCE_DATES_BONUS
    if extracted.times:
        confidence += CONFIDENCE_TIMES_BONUS
    if extracted.recurring.pattern:
        confidence += CONFIDENCE_RECURRENCE_BONUS
    if checks.passed:
        confidence += CONFIDENCE_PASSED_BONUS
    confidence -= CONFIDENCE_CONFLICT_PENALTY * len(checks.conflicts)
    return round(max(0.0, min(1.0, confidence)), 2)


def determine_temporal_type(extracted: Extracted) -> TemporalType:
    if extracted.recurring.pattern:
        return "recurring"
    if extracted.times:
        return "datetime"
    if extracted.dates:
        return "date"
    if extracted.durations:
        return "duration"
    return "relative"


def parse(
    text: str,
    context: TemporalContext | None = None,
    extractors: list[Extractor] | None = None,
) -> ParsedTemporal:
    """
    Resolve scheduling text into candidate dates, times and constraints.

    Args:
        text: Raw user text, e.g. "réunion la semaine prochaine avant 14h"
        context: Reference frame; built from configuration and the wall
            clock only when omitted
        extractors: Ordered extractor registry (DEFAULT_EXTRACTORS if None)

    Returns:
        ParsedTemporal whose dates are all today-or-later, unique and sorted
    """
    if context is None:
        context = TemporalContext.now()
    original_text = text if isinstance(text, str) else ""
    normalized = normalize_text(original_text)

    if extractors is None:
        extractors = DEFAULT_EXTRACTORS
    partials = run_extractors(normalized, context, extractors)
    merged = merge_partials(partials)

    candidate_dates = drop_past_dates(list(merged.dates), context)
    checks = verify_consistency(normalized, candidate_dates, list(merged.times))

    extracted = Extracted(
        dates=tuple(apply_day_class(candidate_dates, merged.constraints)),
        times=merged.times,
        durations=merged.durations,
        recurring=merged.recurring,
        constraints=merged.constraints,
    )

    return ParsedTemporal(
        original_text=original_text,
        confidence=calculate_confidence(extracted, checks),
        temporal_type=determine_temporal_type(extracted),
        extracted=extracted,
        counterfactual_checks=checks,
    )


def generate_suggestions(parsed: ParsedTemporal) -> list[str]:
    """User-facing hints for improving a request, then the checks' own suggestions."""
    suggestions = []

    if parsed.confidence < LOW_CONFIDENCE_THRESHOLD:
        suggestions.append("Essayez d'être plus précis sur les dates et heures")

    if parsed.counterfactual_checks.conflicts:
        suggestions.append("Vérifiez la cohérence entre les jours demandés et les dates")

    if not parsed.extracted.dates:
        suggestions.append("Précisez au moins une date ou période temporelle")

    return suggestions + list(parsed.counterfactual_checks.suggestions)
