"""Tests for the parse pipeline, merge rules and confidence scoring."""

import logging
from datetime import date, datetime

import pytest

from core.consistency import ORDERING_CONFLICT, named_weekdays
from core.dates import parse_iso_date, weekday_ordinal
from models.temporal import (
    Constraints,
    CounterfactualChecks,
    Extracted,
    PartialCandidates,
    Recurrence,
    TemporalContext,
)
from services.extractors import Extractor
from services.normalizer import normalize_text
from services.temporal_parser import (
    apply_day_class,
    calculate_confidence,
    determine_temporal_type,
    generate_suggestions,
    parse,
)


# =============================================================================
# SCENARIOS (reference day: Monday 2025-01-13)
# =============================================================================


def test_tuesday_morning(monday_context, stub_extractors):
    extractors = stub_extractors({"mardi": [datetime(2025, 1, 14)]})
    parsed = parse("disponible mardi matin", monday_context, extractors)

    assert parsed.extracted.dates == ("2025-01-14",)
    assert parsed.extracted.times == ()
    assert parsed.extracted.constraints.before_time == "12:00"
    assert parsed.temporal_type == "date"
    assert parsed.counterfactual_checks.passed
    assert parsed.confidence == pytest.approx(0.8)


def test_meeting_next_week(monday_context, stub_extractors):
    parsed = parse("réunion la semaine prochaine", monday_context, stub_extractors())

    assert parsed.extracted.dates == (
        "2025-01-20",
        "2025-01-21",
        "2025-01-22",
        "2025-01-23",
        "2025-01-24",
    )
    assert parsed.temporal_type == "date"


def test_every_monday(monday_context, stub_extractors):
    parsed = parse("tous les lundis", monday_context, stub_extractors())

    assert parsed.extracted.recurring == Recurrence(
        pattern="weekly", frequency="weekly", weekdays=("monday",)
    )
    assert parsed.temporal_type == "recurring"
    assert parsed.to_dict()["extracted"]["recurring"] == {
        "pattern": "weekly",
        "frequency": "weekly",
        "weekdays": ["monday"],
    }


def test_impossible_window(monday_context, stub_extractors):
    parsed = parse("avant 10h et après 15h", monday_context, stub_extractors())

    assert ORDERING_CONFLICT in parsed.counterfactual_checks.conflicts
    assert parsed.counterfactual_checks.passed is False
    assert parsed.confidence == pytest.approx(0.4)


def test_weekday_conflict_is_reported_not_corrected(monday_context, stub_extractors):
    extractors = stub_extractors({"lundi": [datetime(2025, 1, 14)]})
    parsed = parse("rendez-vous lundi", monday_context, extractors)

    assert parsed.extracted.dates == ("2025-01-14",)
    assert parsed.counterfactual_checks.conflicts == (
        "Date 2025-01-14 tombe un mardi, pas un lundi",
    )


def test_datetime_type_with_explicit_time(monday_context, stub_extractors):
    extractors = stub_extractors({"mercredi à 14:30": [datetime(2025, 1, 15, 14, 30)]})
    parsed = parse("mercredi à 14h30", monday_context, extractors)

    assert parsed.extracted.times == ("14:30",)
    assert parsed.temporal_type == "datetime"


def test_duration_only(monday_context, stub_extractors):
    parsed = parse("un appel de 30 minutes", monday_context, stub_extractors())

    assert parsed.extracted.durations == ("PT30M",)
    assert parsed.temporal_type == "duration"


def test_nothing_recognized(monday_context, stub_extractors):
    parsed = parse("bonjour", monday_context, stub_extractors())

    assert parsed.temporal_type == "relative"
    assert parsed.extracted.dates == ()
    assert parsed.confidence == pytest.approx(0.6)


# =============================================================================
# MERGE RULES
# =============================================================================


def test_dates_merged_deduplicated_and_sorted(monday_context, stub_extractors):
    extractors = stub_extractors({"vendredi": [datetime(2025, 1, 17), datetime(2025, 1, 14)]})
    parsed = parse("demain ou vendredi", monday_context, extractors)

    assert parsed.extracted.dates == ("2025-01-14", "2025-01-17")


def test_past_dates_never_returned(monday_context):
    class PastExtractor(Extractor):
        name = "past"

        def extract(self, text, context):
            return PartialCandidates(dates=("2025-01-06", "2025-01-13", "2025-01-20"))

    parsed = parse("peu importe", monday_context, [PastExtractor()])
    assert parsed.extracted.dates == ("2025-01-13", "2025-01-20")


def test_weekend_filter_keeps_conflict_for_dropped_date(monday_context, stub_extractors):
    extractors = stub_extractors({"weekend": [datetime(2025, 1, 17), datetime(2025, 1, 18)]})
    parsed = parse("le week-end", monday_context, extractors)

    assert parsed.extracted.dates == ("2025-01-18",)
    assert parsed.extracted.constraints.weekends_only is True
    assert "Date 2025-01-17 n'est pas un weekend" in parsed.counterfactual_checks.conflicts


def test_both_day_classes_can_empty_the_dates():
    constraints = Constraints(weekends_only=True, weekdays_only=True)
    assert apply_day_class(["2025-01-17", "2025-01-18"], constraints) == []


def test_times_are_not_filtered_by_constraints(monday_context, stub_extractors):
    extractors = stub_extractors({"15:00": [datetime(2025, 1, 14, 15, 0)]})
    parsed = parse("demain matin à 15h", monday_context, extractors)

    assert parsed.extracted.times == ("15:00",)
    assert "Heure 15:00 n'est pas le matin" in parsed.counterfactual_checks.conflicts


def test_failing_extractor_does_not_break_parse(monday_context, stub_extractors, caplog):
    class Broken(Extractor):
        name = "broken"

        def extract(self, text, context):
            raise RuntimeError("bad table")

    extractors = [Broken()] + stub_extractors()
    with caplog.at_level(logging.WARNING):
        parsed = parse("demain", monday_context, extractors)

    assert parsed.extracted.dates == ("2025-01-14",)
    assert "Extractor 'broken' failed" in caplog.text


def test_malformed_candidates_ignored(monday_context):
    class Sloppy(Extractor):
        name = "sloppy"

        def extract(self, text, context):
            return PartialCandidates(dates=("not-a-date", "2025-1-20"), times=("25:99", "10:00"))

    parsed = parse("x", monday_context, [Sloppy()])
    assert parsed.extracted.dates == ("2025-01-20",)
    assert parsed.extracted.times == ("10:00",)


def test_non_string_text(monday_context, stub_extractors):
    parsed = parse(None, monday_context, stub_extractors())
    assert parsed.original_text == ""
    assert parsed.temporal_type == "relative"


# =============================================================================
# CONFIDENCE
# =============================================================================


def test_confidence_maximum():
    extracted = Extracted(
        dates=("2025-01-20",),
        times=("10:00",),
        recurring=Recurrence(pattern="weekly", frequency="weekly", weekdays=("monday",)),
    )
    assert calculate_confidence(extracted, CounterfactualChecks()) == pytest.approx(1.0)


def test_confidence_clamped_at_zero():
    checks = CounterfactualChecks(passed=False, conflicts=tuple(f"c{i}" for i in range(9)))
    assert calculate_confidence(Extracted(), checks) == 0.0


def test_temporal_type_priority():
    recurring = Recurrence(pattern="weekly", frequency="weekly", weekdays=("monday",))
    assert determine_temporal_type(Extracted(times=("10:00",), recurring=recurring)) == "recurring"
    assert determine_temporal_type(Extracted(dates=("2025-01-20",), times=("10:00",))) == "datetime"
    assert determine_temporal_type(Extracted(dates=("2025-01-20",))) == "date"
    assert determine_temporal_type(Extracted()) == "relative"


# =============================================================================
# SUGGESTIONS
# =============================================================================


def test_suggestions_for_vague_request(monday_context, stub_extractors):
    parsed = parse("bientôt", monday_context, stub_extractors())
    suggestions = generate_suggestions(parsed)

    assert "Essayez d'être plus précis sur les dates et heures" in suggestions
    assert "Précisez au moins une date ou période temporelle" in suggestions


def test_suggestions_include_check_suggestions(monday_context, stub_extractors):
    extractors = stub_extractors({"lundi": [datetime(2025, 1, 14)]})
    suggestions = generate_suggestions(parse("lundi", monday_context, extractors))

    assert "Vérifiez la cohérence entre les jours demandés et les dates" in suggestions
    assert suggestions[-1] == "Vérifier la correspondance jour/date demandée"


# =============================================================================
# PROPERTIES WITH THE REAL RECOGNIZER
# =============================================================================

SAMPLE_TEXTS = [
    "",
    "disponible mardi matin",
    "réunion la semaine prochaine avant 14h",
    "tous les lundis",
    "avant 10h et après 15h",
    "le 10 janvier à 9h",
    "vendredi 17 janvier après-midi",
    "samedi ou dimanche ce week-end",
    "demain midi",
    "cette semaine en semaine",
    "next friday at 3pm",
]


@pytest.mark.parametrize("text", SAMPLE_TEXTS)
def test_invariants_with_dateparser(text, monday_context):
    parsed = parse(text, monday_context)
    dates = list(parsed.extracted.dates)

    assert all(parse_iso_date(d) >= date(2025, 1, 13) for d in dates)
    assert dates == sorted(set(dates))
    assert 0.0 <= parsed.confidence <= 1.0

    named = named_weekdays(normalize_text(text))
    if named:
        conflicts = parsed.counterfactual_checks.conflicts
        for d in dates:
            matches = weekday_ordinal(parse_iso_date(d)) in named
            assert matches or any(d in conflict for conflict in conflicts)


@pytest.mark.parametrize("text", SAMPLE_TEXTS)
def test_parse_is_idempotent(text, monday_context):
    first = parse(text, monday_context)
    second = parse(text, monday_context)

    assert first == second
    assert first.to_dict() == second.to_dict()


NEXT_WORKWEEK = ("2025-01-20", "2025-01-21", "2025-01-22", "2025-01-23", "2025-01-24")


@pytest.mark.parametrize(
    "current, text, expected",
    [
        (datetime(2025, 1, 13, 10, 0), "réunion la semaine prochaine", NEXT_WORKWEEK),
        (datetime(2025, 1, 15, 10, 0), "réunion la semaine prochaine", NEXT_WORKWEEK),
        (datetime(2025, 1, 18, 10, 0), "réunion la semaine prochaine", NEXT_WORKWEEK),
        (datetime(2025, 1, 13, 10, 0), "réunion la semaine prochaine avant 14h", NEXT_WORKWEEK),
        (
            datetime(2025, 1, 13, 10, 0),
            "cette semaine",
            ("2025-01-13", "2025-01-14", "2025-01-15", "2025-01-16", "2025-01-17"),
        ),
        (datetime(2025, 1, 15, 10, 0), "cette semaine", ("2025-01-15", "2025-01-16", "2025-01-17")),
        (datetime(2025, 1, 18, 10, 0), "cette semaine", ()),
    ],
)
def test_relative_weeks_with_dateparser(current, text, expected):
    context = TemporalContext(current_date=current, user_timezone="Europe/Paris")
    assert parse(text, context).extracted.dates == expected
