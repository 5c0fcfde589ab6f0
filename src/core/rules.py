"""
Phrase tables driving normalization, recurrence detection and constraints.

All phrases are matched against normalized text (lowercase, single spaces,
"week-end" already folded into "weekend", "14h30" into "14:30").
"""

import re

# =============================================================================
# NORMALIZATION (applied in order, each a pure substitution)
# =============================================================================

NORMALIZATION_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\s+"), " "),
    (re.compile(r"\bapr[eè]s[ -]midi\b"), "après-midi"),
    (re.compile(r"\b(\d{1,2})h(\d{2})\b"), r"\1:\2"),
    (re.compile(r"\b(\d{1,2})h\b"), r"\1:00"),
    (re.compile(r"(?<!après-)\bmidi\b"), "12:00"),
    (re.compile(r"\bminuit\b"), "00:00"),
    (re.compile(r"\bweek-end"), "weekend"),
    (re.compile(r"\bfin de semaine\b"), "weekend"),
    (re.compile(r"\bcette semaine\b"), "this week"),
    (re.compile(r"\b(?:la )?semaine prochaine\b"), "next week"),
    (re.compile(r"\bsemaine suivante\b"), "next week"),
]

# =============================================================================
# WEEKDAYS
# =============================================================================

# Indexed by ordinal, 0=Sunday
FRENCH_WEEKDAYS = ["dimanche", "lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi"]
ENGLISH_WEEKDAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

# Word -> ordinal (singular and plural, French and English)
WEEKDAY_WORDS: dict[str, int] = {}
for _ordinal, (_fr, _en) in enumerate(zip(FRENCH_WEEKDAYS, ENGLISH_WEEKDAYS)):
    WEEKDAY_WORDS[_fr] = _ordinal
    WEEKDAY_WORDS[_fr + "s"] = _ordinal
    WEEKDAY_WORDS[_en] = _ordinal
    WEEKDAY_WORDS[_en + "s"] = _ordinal

WEEKEND_ORDINALS = frozenset({0, 6})

# =============================================================================
# RECURRENCE (first match wins)
# =============================================================================

RECURRENCE_PATTERNS: dict[str, list[str]] = {
    "tous les lundis": ["monday"],
    "tous les mardis": ["tuesday"],
    "tous les mercredis": ["wednesday"],
    "tous les jeudis": ["thursday"],
    "tous les vendredis": ["friday"],
    "tous les samedis": ["saturday"],
    "tous les dimanches": ["sunday"],
    "chaque lundi": ["monday"],
    "chaque mardi": ["tuesday"],
    "chaque mercredi": ["wednesday"],
    "chaque jeudi": ["thursday"],
    "chaque vendredi": ["friday"],
    "chaque samedi": ["saturday"],
    "chaque dimanche": ["sunday"],
    "tous les weekends": ["saturday", "sunday"],
    "chaque weekend": ["saturday", "sunday"],
    "les weekends": ["saturday", "sunday"],
    "les lundis": ["monday"],
    "les mardis": ["tuesday"],
    "les mercredis": ["wednesday"],
    "les jeudis": ["thursday"],
    "les vendredis": ["friday"],
    "every monday": ["monday"],
    "every tuesday": ["tuesday"],
    "every wednesday": ["wednesday"],
    "every thursday": ["thursday"],
    "every friday": ["friday"],
    "every weekend": ["saturday", "sunday"],
}

# =============================================================================
# IMPLICIT CONSTRAINTS (later entries override earlier fields)
# =============================================================================

CONSTRAINT_VOCABULARY: list[tuple[tuple[str, ...], dict]] = [
    (("matin",), {"before_time": "12:00"}),
    (("après-midi",), {"after_time": "12:00", "before_time": "18:00"}),
    (("soir",), {"after_time": "18:00"}),
    (("heures de bureau", "heures ouvrables"), {"working_hours": True}),
    (("weekend",), {"weekends_only": True}),
]

# "semaine" only counts as a weekday constraint when no weekend is mentioned
WEEKDAY_CLASS_WORD = "semaine"
WEEKEND_CLASS_WORD = "weekend"

# Label -> (first allowed hour, first excluded hour)
TIME_OF_DAY_WINDOWS: dict[str, tuple[int, int]] = {
    "matin": (0, 12),
    "après-midi": (12, 18),
}

TIME_OF_DAY_SUGGESTIONS = {
    "matin": 'Proposer des créneaux avant 12:00 pour "matin"',
    "après-midi": 'Proposer des créneaux 12:00-18:00 pour "après-midi"',
}

# =============================================================================
# RELATIVE REFERENCES
# =============================================================================

THIS_WEEK_PHRASES = ("this week", "cette semaine")
NEXT_WEEK_PHRASES = ("next week", "semaine prochaine")
TODAY_PHRASES = ("aujourd'hui", "aujourd’hui", "today")
TOMORROW_PHRASES = ("demain", "tomorrow")
DAY_AFTER_TOMORROW_PHRASES = ("après-demain", "apres-demain", "day after tomorrow")

# Phrases resolved by RelativeReferenceResolver alone; longest forms first so
# "après-demain" goes before "demain"
RELATIVE_PHRASES = (
    DAY_AFTER_TOMORROW_PHRASES
    + THIS_WEEK_PHRASES
    + NEXT_WEEK_PHRASES
    + TODAY_PHRASES
    + TOMORROW_PHRASES
)

# A recognizer match made only of a clock time, optionally after a preposition
TIME_ONLY_PATTERN = re.compile(
    r"(?:(?:à|a|at|vers|avant|après|apres|before|after|around|from|dès|des|de|to|until)\s+)?"
    r"\d{1,2}(?::\d{2}\s*(?:am|pm)?|\s*(?:am|pm))"
)

# =============================================================================
# DURATIONS
# =============================================================================

DURATION_PATTERN = re.compile(
    r"\b(\d{1,3})\s?(minutes?|mins?|heures?|hours?|hrs?)\b"
)
DURATION_UNITS = {
    "minute": "M", "minutes": "M", "min": "M", "mins": "M",
    "heure": "H", "heures": "H", "hour": "H", "hours": "H", "hr": "H", "hrs": "H",
}
