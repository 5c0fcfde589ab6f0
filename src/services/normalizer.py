"""
Text canonicalization ahead of extraction.
"""

from core.rules import NORMALIZATION_RULES


def normalize_text(text: str) -> str:
    """
    Canonicalize scheduling text.

    Lowercases, collapses whitespace, rewrites French clock notation
    ("14h30" -> "14:30", "9h" -> "9:00", "midi" -> "12:00") and folds
    synonyms ("week-end" -> "weekend", "la semaine prochaine" -> "next week").
    Non-string input yields an empty string.
    """
    if not isinstance(text, str):
        return ""

    normalized = text.lower()
    for pattern, replacement in NORMALIZATION_RULES:
        normalized = pattern.sub(replacement, normalized)
    return normalized.strip()
