"""
Pytest configuration and shared fixtures.
"""

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from models.temporal import TemporalContext  # noqa: E402
from services.extractors import (  # noqa: E402
    ConstraintExtractor,
    DateTimeExtractor,
    DurationExtractor,
    RecurrenceDetector,
    RelativeReferenceResolver,
)


@pytest.fixture
def monday_context():
    """Context anchored on Monday 2025-01-13."""
    return TemporalContext(current_date=datetime(2025, 1, 13, 10, 0), user_timezone="Europe/Paris")


@pytest.fixture
def stub_extractors():
    """
    Build the default extractor chain around a fixed recognizer.

    `mentions` maps a word to the datetimes the recognizer reports when the
    word appears in the text.
    """

    def build(mentions: dict[str, list[datetime]] | None = None):
        mentions = mentions or {}

        def recognizer(text: str, relative_base: datetime) -> list[tuple[str, datetime]]:
            found = []
            for word, values in mentions.items():
                if word in text:
                    found.extend((word, value) for value in values)
            return found

        return [
            DateTimeExtractor(recognizer),
            RecurrenceDetector(),
            ConstraintExtractor(),
            RelativeReferenceResolver(),
            DurationExtractor(),
        ]

    return build


class FakeCalendar:
    """Calendar collaborator serving canned busy intervals per date."""

    def __init__(self, busy_by_date=None, failing_dates=(), slow_dates=(), delay=0.0):
        self.busy_by_date = busy_by_date or {}
        self.failing_dates = set(failing_dates)
        self.slow_dates = set(slow_dates)
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0

    async def get_free_busy(self, start: str, end: str):
        self.calls.append((start, end))
        date_str = start[:10]
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if date_str in self.slow_dates:
                await asyncio.sleep(1)
            elif self.delay:
                await asyncio.sleep(self.delay)
            if date_str in self.failing_dates:
                raise ConnectionError(f"calendar unreachable for {date_str}")
            return list(self.busy_by_date.get(date_str, []))
        finally:
            self.active -= 1


@pytest.fixture
def fake_calendar():
    """Factory for FakeCalendar instances."""
    return FakeCalendar
