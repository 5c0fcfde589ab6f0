#!/usr/bin/env python3
"""
Parse a scheduling sentence and check its candidate slots against a mailbox.

Uses MS Graph free/busy (getSchedule) for the given mailbox.

Usage:
    uv run python src/scripts/check_availability.py "mardi après-midi" --mailbox someone@example.com
"""

import argparse
import asyncio
import sys
import traceback
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import CALENDAR_SCHEDULE_ID, DEFAULT_GRANULARITY_MINUTES, DEFAULT_TIMEZONE
from core.telemetry import configure_logging
from scripts.parse_text import build_context
from services.calendar import GraphCalendar
from services.conflicts import ConflictDetector
from services.slots import build_time_slots
from services.temporal_parser import parse


async def main(
    text: str,
    mailbox: str,
    date_str: str | None = None,
    granularity: int = DEFAULT_GRANULARITY_MINUTES,
    timezone_name: str = DEFAULT_TIMEZONE,
):
    """Main entry point."""
    try:
        # 1. Parse the request
        context = build_context(date_str, timezone_name)
        parsed = parse(text, context)
        dates = list(parsed.extracted.dates)
        print(f"Candidate dates: {', '.join(dates) or 'none'}")
        for conflict in parsed.counterfactual_checks.conflicts:
            print(f"  ! {conflict}")

        if not dates:
            print("Nothing to check.")
            return

        # 2. Build slots and check them
        slots_by_date = build_time_slots(parsed, context, granularity)
        detector = ConflictDetector(GraphCalendar(mailbox), timezone=timezone_name)
        conflicts = await detector.detect_conflicts(dates, slots_by_date, granularity)

        # 3. Report
        print(f"\nConflicting slots: {len(conflicts)}")
        for conflict in conflicts:
            print(f"  {conflict.date} {conflict.time_slot.label}: {conflict.status}")
            for busy in conflict.conflicts:
                title = busy.get("event_title", "busy")
                print(f"    - {title} {busy['start']} -> {busy['end']}")
            for suggestion in conflict.suggestions:
                print(f"    + free {suggestion['start']} -> {suggestion['end']}")

        # 4. Whole-day overview
        print("\nAvailability:")
        availability = await detector.analyze_availability(dates)
        for date, day in availability.items():
            windows = ", ".join(f"{s['start'][11:16]}-{s['end'][11:16]}" for s in day.suggested)
            print(f"  {date}: {len(day.busy)} busy, free windows: {windows or 'none'}")

        print("\nDone!")

    except Exception as e:
        print(f"\nError: {e}")
        traceback.print_exc()
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check availability for a scheduling request")
    parser.add_argument("text", help="Scheduling text, e.g. 'mardi après-midi'")
    parser.add_argument(
        "--mailbox",
        default=CALENDAR_SCHEDULE_ID,
        help="Mailbox whose free/busy is checked. Defaults to CALENDAR_SCHEDULE_ID.",
    )
    parser.add_argument("--date", help="Reference date (YYYY-MM-DD). Defaults to today.")
    parser.add_argument(
        "--granularity",
        type=int,
        default=DEFAULT_GRANULARITY_MINUTES,
        help="Slot length in minutes.",
    )
    parser.add_argument("--timezone", default=DEFAULT_TIMEZONE, help="IANA timezone.")
    args = parser.parse_args()

    if not args.mailbox:
        parser.error("--mailbox is required when CALENDAR_SCHEDULE_ID is not set")

    configure_logging()
    asyncio.run(main(args.text, args.mailbox, args.date, args.granularity, args.timezone))
