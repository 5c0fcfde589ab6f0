#!/usr/bin/env python3
"""
Parse a scheduling sentence and print the structured result.

Usage:
    uv run python src/scripts/parse_text.py "réunion la semaine prochaine avant 14h" --date 2025-01-13
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DEFAULT_TIMEZONE
from core.telemetry import configure_logging
from models.temporal import TemporalContext
from services.temporal_parser import generate_suggestions, parse


def build_context(date_str: str | None, timezone_name: str) -> TemporalContext:
    """Context for the given day, or the wall clock if no date is given."""
    if date_str:
        current = datetime.strptime(date_str, "%Y-%m-%d")
        return TemporalContext(current_date=current, user_timezone=timezone_name)
    return TemporalContext.now(user_timezone=timezone_name)


def main(text: str, date_str: str | None = None, timezone_name: str = DEFAULT_TIMEZONE):
    """Main entry point."""
    context = build_context(date_str, timezone_name)
    print(f"Parsing relative to {context.today.isoformat()} ({context.user_timezone})\n")

    parsed = parse(text, context)
    print(json.dumps(parsed.to_dict(), indent=2, ensure_ascii=False))

    suggestions = generate_suggestions(parsed)
    if suggestions:
        print("\nSuggestions:")
        for suggestion in suggestions:
            print(f"  - {suggestion}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Parse scheduling text")
    parser.add_argument("text", help="Text to parse, e.g. 'disponible mardi matin'")
    parser.add_argument(
        "--date",
        help="Reference date (YYYY-MM-DD). Defaults to today.",
    )
    parser.add_argument(
        "--timezone",
        default=DEFAULT_TIMEZONE,
        help=f"IANA timezone of the user. Defaults to {DEFAULT_TIMEZONE}.",
    )
    args = parser.parse_args()

    configure_logging()
    main(args.text, args.date, args.timezone)
