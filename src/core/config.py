"""
Configuration constants and environment setup.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# TEMPORAL CONTEXT DEFAULTS
# =============================================================================

DEFAULT_TIMEZONE = os.environ.get("TEMPORAL_TIMEZONE", "Europe/Paris")
DEFAULT_WORKING_HOURS_START = os.environ.get("WORKING_HOURS_START", "09:00")
DEFAULT_WORKING_HOURS_END = os.environ.get("WORKING_HOURS_END", "17:00")

# Weekday ordinals, 0=Sunday (Monday to Friday by default)
DEFAULT_WORKING_DAYS = frozenset(
    int(day) for day in os.environ.get("WORKING_DAYS", "1,2,3,4,5").split(",") if day.strip()
)

# =============================================================================
# RECOGNIZER CONFIGURATION
# =============================================================================

RECOGNIZER_LANGUAGES = [
    lang.strip()
    for lang in os.environ.get("RECOGNIZER_LANGUAGES", "fr,en").split(",")
    if lang.strip()
]

# =============================================================================
# CONFIDENCE SCORING
# =============================================================================

CONFIDENCE_BASE = 0.5
CONFIDENCE_DATES_BONUS = 0.2
CONFIDENCE_TIMES_BONUS = 0.1
CONFIDENCE_RECURRENCE_BONUS = 0.1
CONFIDENCE_PASSED_BONUS = 0.1
CONFIDENCE_CONFLICT_PENALTY = 0.1
LOW_CONFIDENCE_THRESHOLD = 0.7

# =============================================================================
# CALENDAR / CONFLICT DETECTION
# =============================================================================

DEFAULT_GRANULARITY_MINUTES = int(os.environ.get("SLOT_GRANULARITY_MINUTES", "30"))
CALENDAR_TIMEOUT_SECONDS = float(os.environ.get("CALENDAR_TIMEOUT_SECONDS", "10"))
CALENDAR_MAX_CONCURRENCY = int(os.environ.get("CALENDAR_MAX_CONCURRENCY", "4"))
CALENDAR_SCHEDULE_ID = os.environ.get("CALENDAR_SCHEDULE_ID", "")

# Upper bound for evening slots when only an "after" time is known
LATEST_SLOT_END = os.environ.get("LATEST_SLOT_END", "22:00")

# Default windows proposed when analyzing a whole day (start, end)
AVAILABILITY_WINDOWS = [("09:00", "12:00"), ("14:00", "17:00")]

# =============================================================================
# MS GRAPH CREDENTIALS (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
