"""Structured logging of calendar fetches."""

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

from core.config import LOG_LEVEL

logger = logging.getLogger("calendar.fetch")


class FetchOutcome:
    """Outcome codes for one per-date calendar fetch."""

    CHECKED = "CHECKED"
    CONFLICTS = "CONFLICTS"
    SKIPPED_TIMEOUT = "SKIPPED_TIMEOUT"
    SKIPPED_ERROR = "SKIPPED_ERROR"
    SKIPPED_INVALID_DATA = "SKIPPED_INVALID_DATA"

    SKIPPED = {SKIPPED_TIMEOUT, SKIPPED_ERROR, SKIPPED_INVALID_DATA}


@dataclass
class FetchLog:
    """Captured data for one date's free/busy lookup."""

    date: str
    fetch_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    outcome: str = ""
    slots_checked: int = 0
    busy_intervals: int = 0
    conflicts_found: int = 0
    error_message: str | None = None
    processing_time_ms: int = 0

    @property
    def skipped(self) -> bool:
        return self.outcome in FetchOutcome.SKIPPED


def log_fetch(log: FetchLog) -> None:
    """
    Emit one record per fetch.

    Skipped dates log at WARNING and successful ones at INFO so that a date
    with no conflicts is never confused with a date that was not checked.
    """
    level = logging.WARNING if log.skipped else logging.INFO
    logger.log(
        level,
        "Calendar fetch for %s: %s (busy=%d, conflicts=%d, %dms)%s",
        log.date,
        log.outcome,
        log.busy_intervals,
        log.conflicts_found,
        log.processing_time_ms,
        f" - {log.error_message}" if log.error_message else "",
        extra={"fetch": asdict(log)},
    )


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Console logging for scripts."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
