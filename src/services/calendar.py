"""
Calendar collaborator: free/busy lookups.

The conflict detector only needs something with an async
`get_free_busy(start_iso_utc, end_iso_utc)`. GraphCalendar provides it on
top of MS Graph's getSchedule for one mailbox.
"""

from typing import Protocol

from msgraph.generated.models.date_time_time_zone import DateTimeTimeZone
from msgraph.generated.models.free_busy_status import FreeBusyStatus
from msgraph.generated.users.item.calendar.get_schedule.get_schedule_post_request_body import (
    GetSchedulePostRequestBody,
)

from core.graph_client import get_graph_client
from models.temporal import BusyInterval

# Minutes per slot in Graph's availability view (not used for busy items)
AVAILABILITY_VIEW_INTERVAL = 15


class CalendarError(Exception):
    """A calendar collaborator could not produce free/busy data."""


class CalendarClient(Protocol):
    async def get_free_busy(self, start: str, end: str) -> list[BusyInterval]:
        """Busy intervals between two ISO 8601 UTC instants."""
        ...


def day_window(date_str: str) -> tuple[str, str]:
    """Full-day UTC query window for a YYYY-MM-DD date."""
    return f"{date_str}T00:00:00Z", f"{date_str}T23:59:59Z"


def _graph_instant(value: str) -> str:
    """'2025-01-13T00:00:00Z' -> '2025-01-13T00:00:00' (Graph wants a bare local time)."""
    return value.replace("Z", "").split("+")[0]


def _from_graph_instant(value: DateTimeTimeZone) -> str:
    """Graph returns '2025-01-13T09:00:00.0000000' plus a zone name."""
    stamp = (value.date_time or "").split(".")[0]
    if (value.time_zone or "UTC").upper() == "UTC":
        return f"{stamp}Z"
    return stamp


class GraphCalendar:
    """Free/busy for one mailbox through MS Graph calendar/getSchedule."""

    def __init__(self, schedule_id: str):
        if not schedule_id:
            raise ValueError("A mailbox address is required for free/busy lookups")
        self.schedule_id = schedule_id

    async def get_free_busy(self, start: str, end: str) -> list[BusyInterval]:
        """
        Fetch busy intervals between two UTC instants.

        Free items are dropped; tentative, out-of-office and working-elsewhere
        items all count as busy.

        Raises:
            CalendarError: on any Graph or transport failure
        """
        body = GetSchedulePostRequestBody(
            schedules=[self.schedule_id],
            start_time=DateTimeTimeZone(date_time=_graph_instant(start), time_zone="UTC"),
            end_time=DateTimeTimeZone(date_time=_graph_instant(end), time_zone="UTC"),
            availability_view_interval=AVAILABILITY_VIEW_INTERVAL,
        )

        try:
            graph = get_graph_client()
            response = await graph.users.by_user_id(
                self.schedule_id
            ).calendar.get_schedule.post(body)
        except Exception as e:
            raise CalendarError(f"getSchedule failed for {self.schedule_id}: {e}") from e

        busy: list[BusyInterval] = []
        schedules = response.value if response and response.value else []
        for schedule in schedules:
            if schedule.error:
                raise CalendarError(
                    f"getSchedule error for {schedule.schedule_id}: {schedule.error.message}"
                )
            for item in schedule.schedule_items or []:
                if item.status == FreeBusyStatus.Free or not item.start or not item.end:
                    continue
                interval: BusyInterval = {
                    "start": _from_graph_instant(item.start),
                    "end": _from_graph_instant(item.end),
                }
                if item.subject:
                    interval["event_title"] = item.subject
                busy.append(interval)
        return busy
