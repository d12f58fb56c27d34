"""iCalendar export for extracted calendar events."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import structlog
from icalendar import Calendar, Event

from emailmaster.exceptions import PersistenceError
from emailmaster.models import CalendarEvent

logger = structlog.get_logger()

PRODID = "-//EmailMaster//Calendar Export//EN"
CALENDAR_NAME = "EmailMaster Calendar"
DEFAULT_DURATION = timedelta(hours=1)


def event_bounds(event: CalendarEvent) -> tuple[date | datetime, date | datetime]:
    """Start and end of an event.

    No start time means an all-day event (end is the next day). A start time
    without a usable end time means a one-hour event.
    """

    if event.start_time is None:
        return event.event_date, event.event_date + timedelta(days=1)

    start = datetime.combine(event.event_date, event.start_time)
    if event.end_time is not None:
        end = datetime.combine(event.event_date, event.end_time)
        if end > start:
            return start, end
    return start, start + DEFAULT_DURATION


def _uid(event: CalendarEvent) -> str:
    key = f"{event.source_id or ''}|{event.title}|{event.event_date.isoformat()}|{event.start_time or ''}"
    return f"{hashlib.sha256(key.encode('utf-8')).hexdigest()[:16]}@emailmaster"


def build_calendar(events: Sequence[CalendarEvent]) -> Calendar:
    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    calendar.add("x-wr-calname", CALENDAR_NAME)

    stamp = datetime.now(timezone.utc)
    for item in events:
        start, end = event_bounds(item)
        vevent = Event()
        vevent.add("uid", _uid(item))
        vevent.add("dtstamp", stamp)
        vevent.add("summary", item.title)
        vevent.add("dtstart", start)
        vevent.add("dtend", end)
        if item.description:
            vevent.add("description", item.description)
        calendar.add_component(vevent)

    return calendar


def write_ics(events: Sequence[CalendarEvent], path: Path) -> Path:
    """Write events to an .ics file, creating parent directories.

    Raises:
        PersistenceError: If the file cannot be written.
    """

    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_calendar(events).to_ical())
    except OSError as exc:
        raise PersistenceError(f"Could not write {path}: {exc}") from exc

    logger.info("calendar_exported", path=str(path), event_count=len(events))
    return path


def format_events_plain(events: Sequence[CalendarEvent]) -> str:
    if not events:
        return "No calendar events found."

    lines = ["Calendar Events:", ""]
    for number, event in enumerate(events, start=1):
        lines.append(f"{number}. {event.title}")
        lines.append(f"   Date: {event.event_date.isoformat()}")
        if event.start_time is None:
            lines.append("   All day event")
        elif event.end_time is not None:
            lines.append(f"   Time: {event.start_time:%H:%M} - {event.end_time:%H:%M}")
        else:
            lines.append(f"   Time: {event.start_time:%H:%M}")
        if event.description:
            lines.append(f"   Description: {event.description}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
