"""Report and calendar exports."""

from .calendar import build_calendar, event_bounds, format_events_plain, write_ics
from .writers import (
    export_daily_summary,
    export_json,
    export_markdown,
    export_mood_report,
    timestamped_path,
)

__all__ = [
    "build_calendar",
    "event_bounds",
    "export_daily_summary",
    "export_json",
    "export_markdown",
    "export_mood_report",
    "format_events_plain",
    "timestamped_path",
    "write_ics",
]
