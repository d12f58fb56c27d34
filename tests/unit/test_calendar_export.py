"""Unit tests for iCalendar export."""

from datetime import date, datetime, time

from icalendar import Calendar

from emailmaster.export import build_calendar, event_bounds, format_events_plain, write_ics
from emailmaster.models import CalendarEvent


def _event(**kwargs) -> CalendarEvent:
    return CalendarEvent(title=kwargs.pop("title", "Sync"), event_date=date(2024, 3, 8), **kwargs)


class TestEventBounds:
    def test_no_time_is_all_day(self) -> None:
        assert event_bounds(_event()) == (date(2024, 3, 8), date(2024, 3, 9))

    def test_start_only_lasts_one_hour(self) -> None:
        assert event_bounds(_event(start_time=time(10, 0))) == (
            datetime(2024, 3, 8, 10, 0),
            datetime(2024, 3, 8, 11, 0),
        )

    def test_uses_end_time(self) -> None:
        start, end = event_bounds(_event(start_time=time(10, 0), end_time=time(12, 30)))

        assert end == datetime(2024, 3, 8, 12, 30)

    def test_end_before_start_falls_back_to_one_hour(self) -> None:
        _, end = event_bounds(_event(start_time=time(10, 0), end_time=time(9, 0)))

        assert end == datetime(2024, 3, 8, 11, 0)


def test_build_calendar_contains_events() -> None:
    calendar = build_calendar([_event(title="Pay invoice", description="Acme"), _event(start_time=time(9, 0))])

    parsed = Calendar.from_ical(calendar.to_ical())
    vevents = [c for c in parsed.walk() if c.name == "VEVENT"]

    assert [str(v.get("summary")) for v in vevents] == ["Pay invoice", "Sync"]
    assert vevents[0].get("dtstart").dt == date(2024, 3, 8)
    assert vevents[1].get("dtend").dt == datetime(2024, 3, 8, 10, 0)
    assert str(vevents[0].get("description")) == "Acme"
    assert vevents[0].get("uid") != vevents[1].get("uid")


def test_write_ics(tmp_path) -> None:
    path = write_ics([_event()], tmp_path / "out" / "events.ics")

    assert path.read_bytes().startswith(b"BEGIN:VCALENDAR")


def test_format_events_plain() -> None:
    text = format_events_plain(
        [_event(title="Review", start_time=time(14, 0), end_time=time(15, 0)), _event(title="Holiday")]
    )

    assert "1. Review" in text
    assert "Time: 14:00 - 15:00" in text
    assert "2. Holiday" in text
    assert "All day event" in text


def test_format_no_events() -> None:
    assert format_events_plain([]) == "No calendar events found."
