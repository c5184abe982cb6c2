from __future__ import annotations

import time
from datetime import date, datetime, timedelta
from unittest import mock

import pytest
from zoneinfo import ZoneInfo

from kiosk_display.calendar.google_client import CalendarApiError
from kiosk_display.calendar.models import CalendarEvent
from kiosk_display.calendar.sources import (
    CalendarAggregator,
    CalendarSource,
    google_sources,
    ical_sources,
    week_window,
)

TZ = ZoneInfo("America/Toronto")
NOW = datetime(2024, 3, 13, 10, 30, tzinfo=TZ)  # a Wednesday


def _timed(event_id: str, start: datetime, source_index: int) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        title=event_id,
        start=start,
        end=start + timedelta(hours=1),
        source_index=source_index,
    )


def _source(index: int, events=(), *, error: Exception | None = None, delay: float = 0.0):
    calls: list[tuple[datetime, datetime]] = []

    def fetch(start: datetime, end: datetime):
        calls.append((start, end))
        if delay:
            time.sleep(delay)
        if error is not None:
            raise error
        return list(events)

    return CalendarSource(name=f"source-{index}", source_index=index, fetch=fetch), calls


def test_week_window_runs_sunday_to_saturday() -> None:
    start, end = week_window(NOW, TZ)

    assert start == datetime(2024, 3, 10, tzinfo=TZ)
    assert end.date() == date(2024, 3, 16)
    assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 999999)


def test_week_window_on_sunday_starts_today() -> None:
    start, _ = week_window(datetime(2024, 3, 10, 8, tzinfo=TZ), TZ)

    assert start.date() == date(2024, 3, 10)


def test_week_window_on_saturday_extends_to_tomorrow() -> None:
    start, end = week_window(datetime(2024, 3, 16, 20, tzinfo=TZ), TZ)

    assert start.date() == date(2024, 3, 10)
    assert end.date() == date(2024, 3, 17)


def test_aggregator_merges_sources_sorted_by_start() -> None:
    first, first_calls = _source(0, [_timed("late", NOW + timedelta(hours=3), 0)])
    second, _ = _source(
        1,
        [
            _timed("early", NOW - timedelta(hours=2), 1),
            CalendarEvent(id="holiday", title="Holiday", start=date(2024, 3, 13), end=date(2024, 3, 14), all_day=True, source_index=1),
        ],
    )

    data = CalendarAggregator([first, second], TZ).fetch(now=NOW)

    assert [event.id for event in data.events] == ["holiday", "early", "late"]
    assert data.failed_sources == ()
    assert (data.week_start, data.week_end) == week_window(NOW, TZ)
    assert first_calls == [week_window(NOW, TZ)]


def test_one_failing_source_contributes_nothing() -> None:
    ok_one, _ = _source(0, [_timed("a", NOW, 0)])
    broken, _ = _source(1, error=TimeoutError("timed out"), delay=0.05)
    ok_two, _ = _source(2, [_timed("b", NOW + timedelta(hours=1), 2)])

    data = CalendarAggregator([ok_one, broken, ok_two], TZ).fetch(now=NOW)

    assert [event.id for event in data.events] == ["a", "b"]
    assert {event.source_index for event in data.events} == {0, 2}
    assert data.failed_sources == (1,)


def test_all_sources_failing_raises() -> None:
    broken_one, _ = _source(0, error=RuntimeError("boom"))
    broken_two, _ = _source(1, error=RuntimeError("boom"))

    with pytest.raises(CalendarApiError):
        CalendarAggregator([broken_one, broken_two], TZ).fetch(now=NOW)


def test_no_sources_is_a_configuration_error() -> None:
    with pytest.raises(CalendarApiError, match="Missing calendar configuration"):
        CalendarAggregator([], TZ).fetch(now=NOW)


def test_google_sources_assign_indexes_in_configured_order() -> None:
    client = mock.Mock()
    client.calendar_ids = ["work", "family"]
    client.fetch_calendar.return_value = []

    sources = google_sources(client)
    start, end = week_window(NOW, TZ)
    sources[1].fetch(start, end)

    assert [(source.name, source.source_index) for source in sources] == [("work", 0), ("family", 1)]
    client.fetch_calendar.assert_called_once_with("family", start, end, source_index=1)


def test_ical_sources_continue_numbering() -> None:
    factory = mock.Mock()

    sources = ical_sources(["https://a.example/x.ics", "https://b.example/y.ics"], TZ, first_index=2, client_factory=factory)

    assert [source.source_index for source in sources] == [2, 3]
    assert factory.call_args_list == [
        mock.call("https://a.example/x.ics", TZ, source_index=2),
        mock.call("https://b.example/y.ics", TZ, source_index=3),
    ]
