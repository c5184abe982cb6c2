from __future__ import annotations

from concurrent.futures import Executor, Future
from datetime import date, datetime, timedelta
from unittest import mock

import pytest
from zoneinfo import ZoneInfo

from kiosk_display.calendar.google_client import CalendarApiError
from kiosk_display.calendar.models import CalendarData, CalendarEvent
from kiosk_display.feeds import FeedStatus
from kiosk_display.frame import DashboardFrame, ViewMode
from kiosk_display.schedule.viewport import compute_scroll_target
from kiosk_display.scheduler import Scheduler
from kiosk_display.shell import DashboardShell

TZ = ZoneInfo("America/Toronto")
START = datetime(2024, 3, 12, 14, 0, tzinfo=TZ)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    def monotonic(self) -> float:
        return self.current.timestamp()


class ImmediateExecutor(Executor):
    def submit(self, fn, /, *args, **kwargs):  # type: ignore[override]
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


def _timed(event_id: str, start: datetime, minutes: int, source_index: int = 0) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        title=event_id,
        start=start,
        end=start + timedelta(minutes=minutes),
        source_index=source_index,
    )


EVENTS = (
    _timed("review", START + timedelta(hours=1), 30),
    _timed("dinner", START + timedelta(hours=8), 30, source_index=1),
    CalendarEvent(id="trip", title="Trip", start=date(2024, 3, 13), end=date(2024, 3, 14), all_day=True),
    _timed("dentist", datetime(2024, 3, 13, 9, 0, tzinfo=TZ), 60),
)


def _calendar_data(events=EVENTS) -> CalendarData:
    return CalendarData(events=tuple(events), week_start=START, week_end=START + timedelta(days=4))


def _shell(clock: FakeClock, *, calendar_fetch=None, weather_fetch=None, **kwargs) -> DashboardShell:
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)
    return DashboardShell(
        calendar_fetch=calendar_fetch or _calendar_data,
        weather_fetch=weather_fetch or (lambda: mock.sentinel.weather),
        timezone=TZ,
        scheduler=scheduler,
        executor=ImmediateExecutor(),
        now_provider=clock.now,
        monotonic=clock.monotonic,
        **kwargs,
    )


def _task(shell: DashboardShell, name: str):
    matches = [task for task in shell.scheduler.tasks if task.name == name]
    return matches[0] if matches else None


def _expected_target(now: datetime) -> float:
    timed = [event for event in EVENTS if not event.all_day and event.start.date() == now.date()]
    return compute_scroll_target(timed, now, container_height=270, content_height=1440)


def test_mount_fetches_immediately_and_aligns_refreshes() -> None:
    clock = FakeClock(START + timedelta(minutes=2, seconds=10))
    shell = _shell(clock)

    shell.mount()
    shell.scheduler.run_pending()

    assert shell.calendar.status is FeedStatus.READY
    assert shell.weather.data is mock.sentinel.weather
    assert _task(shell, "weather-refresh").due == datetime(2024, 3, 12, 14, 5, tzinfo=TZ)
    assert _task(shell, "calendar-refresh").due == datetime(2024, 3, 12, 14, 3, tzinfo=TZ)
    assert _task(shell, "clock-tick").due == datetime(2024, 3, 12, 14, 3, tzinfo=TZ)


def test_auto_scroll_animates_to_heuristic_target() -> None:
    clock = FakeClock(START)
    shell = _shell(clock)
    shell.mount()
    shell.scheduler.run_pending()

    assert shell.viewport.target == pytest.approx(_expected_target(START))
    assert shell.viewport.animating

    clock.advance(1)
    shell.scheduler.run_pending()

    assert shell.viewport.offset == pytest.approx(_expected_target(START))
    assert not shell.viewport.animating


def test_manual_scroll_suppresses_auto_scroll_until_quiet() -> None:
    clock = FakeClock(START)
    shell = _shell(clock)
    shell.mount()
    shell.scheduler.run_pending()

    shell.on_user_scroll(100)
    assert shell.viewport.user_scrolling
    assert shell.update_scroll() is None
    assert shell.viewport.offset == 100

    clock.advance(6)
    shell.on_user_scroll(120)
    clock.advance(6)
    shell.scheduler.run_pending()
    assert shell.viewport.user_scrolling
    assert shell.viewport.offset == 120

    clock.advance(5)
    shell.scheduler.run_pending()
    assert not shell.viewport.user_scrolling
    assert shell.viewport.target == pytest.approx(_expected_target(clock.now()))


def test_manual_scroll_is_clamped_to_content() -> None:
    shell = _shell(FakeClock(START))

    shell.on_user_scroll(5000)
    assert shell.viewport.offset == 1440 - 270

    shell.on_user_scroll(-20)
    assert shell.viewport.offset == 0


def test_tomorrow_view_reverts_after_dwell_time() -> None:
    clock = FakeClock(START)
    shell = _shell(clock)
    shell.mount()
    shell.scheduler.run_pending()

    assert shell.toggle_tomorrow() is ViewMode.TOMORROW
    assert shell.schedule_day == date(2024, 3, 13)
    assert shell.update_scroll() is None
    # tomorrow opens at its first event (09:00)
    assert shell.viewport.target == 9 * 60
    frame = shell.build_frame()
    assert [item.id for item in frame.positioned] == ["dentist"]
    assert [event.id for event in frame.all_day] == ["trip"]

    clock.advance(29)
    shell.scheduler.run_pending()
    assert shell.view is ViewMode.TOMORROW

    clock.advance(2)
    shell.scheduler.run_pending()
    assert shell.view is ViewMode.TODAY
    assert _task(shell, "tomorrow-revert") is None


def test_toggling_back_cancels_revert() -> None:
    clock = FakeClock(START)
    shell = _shell(clock)
    shell.mount()

    shell.toggle_tomorrow()
    assert _task(shell, "tomorrow-revert") is not None

    assert shell.toggle_tomorrow() is ViewMode.TODAY
    assert _task(shell, "tomorrow-revert") is None


def test_layout_is_cached_until_events_or_day_change() -> None:
    clock = FakeClock(START)
    batches = [_calendar_data(), _calendar_data(EVENTS[:1])]
    shell = _shell(clock, calendar_fetch=lambda: batches.pop(0))
    shell.mount()
    shell.scheduler.run_pending()

    first = shell.day_layout()
    assert shell.day_layout() is first
    assert [item.id for item in first[1]] == ["review", "dinner"]

    clock.advance(60)
    shell.scheduler.run_pending()
    # the next frame tick collects the refreshed calendar
    clock.advance(1)
    shell.scheduler.run_pending()
    second = shell.day_layout()
    assert second is not first
    assert [item.id for item in second[1]] == ["review"]


def test_build_frame_exposes_core_outputs() -> None:
    clock = FakeClock(START)
    shell = _shell(clock)
    shell.mount()
    shell.scheduler.run_pending()

    frame = shell.build_frame()

    assert isinstance(frame, DashboardFrame)
    assert frame.view is ViewMode.TODAY
    assert frame.schedule_day == date(2024, 3, 12)
    assert [(item.id, item.column, item.total_columns) for item in frame.positioned] == [
        ("review", 0, 1),
        ("dinner", 0, 1),
    ]
    assert [event.id for event in frame.tomorrow] == ["trip", "dentist"]
    assert frame.scroll_target == pytest.approx(_expected_target(START))
    assert frame.weather_status is FeedStatus.READY
    assert frame.calendar_status is FeedStatus.READY


def test_calendar_failure_surfaces_unavailable_state() -> None:
    def failing():
        raise CalendarApiError("Missing calendar configuration")

    clock = FakeClock(START)
    shell = _shell(clock, calendar_fetch=failing)
    shell.mount()
    shell.scheduler.run_pending()

    frame = shell.build_frame()
    assert frame.calendar_status is FeedStatus.UNAVAILABLE
    assert frame.calendar_error == "Failed to load calendar data"
    assert frame.positioned == ()
    assert frame.weather_status is FeedStatus.READY


def test_frames_are_pushed_to_the_display() -> None:
    clock = FakeClock(START)
    renderer = mock.Mock()
    display = mock.Mock()
    shell = _shell(clock, renderer=renderer, display=display)

    shell.mount()
    display.initialize.assert_called_once_with()
    shell.scheduler.run_pending()

    frame = renderer.render.call_args.args[0]
    assert isinstance(frame, DashboardFrame)
    display.display_image.assert_called_with(renderer.render.return_value)

    shell.unmount()
    display.close.assert_called_once_with()


def test_unmount_cancels_every_handle() -> None:
    clock = FakeClock(START)
    shell = _shell(clock)
    shell.mount()
    shell.on_user_scroll(50)
    shell.toggle_tomorrow()

    shell.unmount()

    assert shell.scheduler.tasks == []
    assert not shell.mounted
    assert not shell.weather.in_flight
    assert not shell.calendar.in_flight


def test_refresh_now_renders_one_settled_frame() -> None:
    clock = FakeClock(START)
    shell = _shell(clock)

    frame = shell.refresh_now(timeout=1)

    assert frame.calendar_status is FeedStatus.READY
    assert frame.scroll_offset == frame.scroll_target == pytest.approx(_expected_target(START))
