"""Display shell: timers, feeds and viewport state around the layout engine."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple

from zoneinfo import ZoneInfo

from .calendar.models import CalendarData, CalendarEvent, PositionedEvent
from .display import DisplayDriver
from .feeds import DataFeed
from .frame import DashboardFrame, ViewMode
from .rendering import DEFAULT_LAYOUT, DashboardRenderer, LayoutMetrics
from .schedule import (
    DaySchedule,
    ViewportState,
    assign_columns,
    compute_scroll_target,
    events_for_day,
    max_concurrency,
    tomorrow_at_a_glance,
)
from .scheduler import ScheduledTask, Scheduler
from .weather.models import WeatherSnapshot

LOGGER = logging.getLogger(__name__)

WEATHER_REFRESH = timedelta(minutes=5)
CALENDAR_REFRESH = timedelta(minutes=1)
CLOCK_TICK = timedelta(minutes=1)
MANUAL_SCROLL_QUIET_SECONDS = 10.0
TOMORROW_DWELL_SECONDS = 30.0
# The tomorrow view opens at the earliest event or 9 AM, whichever is first.
TOMORROW_DEFAULT_START_HOUR = 9


class DashboardShell:
    """Own the refresh timers, the data feeds and the schedule viewport.

    Every timer is a :class:`~kiosk_display.scheduler.ScheduledTask` handle
    created in :meth:`mount` and cancelled in :meth:`unmount`. All state is
    touched only from the scheduler's thread; the fetches themselves run on
    ``executor`` and are collected by the frame tick.
    """

    def __init__(
        self,
        *,
        calendar_fetch: Callable[[], CalendarData],
        weather_fetch: Callable[[], WeatherSnapshot],
        timezone: ZoneInfo,
        scheduler: Scheduler,
        renderer: Optional[DashboardRenderer] = None,
        display: Optional[DisplayDriver] = None,
        executor: Optional[Executor] = None,
        layout: LayoutMetrics = DEFAULT_LAYOUT,
        frame_interval: float = 1.0,
        now_provider: Optional[Callable[[], datetime]] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timezone = timezone
        self.scheduler = scheduler
        self.renderer = renderer
        self.display = display
        self.layout = layout
        self.frame_interval = frame_interval
        self._now = now_provider or (lambda: datetime.now(tz=self.timezone))
        self._monotonic = monotonic

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="feed")
        self.weather = DataFeed("weather", weather_fetch, self._executor, now_provider=self._now)
        self.calendar = DataFeed("calendar", calendar_fetch, self._executor, now_provider=self._now)

        self.viewport = ViewportState()
        self.view = ViewMode.TODAY
        self._tasks: List[ScheduledTask] = []
        self._scroll_quiet: Optional[ScheduledTask] = None
        self._tomorrow_revert: Optional[ScheduledTask] = None
        self._layout_key: Optional[Tuple[Tuple[CalendarEvent, ...], date]] = None
        self._layout: Optional[Tuple[DaySchedule, Tuple[PositionedEvent, ...]]] = None
        self._dirty = True
        self.mounted = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def mount(self) -> None:
        if self.mounted:
            return
        if self.display is not None:
            self.display.initialize()
        every = self.scheduler.call_every
        self._tasks = [
            every(WEATHER_REFRESH, self.weather.refresh, immediate=True, name="weather-refresh"),
            every(CALENDAR_REFRESH, self.calendar.refresh, immediate=True, name="calendar-refresh"),
            every(CLOCK_TICK, self._on_clock_tick, name="clock-tick"),
            every(
                timedelta(seconds=self.frame_interval),
                self._on_frame_tick,
                align=False,
                immediate=True,
                name="frame-tick",
            ),
        ]
        self.mounted = True
        LOGGER.info("Dashboard mounted")

    def unmount(self) -> None:
        if not self.mounted:
            return
        for task in self._tasks:
            task.cancel()
        self._tasks = []
        self._cancel(self._scroll_quiet)
        self._cancel(self._tomorrow_revert)
        self._scroll_quiet = self._tomorrow_revert = None
        self.weather.cancel()
        self.calendar.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        if self.display is not None:
            self.display.close()
        self.mounted = False
        LOGGER.info("Dashboard unmounted")

    @staticmethod
    def _cancel(task: Optional[ScheduledTask]) -> None:
        if task is not None:
            task.cancel()

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------
    def _on_clock_tick(self) -> None:
        self.update_scroll()
        self._dirty = True

    def _on_frame_tick(self) -> None:
        weather_changed = self.weather.poll()
        calendar_changed = self.calendar.poll()
        if calendar_changed:
            self.update_scroll()
        moved = self.viewport.advance(self._monotonic())
        if weather_changed or calendar_changed or moved or self._dirty:
            self.render()

    def refresh_now(self, timeout: Optional[float] = None) -> DashboardFrame:
        """Fetch both feeds, wait for them and render a single frame."""

        self.weather.refresh()
        self.calendar.refresh()
        self.weather.wait(timeout)
        self.calendar.wait(timeout)
        self.update_scroll(smooth=False)
        return self.render()

    # ------------------------------------------------------------------
    # Operator input
    # ------------------------------------------------------------------
    def on_user_scroll(self, offset: float) -> None:
        """Apply a manual scroll and hold off auto-scroll until input goes quiet."""

        max_offset = max(0, self.layout.schedule_content_height - self.layout.schedule_height)
        self.viewport.begin_manual_scroll(max(0.0, min(float(offset), max_offset)))
        self._cancel(self._scroll_quiet)
        self._scroll_quiet = self.scheduler.call_later(
            MANUAL_SCROLL_QUIET_SECONDS, self._end_manual_scroll, name="scroll-quiet"
        )
        self._dirty = True

    def _end_manual_scroll(self) -> None:
        self._scroll_quiet = None
        self.viewport.end_manual_scroll()
        LOGGER.debug("Manual scroll quiet period over; resuming auto-scroll")
        self.update_scroll()

    def toggle_tomorrow(self) -> ViewMode:
        """Flip between today and tomorrow; the tomorrow view reverts on its own."""

        self._cancel(self._tomorrow_revert)
        self._tomorrow_revert = None
        if self.view is ViewMode.TODAY:
            self.view = ViewMode.TOMORROW
            self._tomorrow_revert = self.scheduler.call_later(
                TOMORROW_DWELL_SECONDS, self._revert_to_today, name="tomorrow-revert"
            )
            self.viewport.scroll_to(self._tomorrow_offset(), at=self._monotonic())
        else:
            self.view = ViewMode.TODAY
            self.update_scroll()
        LOGGER.info("Showing %s schedule", self.view.value)
        self._dirty = True
        return self.view

    def _revert_to_today(self) -> None:
        self._tomorrow_revert = None
        self.view = ViewMode.TODAY
        LOGGER.info("Reverting to today's schedule")
        self.update_scroll()
        self._dirty = True

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    @property
    def schedule_day(self) -> date:
        today = self._now().astimezone(self.timezone).date()
        return today + timedelta(days=1) if self.view is ViewMode.TOMORROW else today

    def _events(self) -> Tuple[CalendarEvent, ...]:
        data = self.calendar.data
        return data.events if data is not None else ()

    def day_layout(self) -> Tuple[DaySchedule, Tuple[PositionedEvent, ...]]:
        """Return the viewed day's events and columns, recomputed only on change."""

        key = (self._events(), self.schedule_day)
        if self._layout is None or key != self._layout_key:
            schedule = events_for_day(key[0], key[1], self.timezone)
            positioned = tuple(assign_columns(schedule.timed))
            self._layout_key = key
            self._layout = (schedule, positioned)
            LOGGER.debug(
                "Laid out %d timed event(s) for %s; peak concurrency %d",
                len(positioned),
                key[1].isoformat(),
                max_concurrency(schedule.timed),
            )
        return self._layout

    def update_scroll(self, *, smooth: bool = True) -> Optional[float]:
        """Recompute the auto-scroll target unless manual scroll or tomorrow view holds it."""

        if self.viewport.user_scrolling or self.view is not ViewMode.TODAY:
            return None
        schedule, _ = self.day_layout()
        target = compute_scroll_target(
            schedule.timed,
            self._now().astimezone(self.timezone),
            container_height=self.layout.schedule_height,
            content_height=self.layout.schedule_content_height,
            pixels_per_minute=self.layout.pixels_per_minute,
        )
        self.viewport.scroll_to(target, at=self._monotonic(), smooth=smooth)
        return target

    def _tomorrow_offset(self) -> float:
        schedule, _ = self.day_layout()
        start_hour = TOMORROW_DEFAULT_START_HOUR
        for event in schedule.timed:
            local_start = event.start.astimezone(self.timezone)  # type: ignore[union-attr]
            start_hour = min(start_hour, local_start.hour)
        max_offset = max(0, self.layout.schedule_content_height - self.layout.schedule_height)
        return min(self.layout.y_for_minutes(start_hour * 60), max_offset)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------
    def build_frame(self) -> DashboardFrame:
        now = self._now().astimezone(self.timezone)
        schedule, positioned = self.day_layout()
        tomorrow = tomorrow_at_a_glance(self._events(), now.date(), self.timezone)
        return DashboardFrame(
            now=now,
            view=self.view,
            schedule_day=schedule.day,
            positioned=positioned,
            all_day=schedule.all_day,
            tomorrow=tuple(tomorrow),
            scroll_offset=self.viewport.offset,
            scroll_target=self.viewport.target,
            weather=self.weather.data,
            weather_status=self.weather.status,
            weather_error=self.weather.error,
            weather_updated=self.weather.last_success,
            calendar_status=self.calendar.status,
            calendar_error=self.calendar.error,
        )

    def render(self) -> DashboardFrame:
        frame = self.build_frame()
        if self.renderer is not None and self.display is not None:
            self.display.display_image(self.renderer.render(frame))
        self._dirty = False
        return frame


__all__ = [
    "CALENDAR_REFRESH",
    "CLOCK_TICK",
    "DashboardShell",
    "MANUAL_SCROLL_QUIET_SECONDS",
    "TOMORROW_DWELL_SECONDS",
    "WEATHER_REFRESH",
]
