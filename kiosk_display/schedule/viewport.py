"""Auto-scroll heuristic for the schedule viewport."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..calendar.models import CalendarEvent

DEFAULT_PIXELS_PER_MINUTE = 1.0
LOOKAHEAD_MINUTES = 120
END_PADDING_MINUTES = 60
MARKER_MARGIN_MINUTES = 100
SCROLL_ANIMATION_SECONDS = 0.6


def minutes_since_midnight(moment: datetime) -> float:
    return moment.hour * 60 + moment.minute + moment.second / 60


def time_position(moment: datetime, pixels_per_minute: float = DEFAULT_PIXELS_PER_MINUTE) -> float:
    """Return the vertical offset of ``moment`` measured from midnight."""

    return minutes_since_midnight(moment) * pixels_per_minute


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(value, upper))


def compute_scroll_target(
    events: Iterable[CalendarEvent],
    now: datetime,
    *,
    container_height: float,
    content_height: float,
    pixels_per_minute: float = DEFAULT_PIXELS_PER_MINUTE,
) -> float:
    """Return the scroll offset that keeps "now" and the next events in view.

    ``events`` are the timed events of the day being shown; ``now`` must be in
    the same timezone the schedule is drawn in. The rules are applied in
    order: do not show more than two hours of dead space before the next
    event, prefer centering on the current time, pull the last upcoming event
    into view, then keep the current-time marker visible.
    """

    ppm = pixels_per_minute
    current = time_position(now, ppm)
    max_offset = max(0.0, content_height - container_height)
    upcoming = [event for event in events if event.end > now]

    if not upcoming:
        return _clamp(current - container_height / 2, 0.0, max_offset)

    first = min(upcoming, key=lambda event: event.start)
    earliest_desired = max(0.0, _event_position(first.start, now, ppm) - LOOKAHEAD_MINUTES * ppm)
    centered = max(0.0, current - container_height / 2)
    offset = max(earliest_desired, centered)

    last_end = max(_event_position(event.end, now, ppm) for event in upcoming)
    if last_end > offset + container_height:
        offset = last_end - container_height + END_PADDING_MINUTES * ppm

    # marker stays at least MARKER_MARGIN above the bottom edge and never above the top
    offset = max(offset, current + MARKER_MARGIN_MINUTES * ppm - container_height)
    offset = min(offset, current)

    return _clamp(offset, 0.0, max_offset)


def _event_position(moment: datetime, now: datetime, ppm: float) -> float:
    # Events ending after midnight belong to the bottom of today's schedule.
    if moment.tzinfo is not None and now.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    if moment.date() > now.date():
        return 24 * 60 * ppm
    if moment.date() < now.date():
        return 0.0
    return time_position(moment, ppm)


@dataclass
class ViewportState:
    """Scroll position of the schedule plus the manual-scroll flag.

    ``offset`` is what is currently drawn; ``target`` is where a smooth scroll
    is heading. Times passed to :meth:`scroll_to` and :meth:`advance` are
    monotonic seconds.
    """

    offset: float = 0.0
    target: float = 0.0
    user_scrolling: bool = False
    animation_seconds: float = SCROLL_ANIMATION_SECONDS
    _origin: float = 0.0
    _started_at: Optional[float] = None

    def scroll_to(self, target: float, *, at: float, smooth: bool = True) -> None:
        if smooth and self.animation_seconds > 0 and target != self.offset:
            self._origin = self.offset
            self._started_at = at
        else:
            self.offset = target
            self._started_at = None
        self.target = target

    def advance(self, at: float) -> bool:
        """Move ``offset`` along the running animation; return True if it changed."""

        if self._started_at is None:
            return False
        progress = (at - self._started_at) / self.animation_seconds
        if progress >= 1:
            self.offset = self.target
            self._started_at = None
            return True
        eased = 1 - (1 - max(progress, 0.0)) ** 3
        self.offset = self._origin + (self.target - self._origin) * eased
        return True

    @property
    def animating(self) -> bool:
        return self._started_at is not None

    def begin_manual_scroll(self, offset: float) -> None:
        self.user_scrolling = True
        self._started_at = None
        self.offset = self.target = offset

    def end_manual_scroll(self) -> None:
        self.user_scrolling = False


__all__ = [
    "DEFAULT_PIXELS_PER_MINUTE",
    "END_PADDING_MINUTES",
    "LOOKAHEAD_MINUTES",
    "MARKER_MARGIN_MINUTES",
    "ViewportState",
    "compute_scroll_target",
    "minutes_since_midnight",
    "time_position",
]
