"""Day bucketing of calendar events."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Tuple

from ..calendar.models import CalendarEvent


class DayBucket(enum.Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    OTHER = "other"


@dataclass(frozen=True)
class DaySchedule:
    """Events of one calendar day split into all-day and timed lists."""

    day: date
    all_day: Tuple[CalendarEvent, ...]
    timed: Tuple[CalendarEvent, ...]


def occurs_on(event: CalendarEvent, target: date, timezone: tzinfo) -> bool:
    """Return True when ``event`` starts on ``target`` in ``timezone``.

    All-day events compare their date string directly so a viewer's UTC
    offset can never move them to a neighbouring day.
    """

    if event.all_day:
        return event.date_key == target.isoformat()
    start = event.start
    if not isinstance(start, datetime):
        return start == target
    if start.tzinfo is not None:
        start = start.astimezone(timezone)
    return start.date() == target


def classify_event(event: CalendarEvent, today: date, timezone: tzinfo) -> DayBucket:
    if occurs_on(event, today, timezone):
        return DayBucket.TODAY
    if occurs_on(event, today + timedelta(days=1), timezone):
        return DayBucket.TOMORROW
    return DayBucket.OTHER


def events_for_day(events: Iterable[CalendarEvent], target: date, timezone: tzinfo) -> DaySchedule:
    all_day: List[CalendarEvent] = []
    timed: List[CalendarEvent] = []
    for event in events:
        if not occurs_on(event, target, timezone):
            continue
        (all_day if event.all_day else timed).append(event)
    return DaySchedule(day=target, all_day=tuple(all_day), timed=tuple(timed))


def tomorrow_at_a_glance(
    events: Iterable[CalendarEvent],
    today: date,
    timezone: tzinfo,
) -> List[CalendarEvent]:
    """Select every all-day event plus the longest timed event per source.

    Equal durations within a source resolve to the earliest start, then to
    the earlier position in ``events``.
    """

    schedule = events_for_day(events, today + timedelta(days=1), timezone)
    longest: Dict[int, CalendarEvent] = {}
    for event in schedule.timed:
        current = longest.get(event.source_index)
        if current is None or _longer(event, current):
            longest[event.source_index] = event

    selected = list(schedule.all_day) + list(longest.values())
    selected.sort(key=lambda event: event.sort_key(timezone))
    return selected


def _longer(candidate: CalendarEvent, current: CalendarEvent) -> bool:
    if candidate.duration != current.duration:
        return candidate.duration > current.duration
    return candidate.start < current.start


__all__ = [
    "DayBucket",
    "DaySchedule",
    "classify_event",
    "events_for_day",
    "occurs_on",
    "tomorrow_at_a_glance",
]
