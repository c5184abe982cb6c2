"""Normalized calendar records shared by the adapters and the schedule engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Tuple, Union

UNTITLED = "Untitled"

EventMoment = Union[date, datetime]


@dataclass(frozen=True)
class CalendarEvent:
    """One scheduled occurrence produced by a calendar source.

    Timed events carry timezone-aware :class:`~datetime.datetime` values for
    ``start`` and ``end``. All-day events carry plain :class:`~datetime.date`
    values and are never converted through an instant.
    """

    id: str
    title: str
    start: EventMoment
    end: EventMoment
    all_day: bool = False
    location: Optional[str] = None
    description: Optional[str] = None
    source_index: int = 0
    color_id: Optional[str] = None

    @property
    def display_title(self) -> str:
        return self.title.strip() or UNTITLED

    @property
    def date_key(self) -> str:
        """Return the ``YYYY-MM-DD`` string of the event's start."""

        return self.start.isoformat()[:10]

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def sort_key(self, timezone: tzinfo) -> datetime:
        """Return an instant usable for ordering timed and all-day events together."""

        return moment_to_datetime(self.start, timezone)


def moment_to_datetime(value: EventMoment, timezone: tzinfo) -> datetime:
    """Return ``value`` as an aware datetime; dates map to local midnight."""

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone)
        return value
    return datetime.combine(value, time.min, tzinfo=timezone)


@dataclass(frozen=True)
class PositionedEvent:
    """A timed event annotated with its overlap column."""

    event: CalendarEvent
    column: int
    total_columns: int

    @property
    def id(self) -> str:
        return self.event.id

    @property
    def start(self) -> datetime:
        return self.event.start  # type: ignore[return-value]

    @property
    def end(self) -> datetime:
        return self.event.end  # type: ignore[return-value]


@dataclass(frozen=True)
class CalendarData:
    """Merged result of one calendar poll cycle."""

    events: Tuple[CalendarEvent, ...]
    week_start: datetime
    week_end: datetime
    failed_sources: Tuple[int, ...] = field(default=())


__all__ = [
    "UNTITLED",
    "CalendarData",
    "CalendarEvent",
    "EventMoment",
    "PositionedEvent",
    "moment_to_datetime",
]
