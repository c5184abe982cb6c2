"""Immutable description of one dashboard frame."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from .calendar.models import CalendarEvent, PositionedEvent
from .feeds import FeedStatus
from .weather.models import WeatherSnapshot


class ViewMode(enum.Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"


@dataclass(frozen=True)
class DashboardFrame:
    """Everything the renderer needs; built by the shell on every frame."""

    now: datetime
    view: ViewMode
    schedule_day: date
    positioned: Tuple[PositionedEvent, ...]
    all_day: Tuple[CalendarEvent, ...]
    tomorrow: Tuple[CalendarEvent, ...]
    scroll_offset: float
    scroll_target: float
    weather: Optional[WeatherSnapshot]
    weather_status: FeedStatus
    weather_error: Optional[str]
    weather_updated: Optional[datetime]
    calendar_status: FeedStatus
    calendar_error: Optional[str]


__all__ = ["DashboardFrame", "ViewMode"]
