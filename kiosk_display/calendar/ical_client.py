"""Subscription feed (iCalendar) client."""

from __future__ import annotations

import logging
import urllib.error
from datetime import date, datetime, timedelta
from typing import List

from icalendar import Calendar
from zoneinfo import ZoneInfo

from ..net import Opener, urlopen_bytes
from .models import UNTITLED, CalendarEvent, EventMoment

logger = logging.getLogger(__name__)


class ICalFeedError(RuntimeError):
    """Raised when a subscription feed cannot be fetched or parsed."""


class ICalFeedClient:
    """Fetch one ``.ics`` feed and normalize its events."""

    def __init__(
        self,
        url: str,
        timezone: str | ZoneInfo,
        *,
        source_index: int = 0,
        timeout: float = 15.0,
        opener: Opener = urlopen_bytes,
    ) -> None:
        self.url = url
        self.timezone = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(str(timezone))
        self.source_index = source_index
        self.timeout = timeout
        self._opener = opener

    def fetch_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        """Return the feed's events overlapping ``[start, end]``."""

        try:
            payload = self._opener(self.url, self.timeout)
        except (urllib.error.URLError, OSError) as exc:
            raise ICalFeedError(f"Failed to fetch iCal feed {self.url}: {exc}") from exc
        return self.parse(payload, start, end)

    def parse(self, payload: bytes | str, start: datetime, end: datetime) -> List[CalendarEvent]:
        try:
            calendar = Calendar.from_ical(payload)
        except ValueError as exc:
            raise ICalFeedError(f"Unable to parse iCal feed {self.url}: {exc}") from exc

        events: List[CalendarEvent] = []
        for component in calendar.walk("VEVENT"):
            try:
                event = self._normalize(component)
            except (ICalFeedError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed event in feed %s: %s", self.url, exc)
                continue
            if self._in_window(event, start, end):
                events.append(event)
        return events

    # ------------------------------------------------------------------
    def _normalize(self, component) -> CalendarEvent:
        dtstart = component.get("DTSTART")
        if dtstart is None:
            raise ICalFeedError("VEVENT without DTSTART")
        raw_start = dtstart.dt
        all_day = not isinstance(raw_start, datetime)
        start = raw_start if all_day else self._localize(raw_start)
        end = self._resolve_end(component, start, all_day)
        if end < start:
            raise ICalFeedError("VEVENT ends before it starts")

        summary = component.get("SUMMARY")
        location = component.get("LOCATION")
        description = component.get("DESCRIPTION")
        uid = component.get("UID")
        return CalendarEvent(
            id=str(uid) if uid else f"{self.source_index}:{start.isoformat()}",
            title=str(summary) if summary else UNTITLED,
            start=start,
            end=end,
            all_day=all_day,
            location=str(location) if location else None,
            description=str(description) if description else None,
            source_index=self.source_index,
        )

    def _resolve_end(self, component, start: EventMoment, all_day: bool) -> EventMoment:
        dtend = component.get("DTEND")
        if dtend is not None:
            raw_end = dtend.dt
            if all_day:
                return raw_end.date() if isinstance(raw_end, datetime) else raw_end
            if not isinstance(raw_end, datetime):
                raise ICalFeedError("DTEND is a date while DTSTART is a date-time")
            return self._localize(raw_end)

        duration = component.get("DURATION")
        if duration is not None:
            return start + duration.dt
        return start + timedelta(days=1) if all_day else start

    def _localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.timezone)
        return value.astimezone(self.timezone)

    def _in_window(self, event: CalendarEvent, start: datetime, end: datetime) -> bool:
        if event.all_day:
            first: date = start.astimezone(self.timezone).date()
            last: date = end.astimezone(self.timezone).date()
            return not (event.end < first or event.start > last)
        return not (event.end < start or event.start > end)


__all__ = ["ICalFeedClient", "ICalFeedError"]
