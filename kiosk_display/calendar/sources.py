"""Fetch every configured calendar source in parallel and merge the results."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from zoneinfo import ZoneInfo

from .google_client import CalendarApiError, GoogleCalendarClient
from .ical_client import ICalFeedClient
from .models import CalendarData, CalendarEvent

LOGGER = logging.getLogger(__name__)

SourceFetch = Callable[[datetime, datetime], List[CalendarEvent]]


@dataclass(frozen=True)
class CalendarSource:
    """One configured calendar or feed."""

    name: str
    source_index: int
    fetch: SourceFetch


def week_window(now: datetime, timezone: ZoneInfo) -> Tuple[datetime, datetime]:
    """Return Sunday 00:00 and Saturday 23:59:59.999999 of the week holding ``now``.

    When tomorrow falls after the week (``now`` is a Saturday) the window is
    stretched to the end of tomorrow.
    """

    local_now = now.astimezone(timezone) if now.tzinfo else now.replace(tzinfo=timezone)
    days_since_sunday = (local_now.weekday() + 1) % 7
    week_start_day = local_now.date() - timedelta(days=days_since_sunday)
    last_day = max(week_start_day + timedelta(days=6), local_now.date() + timedelta(days=1))
    week_start = datetime.combine(week_start_day, time.min, tzinfo=timezone)
    week_end = datetime.combine(last_day, time.max, tzinfo=timezone)
    return week_start, week_end


def google_sources(client: GoogleCalendarClient) -> List[CalendarSource]:
    sources = []
    for index, calendar_id in enumerate(client.calendar_ids):
        def fetch(start: datetime, end: datetime, *, _id: str = calendar_id, _index: int = index):
            return client.fetch_calendar(_id, start, end, source_index=_index)

        sources.append(CalendarSource(name=calendar_id, source_index=index, fetch=fetch))
    return sources


def ical_sources(
    urls: Sequence[str],
    timezone: ZoneInfo,
    *,
    first_index: int = 0,
    client_factory: Callable[..., ICalFeedClient] = ICalFeedClient,
) -> List[CalendarSource]:
    sources = []
    for offset, url in enumerate(urls):
        client = client_factory(url, timezone, source_index=first_index + offset)
        sources.append(
            CalendarSource(name=url, source_index=first_index + offset, fetch=client.fetch_events)
        )
    return sources


class CalendarAggregator:
    """Fan out to every source, tolerate individual failures, merge by start."""

    def __init__(
        self,
        sources: Sequence[CalendarSource],
        timezone: ZoneInfo,
        *,
        max_workers: int = 8,
        now_provider: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.sources = list(sources)
        self.timezone = timezone
        self.max_workers = max_workers
        self.now_provider = now_provider or (lambda: datetime.now(tz=self.timezone))

    def fetch(self, now: Optional[datetime] = None) -> CalendarData:
        if not self.sources:
            raise CalendarApiError("Missing calendar configuration")

        week_start, week_end = week_window(now or self.now_provider(), self.timezone)
        LOGGER.debug(
            "Fetching %d calendar source(s) for %s to %s",
            len(self.sources),
            week_start.isoformat(),
            week_end.isoformat(),
        )

        workers = max(1, min(self.max_workers, len(self.sources)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="calendar") as pool:
            futures = [
                (source, pool.submit(source.fetch, week_start, week_end)) for source in self.sources
            ]
            events: List[CalendarEvent] = []
            failed: List[int] = []
            for source, future in futures:
                try:
                    events.extend(future.result())
                except Exception:
                    LOGGER.exception("Error fetching calendar %s", source.name)
                    failed.append(source.source_index)

        if len(failed) == len(self.sources):
            raise CalendarApiError("Failed to fetch calendar data from every source")

        events.sort(key=lambda event: event.sort_key(self.timezone))
        return CalendarData(
            events=tuple(events),
            week_start=week_start,
            week_end=week_end,
            failed_sources=tuple(failed),
        )


__all__ = [
    "CalendarAggregator",
    "CalendarSource",
    "google_sources",
    "ical_sources",
    "week_window",
]
