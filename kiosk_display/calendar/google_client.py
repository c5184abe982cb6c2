"""Google Calendar client for retrieving events for the dashboard."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime
from typing import Callable, List, Mapping, MutableMapping, Optional, Sequence

from google.auth.credentials import Credentials
from google.auth.exceptions import TransportError
from google.oauth2 import service_account
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError
from zoneinfo import ZoneInfo

from .models import UNTITLED, CalendarEvent, EventMoment

logger = logging.getLogger(__name__)

READONLY_SCOPE = "https://www.googleapis.com/auth/calendar.readonly"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class CalendarApiError(RuntimeError):
    """Raised when the Google Calendar API repeatedly fails."""


def service_account_credentials(client_email: str, private_key: str) -> Credentials:
    """Build read-only service account credentials from an email and PEM key."""

    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key,
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=[READONLY_SCOPE])


class GoogleCalendarClient:
    """Client wrapper around the Google Calendar API."""

    def __init__(
        self,
        credentials: Optional[Credentials],
        calendar_ids: Sequence[str],
        timezone: str | ZoneInfo,
        *,
        service: Optional[Resource] = None,
        max_retries: int = 3,
        retry_initial_delay: float = 1.0,
        retry_backoff: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Google API credentials used to authenticate requests. Ignored when
                ``service`` is provided.
            calendar_ids: Google Calendar identifiers to fetch events from. Their
                position becomes the ``source_index`` of the events they produce.
            timezone: IANA timezone name or ``ZoneInfo`` instance defining the local timezone.
            service: Pre-built Google API service (primarily for testing).
            max_retries: Maximum number of retries for API calls.
            retry_initial_delay: Base delay before the first retry (seconds).
            retry_backoff: Multiplier applied to the delay after each retry.
            sleep: Sleep function used between retries (primarily for testing).
        """
        if not calendar_ids:
            raise ValueError("At least one calendar ID must be provided.")

        self.calendar_ids: List[str] = list(calendar_ids)
        self.timezone = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(str(timezone))
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self.retry_backoff = retry_backoff
        self._sleep = sleep

        if service is not None:
            self._service = service
        else:
            if credentials is None:
                raise ValueError("Credentials must be provided when service is not injected.")
            self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)

    def fetch_calendar(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
        *,
        source_index: Optional[int] = None,
    ) -> List[CalendarEvent]:
        """Return normalized events of one calendar overlapping ``[start, end)``."""

        if source_index is None:
            source_index = self.calendar_ids.index(calendar_id)

        def execute_request() -> Mapping[str, object]:
            request = (
                self._service.events()
                .list(
                    calendarId=calendar_id,
                    timeMin=start.isoformat(),
                    timeMax=end.isoformat(),
                    singleEvents=True,
                    orderBy="startTime",
                    timeZone=self._timezone_name,
                )
            )
            return request.execute()

        response = self._execute_with_backoff(execute_request)
        items = response.get("items", []) if isinstance(response, MutableMapping) else []
        normalized: List[CalendarEvent] = []
        for item in items:
            try:
                normalized.append(self._normalize_event(item, source_index))
            except CalendarApiError as exc:
                logger.warning("Skipping malformed event from calendar %s: %s", calendar_id, exc)
        return normalized

    # ------------------------------------------------------------------
    def _normalize_event(self, event: Mapping[str, object], source_index: int) -> CalendarEvent:
        start_info = event.get("start")
        all_day = not (isinstance(start_info, Mapping) and "dateTime" in start_info)
        start = self._extract_time_info(start_info)
        end = self._extract_time_info(event.get("end"))
        if type(start) is not type(end):
            raise CalendarApiError("Event start and end use different time formats.")
        if end < start:
            raise CalendarApiError("Event ends before it starts.")

        location = event.get("location")
        description = event.get("description")
        color_id = event.get("colorId")
        return CalendarEvent(
            id=str(event.get("id") or f"{source_index}:{start.isoformat()}"),
            title=str(event.get("summary") or UNTITLED),
            start=start,
            end=end,
            all_day=all_day,
            location=str(location) if location else None,
            description=str(description) if description else None,
            source_index=source_index,
            color_id=str(color_id) if color_id is not None else None,
        )

    def _extract_time_info(self, value: object) -> EventMoment:
        if not isinstance(value, Mapping):
            raise CalendarApiError("Event time data is missing or malformed.")

        if "dateTime" in value:
            return self._ensure_timezone(self._parse_datetime(str(value["dateTime"])))
        if "date" in value:
            try:
                return date.fromisoformat(str(value["date"]))
            except ValueError as exc:
                raise CalendarApiError(f"Unable to parse date value: {value['date']}") from exc
        raise CalendarApiError("Event time data lacks 'dateTime' or 'date'.")

    def _parse_datetime(self, value: str) -> datetime:
        cleaned = value.rstrip("Z") + ("+00:00" if value.endswith("Z") else "")
        try:
            parsed = datetime.fromisoformat(cleaned)
        except ValueError as exc:
            raise CalendarApiError(f"Unable to parse datetime value: {value}") from exc
        return parsed

    def _ensure_timezone(self, dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.timezone)
        return dt.astimezone(self.timezone)

    @property
    def _timezone_name(self) -> str:
        return getattr(self.timezone, "key", str(self.timezone))

    def _execute_with_backoff(self, func: Callable[[], Mapping[str, object]]) -> Mapping[str, object]:
        attempt = 0
        delay = self.retry_initial_delay
        while True:
            try:
                return func()
            except (HttpError, TransportError, TimeoutError) as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise CalendarApiError("Google Calendar API request failed after retries.") from exc
                logger.warning(
                    "Google Calendar API request failed (attempt %d/%d): %s", attempt, self.max_retries, exc
                )
                self._sleep(delay)
                delay *= self.retry_backoff


__all__ = ["CalendarApiError", "GoogleCalendarClient", "service_account_credentials"]
