"""Calendar integrations for the kiosk dashboard."""

from .google_client import CalendarApiError, GoogleCalendarClient, service_account_credentials
from .ical_client import ICalFeedClient, ICalFeedError
from .models import CalendarData, CalendarEvent, PositionedEvent
from .sources import CalendarAggregator, CalendarSource, week_window

__all__ = [
    "CalendarAggregator",
    "CalendarApiError",
    "CalendarData",
    "CalendarEvent",
    "CalendarSource",
    "GoogleCalendarClient",
    "ICalFeedClient",
    "ICalFeedError",
    "PositionedEvent",
    "service_account_credentials",
    "week_window",
]
