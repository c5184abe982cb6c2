"""Weather provider adapter for the kiosk dashboard."""

from .client import WeatherApiError, WeatherClient
from .models import (
    CurrentConditions,
    DailyForecast,
    HourlyForecast,
    MoonPhase,
    SunEvent,
    WeatherSnapshot,
)

__all__ = [
    "CurrentConditions",
    "DailyForecast",
    "HourlyForecast",
    "MoonPhase",
    "SunEvent",
    "WeatherApiError",
    "WeatherClient",
    "WeatherSnapshot",
]
