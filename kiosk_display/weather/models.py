"""Weather snapshot records handed to the display shell."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional, Tuple

SunEventKind = Literal["sunrise", "sunset"]


@dataclass(frozen=True)
class SunEvent:
    kind: SunEventKind
    time_label: str


@dataclass(frozen=True)
class MoonPhase:
    name: str
    icon: str
    fraction: float


@dataclass(frozen=True)
class CurrentConditions:
    """Current conditions. Temperatures in °C, wind in km/h, precipitation in cm."""

    temperature: int
    high: int
    low: int
    description: str
    icon_code: str
    condition_id: int
    humidity: int
    wind_speed: int
    wind_direction: int
    feels_like: int
    uv_index: Optional[int]
    peak_uv: Optional[int]
    aqi: Optional[int]
    precipitation_today: float
    next_sun_event: SunEvent
    moon_phase: MoonPhase


@dataclass(frozen=True)
class HourlyForecast:
    time_label: str
    temperature: int
    icon_code: str
    condition_id: int
    precipitation_probability: int


@dataclass(frozen=True)
class DailyForecast:
    day: date
    temperature: int
    description: str
    icon_code: str
    condition_id: int
    precipitation_probability: int
    precipitation: float


@dataclass(frozen=True)
class WeatherSnapshot:
    current: CurrentConditions
    hourly: Tuple[HourlyForecast, ...]
    daily: Tuple[DailyForecast, ...]
    location: str


__all__ = [
    "CurrentConditions",
    "DailyForecast",
    "HourlyForecast",
    "MoonPhase",
    "SunEvent",
    "SunEventKind",
    "WeatherSnapshot",
]
