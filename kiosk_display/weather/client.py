"""OpenWeatherMap client producing :class:`WeatherSnapshot` records."""

from __future__ import annotations

import json
import logging
import time
import urllib.error
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from zoneinfo import ZoneInfo

from ..net import Opener, build_url, fetch_json, redact, urlopen_bytes
from .astronomy import (
    estimate_lunation,
    format_clock,
    moon_phase_from_fraction,
    next_sun_event,
)
from .models import (
    CurrentConditions,
    DailyForecast,
    HourlyForecast,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)

ONE_CALL_URLS = (
    "https://api.openweathermap.org/data/2.5/onecall",
    "https://api.openweathermap.org/data/3.0/onecall",
)
CURRENT_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
AIR_POLLUTION_URL = "https://api.openweathermap.org/data/2.5/air_pollution"

HOURLY_COUNT = 6
DAILY_COUNT = 7


class WeatherApiError(RuntimeError):
    """Raised when the forecast cannot be retrieved."""


def mm_to_cm(value: float) -> float:
    return round(value / 10, 1)


def ms_to_kmh(value: float) -> int:
    return round(value * 3.6)


class WeatherClient:
    """Query forecast, current-conditions and air-quality endpoints."""

    def __init__(
        self,
        api_key: Optional[str],
        latitude: Optional[float],
        longitude: Optional[float],
        timezone: str | ZoneInfo,
        *,
        timeout: float = 15.0,
        opener: Opener = urlopen_bytes,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api_key = api_key
        self.latitude = latitude
        self.longitude = longitude
        self.timezone = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(str(timezone))
        self.timeout = timeout
        self._opener = opener
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and self.latitude is not None and self.longitude is not None

    def fetch(self) -> WeatherSnapshot:
        if not self.configured:
            raise WeatherApiError("Missing OpenWeatherMap configuration")

        one_call = self._fetch_one_call()
        location = self._fetch_location_name()
        aqi = self._fetch_aqi()
        return self.build_snapshot(one_call, location=location, aqi=aqi, now=self._clock())

    # ------------------------------------------------------------------
    def _params(self, **extra: object) -> dict[str, object]:
        params: dict[str, object] = {"lat": self.latitude, "lon": self.longitude}
        params.update(extra)
        params["appid"] = self.api_key
        return params

    def _get(self, base_url: str, **extra: object) -> Any:
        url = build_url(base_url, self._params(**extra))
        logger.debug("Requesting %s", redact(url, "appid"))
        return fetch_json(self._opener, url, self.timeout)

    def _fetch_one_call(self) -> Mapping[str, Any]:
        last_error: Optional[Exception] = None
        for base_url in ONE_CALL_URLS:
            try:
                return self._get(base_url, units="metric", exclude="minutely,alerts")
            except (urllib.error.URLError, OSError, json.JSONDecodeError) as exc:
                logger.warning("One Call request to %s failed: %s", base_url, exc)
                last_error = exc
        raise WeatherApiError(
            "Failed to fetch One Call API data. This may require a paid subscription."
        ) from last_error

    def _fetch_location_name(self) -> str:
        try:
            payload = self._get(CURRENT_WEATHER_URL, units="metric")
        except (urllib.error.URLError, OSError, json.JSONDecodeError) as exc:
            logger.warning("Current weather request failed: %s", exc)
            return ""
        return str(payload.get("name") or "")

    def _fetch_aqi(self) -> Optional[int]:
        try:
            payload = self._get(AIR_POLLUTION_URL)
            return int(payload["list"][0]["main"]["aqi"])
        except (urllib.error.URLError, OSError, json.JSONDecodeError) as exc:
            logger.warning("AQI fetch error: %s", exc)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("AQI response malformed: %s", exc)
        return None

    def build_snapshot(
        self,
        one_call: Mapping[str, Any],
        *,
        location: str,
        aqi: Optional[int],
        now: float,
    ) -> WeatherSnapshot:
        """Reshape a One Call payload into the stable snapshot structure."""

        try:
            current = one_call["current"]
            hourly = one_call.get("hourly", [])
            daily = one_call["daily"]
            today = daily[0]
            condition = current["weather"][0]

            moon_fraction = today.get("moon_phase")
            if moon_fraction is None:
                moon_fraction = estimate_lunation(datetime.fromtimestamp(now, tz=self.timezone).date())

            tomorrow_sunrise = daily[1]["sunrise"] if len(daily) > 1 else current["sunrise"] + 86400
            conditions = CurrentConditions(
                temperature=round(current["temp"]),
                high=round(today["temp"]["max"]),
                low=round(today["temp"]["min"]),
                description=str(condition.get("main", "")),
                icon_code=str(condition.get("icon", "")),
                condition_id=int(condition.get("id", 0)),
                humidity=int(current.get("humidity", 0)),
                wind_speed=ms_to_kmh(current.get("wind_speed", 0)),
                wind_direction=int(current.get("wind_deg") or 0),
                feels_like=round(current.get("feels_like", current["temp"])),
                uv_index=_optional_round(current.get("uvi")),
                peak_uv=_optional_round(today.get("uvi")),
                aqi=aqi,
                precipitation_today=mm_to_cm(_precipitation_mm(today)),
                next_sun_event=next_sun_event(
                    now,
                    current["sunrise"],
                    current["sunset"],
                    tomorrow_sunrise,
                    self.timezone,
                ),
                moon_phase=moon_phase_from_fraction(float(moon_fraction)),
            )

            hourly_forecasts = tuple(
                HourlyForecast(
                    time_label=format_clock(
                        datetime.fromtimestamp(item["dt"], tz=self.timezone), minutes=False
                    ),
                    temperature=round(item["temp"]),
                    icon_code=str(item["weather"][0].get("icon", "")),
                    condition_id=int(item["weather"][0].get("id", 0)),
                    precipitation_probability=round((item.get("pop") or 0) * 100),
                )
                for item in hourly[1 : HOURLY_COUNT + 1]
            )
            daily_forecasts = tuple(
                DailyForecast(
                    day=datetime.fromtimestamp(item["dt"], tz=self.timezone).date(),
                    temperature=round(item["temp"]["day"]),
                    description=str(item["weather"][0].get("main", "")),
                    icon_code=str(item["weather"][0].get("icon", "")),
                    condition_id=int(item["weather"][0].get("id", 0)),
                    precipitation_probability=round((item.get("pop") or 0) * 100),
                    precipitation=mm_to_cm(_precipitation_mm(item)),
                )
                for item in daily[1 : DAILY_COUNT + 1]
            )
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise WeatherApiError(f"Unexpected One Call payload: {exc!r}") from exc

        return WeatherSnapshot(
            current=conditions,
            hourly=hourly_forecasts,
            daily=daily_forecasts,
            location=location,
        )


def _optional_round(value: Any) -> Optional[int]:
    if value is None:
        return None
    return round(value)


def _precipitation_mm(entry: Mapping[str, Any]) -> float:
    return float(entry.get("rain") or 0) + float(entry.get("snow") or 0)


__all__ = ["WeatherApiError", "WeatherClient", "mm_to_cm", "ms_to_kmh"]
