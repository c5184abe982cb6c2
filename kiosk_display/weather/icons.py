"""Weather icon names and small display labels."""

from __future__ import annotations

from typing import Optional

ICON_CODE_NAMES = {
    "01d": "day-sunny",
    "01n": "night-clear",
    "02d": "day-cloudy",
    "02n": "night-alt-partly-cloudy",
    "03d": "cloud",
    "03n": "night-alt-cloudy",
    "04d": "cloudy",
    "04n": "cloudy",
    "09d": "day-showers",
    "09n": "night-alt-showers",
    "10d": "day-rain",
    "10n": "night-alt-rain",
    "11d": "day-thunderstorm",
    "11n": "night-alt-thunderstorm",
    "13d": "day-snow",
    "13n": "night-alt-snow",
    "50d": "day-fog",
    "50n": "night-fog",
}

# condition id -> (day icon, night icon)
_CONDITION_ICONS = {
    200: ("day-snow-thunderstorm", "night-alt-snow-thunderstorm"),
    210: ("day-snow-thunderstorm", "night-alt-snow-thunderstorm"),
    230: ("day-snow-thunderstorm", "night-alt-snow-thunderstorm"),
    201: ("day-storm-showers", "night-alt-storm-showers"),
    211: ("day-storm-showers", "night-alt-storm-showers"),
    231: ("day-storm-showers", "night-alt-storm-showers"),
    300: ("day-sprinkle", "night-alt-sprinkle"),
    310: ("day-sprinkle", "night-alt-sprinkle"),
    302: ("day-rain", "night-alt-rain"),
    312: ("day-rain", "night-alt-rain"),
    314: ("day-rain", "night-alt-rain"),
    500: ("day-sprinkle", "night-alt-sprinkle"),
    520: ("day-sprinkle", "night-alt-sprinkle"),
    501: ("day-showers", "night-alt-showers"),
    521: ("day-showers", "night-alt-showers"),
    511: ("day-rain-mix", "night-alt-rain-mix"),
    602: ("snowflake-cold", "snowflake-cold"),
    622: ("snowflake-cold", "snowflake-cold"),
    611: ("day-sleet", "night-alt-sleet"),
    612: ("day-sleet", "night-alt-sleet"),
    613: ("day-sleet", "night-alt-sleet"),
    615: ("day-rain-mix", "night-alt-rain-mix"),
    616: ("day-rain-mix", "night-alt-rain-mix"),
    600: ("day-snow", "night-alt-snow"),
    620: ("day-snow", "night-alt-snow"),
    621: ("day-snow", "night-alt-snow"),
    701: ("day-fog", "night-fog"),
    741: ("day-fog", "night-fog"),
    711: ("smoke", "smoke"),
    721: ("day-haze", "day-haze"),
    731: ("dust", "dust"),
    761: ("dust", "dust"),
    751: ("sandstorm", "sandstorm"),
    762: ("volcano", "volcano"),
    771: ("day-rain-wind", "night-alt-rain-wind"),
    781: ("tornado", "tornado"),
    800: ("day-sunny", "night-clear"),
    801: ("day-cloudy-high", "night-alt-cloudy-high"),
    802: ("day-cloudy", "night-alt-cloudy"),
    803: ("cloudy", "cloudy"),
    804: ("cloud", "cloud"),
}

# fallback per condition group (hundreds digit)
_GROUP_ICONS = {
    2: ("day-thunderstorm", "night-alt-thunderstorm"),
    3: ("day-showers", "night-alt-showers"),
    5: ("day-rain", "night-alt-rain"),
    6: ("day-snow-wind", "night-alt-snow-wind"),
    7: ("day-haze", "night-fog"),
}

AQI_LABELS = {1: "Good", 2: "Fair", 3: "Moderate", 4: "Poor", 5: "Very Poor"}

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def icon_name(icon_code: str, condition_id: Optional[int] = None) -> str:
    """Return the weather-icons name for a provider icon code and condition id."""

    night = "n" in (icon_code or "")
    if condition_id:
        variants = _CONDITION_ICONS.get(condition_id) or _GROUP_ICONS.get(condition_id // 100)
        if variants is not None:
            return variants[1] if night else variants[0]
    return ICON_CODE_NAMES.get(icon_code, "day-sunny")


def aqi_label(aqi: Optional[int]) -> str:
    if aqi is None:
        return "N/A"
    return AQI_LABELS.get(aqi, "N/A")


def compass_point(degrees: float) -> str:
    """Return the 16-point compass direction the wind blows from."""

    return COMPASS_POINTS[int((degrees % 360) / 22.5 + 0.5) % 16]


__all__ = ["aqi_label", "compass_point", "icon_name"]
