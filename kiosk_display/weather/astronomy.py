"""Moon phase and sunrise/sunset helpers."""

from __future__ import annotations

import math
from datetime import date, datetime, tzinfo

from .models import MoonPhase, SunEvent

SYNODIC_MONTH_DAYS = 29.53
# Julian day of the new moon on 2000-01-06.
REFERENCE_NEW_MOON_JD = 2451549.5
PHASE_STEPS = 28


def moon_phase_from_fraction(fraction: float) -> MoonPhase:
    """Map a 0–1 lunation fraction onto the 28-step icon set.

    0 is a new moon, 0.25 first quarter, 0.5 full and 0.75 third quarter.
    """

    index = math.floor(fraction * PHASE_STEPS) % PHASE_STEPS
    if index == 0:
        name, icon = "New Moon", "moon-alt-new"
    elif index <= 6:
        name, icon = "Waxing Crescent", f"moon-alt-waxing-crescent-{index}"
    elif index == 7:
        name, icon = "First Quarter", "moon-alt-first-quarter"
    elif index <= 13:
        name, icon = "Waxing Gibbous", f"moon-alt-waxing-gibbous-{index - 7}"
    elif index == 14:
        name, icon = "Full Moon", "moon-alt-full"
    elif index <= 20:
        name, icon = "Waning Gibbous", f"moon-alt-waning-gibbous-{index - 14}"
    elif index == 21:
        name, icon = "Third Quarter", "moon-alt-third-quarter"
    else:
        name, icon = "Waning Crescent", f"moon-alt-waning-crescent-{index - 21}"
    return MoonPhase(name=name, icon=icon, fraction=fraction)


def estimate_lunation(day: date) -> float:
    """Approximate the lunation fraction for ``day`` from the calendar date."""

    year, month = day.year, day.month
    if month < 3:
        year -= 1
        month += 12
    century = year // 100
    gregorian = 2 - century + century // 4
    julian_day = (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + day.day
        + gregorian
        - 1524.5
    )
    days_since_new = (julian_day - REFERENCE_NEW_MOON_JD) % SYNODIC_MONTH_DAYS
    return days_since_new / SYNODIC_MONTH_DAYS


def format_clock(moment: datetime, *, minutes: bool = True) -> str:
    """Format ``moment`` as ``7:05 AM`` (or ``7 AM`` without minutes)."""

    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    if minutes:
        return f"{hour}:{moment.minute:02d} {suffix}"
    return f"{hour} {suffix}"


def next_sun_event(
    now: float,
    sunrise: float,
    sunset: float,
    tomorrow_sunrise: float,
    timezone: tzinfo,
) -> SunEvent:
    """Pick the next sunrise or sunset from unix timestamps."""

    if now < sunrise:
        kind, moment = "sunrise", sunrise
    elif now < sunset:
        kind, moment = "sunset", sunset
    else:
        kind, moment = "sunrise", tomorrow_sunrise
    local = datetime.fromtimestamp(moment, tz=timezone)
    return SunEvent(kind=kind, time_label=format_clock(local))


__all__ = [
    "estimate_lunation",
    "format_clock",
    "moon_phase_from_fraction",
    "next_sun_event",
]
