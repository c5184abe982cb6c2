"""Environment loading and typed settings for the dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Tuple

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

__all__ = ["ConfigError", "DEFAULT_TIMEZONE", "Settings", "load_env_file"]

DEFAULT_TIMEZONE = "America/Toronto"


class ConfigError(RuntimeError):
    """Raised when configuration values are malformed."""


def load_env_file(env_file: str | Path | None = None) -> None:
    """Load environment variables from ``env_file`` if provided.

    When ``env_file`` is :data:`None`, the loader looks for a ``.env`` file in the
    current working directory. Existing environment variables are never overwritten.
    """

    path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if not path.exists() or not path.is_file():
        return

    for key, value in _iter_env_entries(path):
        os.environ.setdefault(key, value)


def _iter_env_entries(path: Path) -> Iterable[tuple[str, str]]:
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ConfigError(
                f"Invalid line in {path.name!r}: {raw_line!r}. Expected KEY=VALUE format."
            )
        key, raw_value = line.split("=", 1)
        key = key.strip()
        value = raw_value.strip().strip('"').strip("'")
        if not key:
            raise ConfigError(f"Environment variable key is missing in line: {raw_line!r}")
        yield key, value


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _parse_coordinate(name: str, value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


def _mask(secret: Optional[str]) -> dict[str, object]:
    if not secret:
        return {"set": False}
    return {"set": True, "length": len(secret), "prefix": secret[:4] + "..."}


@dataclass(frozen=True)
class Settings:
    """Credentials and locations needed by the adapters."""

    timezone: ZoneInfo = field(default_factory=lambda: ZoneInfo(DEFAULT_TIMEZONE))
    google_client_email: Optional[str] = None
    google_private_key: Optional[str] = field(default=None, repr=False)
    google_calendar_ids: Tuple[str, ...] = ()
    ical_urls: Tuple[str, ...] = ()
    weather_api_key: Optional[str] = field(default=None, repr=False)
    weather_latitude: Optional[float] = None
    weather_longitude: Optional[float] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        tz_name = env.get("TIMEZONE") or DEFAULT_TIMEZONE
        try:
            timezone = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown timezone {tz_name!r}") from exc

        private_key = env.get("GOOGLE_PRIVATE_KEY")
        if private_key:
            private_key = private_key.replace("\\n", "\n")

        return cls(
            timezone=timezone,
            google_client_email=env.get("GOOGLE_CLIENT_EMAIL") or None,
            google_private_key=private_key or None,
            google_calendar_ids=_split_list(env.get("GOOGLE_CALENDAR_IDS")),
            ical_urls=_split_list(env.get("ICAL_URLS")),
            weather_api_key=env.get("OPENWEATHERMAP_API_KEY") or None,
            weather_latitude=_parse_coordinate("OPENWEATHERMAP_LAT", env.get("OPENWEATHERMAP_LAT")),
            weather_longitude=_parse_coordinate("OPENWEATHERMAP_LON", env.get("OPENWEATHERMAP_LON")),
        )

    @property
    def google_configured(self) -> bool:
        return bool(self.google_client_email and self.google_private_key and self.google_calendar_ids)

    def describe(self) -> dict[str, object]:
        """Return a diagnostic summary with secrets masked."""

        return {
            "timezone": self.timezone.key,
            "weather": {
                "lat": self.weather_latitude,
                "lon": self.weather_longitude,
                "api_key": _mask(self.weather_api_key),
            },
            "calendar": {
                "client_email_set": bool(self.google_client_email),
                "private_key": _mask(self.google_private_key),
                "calendar_ids": list(self.google_calendar_ids),
                "calendar_count": len(self.google_calendar_ids),
                "ical_feed_count": len(self.ical_urls),
            },
        }
