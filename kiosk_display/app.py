"""Command line entry point for the kiosk dashboard."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from .calendar import CalendarAggregator, GoogleCalendarClient, service_account_credentials
from .calendar.sources import CalendarSource, google_sources, ical_sources
from .config import ConfigError, Settings, load_env_file
from .display import DisplayDriver, FileDisplayDriver
from .rendering import DashboardRenderer
from .scheduler import Scheduler
from .shell import DashboardShell
from .weather import WeatherClient

LOGGER = logging.getLogger(__name__)
DEFAULT_OUTPUT_DIR = Path("frames")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Weather and calendar kiosk dashboard")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional path to a .env file loaded before the app starts.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Fetch both feeds, render a single frame and exit.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help="Directory where rendered frames are written (default: ./frames).",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the resolved configuration with secrets masked and exit.",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging verbosity.",
    )
    parser.add_argument(
        "--frame-interval",
        type=float,
        default=1.0,
        help="Seconds between frame ticks (scroll animation and feed collection).",
    )
    return parser


@dataclass
class AppSettings:
    once: bool
    output_dir: Path | None
    frame_interval: float
    config: Settings


def build_calendar_aggregator(config: Settings) -> CalendarAggregator:
    """Assemble every configured calendar source in source-index order."""

    sources: list[CalendarSource] = []
    if config.google_configured:
        try:
            credentials = service_account_credentials(
                config.google_client_email or "", config.google_private_key or ""
            )
            client = GoogleCalendarClient(credentials, config.google_calendar_ids, config.timezone)
        except Exception:
            LOGGER.exception("Could not set up the Google Calendar client")
        else:
            sources.extend(google_sources(client))
    elif config.google_calendar_ids:
        LOGGER.warning("Google calendar ids configured without service account credentials")

    sources.extend(ical_sources(config.ical_urls, config.timezone, first_index=len(sources)))
    if not sources:
        LOGGER.warning("No calendar sources configured")
    return CalendarAggregator(sources, config.timezone)


def build_weather_client(config: Settings) -> WeatherClient:
    client = WeatherClient(
        config.weather_api_key,
        config.weather_latitude,
        config.weather_longitude,
        config.timezone,
    )
    if not client.configured:
        LOGGER.warning("OpenWeatherMap credentials or location missing")
    return client


class AppRuntime:
    """Owns the lifecycle of the data sources, display, shell and scheduler."""

    def __init__(
        self,
        *,
        settings: AppSettings,
        scheduler_factory: Callable[..., Scheduler] = Scheduler,
        calendar_factory: Callable[[Settings], CalendarAggregator] = build_calendar_aggregator,
        weather_factory: Callable[[Settings], WeatherClient] = build_weather_client,
        display_factory: Callable[..., DisplayDriver] = FileDisplayDriver,
        renderer_factory: Callable[[], DashboardRenderer] = DashboardRenderer,
        now_provider: Optional[Callable[[], datetime]] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.scheduler_factory = scheduler_factory
        self.calendar_factory = calendar_factory
        self.weather_factory = weather_factory
        self.display_factory = display_factory
        self.renderer_factory = renderer_factory
        timezone = settings.config.timezone
        self.now_provider = now_provider or (lambda: datetime.now(tz=timezone))
        self.logger = logger or LOGGER

        self._scheduler: Scheduler | None = None
        self._shell: DashboardShell | None = None

    @property
    def shell(self) -> DashboardShell | None:
        return self._shell

    def start(self) -> None:
        """Instantiate dependencies and mount the dashboard."""

        if self._shell is not None:
            return

        config = self.settings.config
        aggregator = self.calendar_factory(config)
        weather = self.weather_factory(config)
        display = self.display_factory(output_dir=self.settings.output_dir, logger=self.logger)
        self._scheduler = self.scheduler_factory(time_provider=self.now_provider)
        self._shell = DashboardShell(
            calendar_fetch=aggregator.fetch,
            weather_fetch=weather.fetch,
            timezone=config.timezone,
            scheduler=self._scheduler,
            renderer=self.renderer_factory(),
            display=display,
            frame_interval=self.settings.frame_interval,
            now_provider=self.now_provider,
        )
        try:
            self._shell.mount()
        except Exception:
            self.close()
            raise

    def run(self, *, iterations: Optional[int] = None) -> None:
        if not self._scheduler:
            raise RuntimeError("Scheduler has not been started")
        self._scheduler.run(iterations=iterations)

    def refresh_once(self, timeout: Optional[float] = 60.0) -> None:
        if not self._shell:
            raise RuntimeError("Runtime has not been fully started")

        self.logger.info("Rendering a single frame at %s", self.now_provider().isoformat())
        frame = self._shell.refresh_now(timeout)
        self.logger.info(
            "Frame rendered (weather: %s, calendar: %s)",
            frame.weather_status.value,
            frame.calendar_status.value,
        )

    def close(self) -> None:
        if self._shell:
            try:
                self._shell.unmount()
            except Exception:
                self.logger.exception("Error while unmounting the dashboard")
            finally:
                self._shell = None
        if self._scheduler:
            self._scheduler.cancel_all()
            self._scheduler = None


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    load_env_file(args.env_file)
    return AppSettings(
        once=args.once,
        output_dir=args.output_dir,
        frame_interval=args.frame_interval,
        config=Settings.from_env(),
    )


def main(
    argv: Optional[Iterable[str]] = None,
    *,
    runtime_factory: Callable[..., AppRuntime] = AppRuntime,
) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.frame_interval <= 0:
        parser.error("--frame-interval must be positive")

    try:
        settings = resolve_settings(args)
    except ConfigError as exc:
        parser.error(str(exc))
    if args.show_config:
        print(json.dumps(settings.config.describe(), indent=2))
        return

    runtime = runtime_factory(settings=settings)
    try:
        runtime.start()
        if settings.once:
            runtime.refresh_once()
        else:
            runtime.run()
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
