"""Renderer composing the dashboard image from a :class:`DashboardFrame`."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from PIL import Image, ImageDraw, ImageFont

from ..calendar.models import CalendarEvent, PositionedEvent
from ..feeds import FeedStatus
from ..frame import DashboardFrame, ViewMode
from ..schedule.viewport import minutes_since_midnight
from ..weather.astronomy import format_clock
from ..weather.icons import aqi_label, compass_point, icon_name
from ..weather.models import WeatherSnapshot
from .layout import DEFAULT_LAYOUT, LayoutMetrics

# Grey levels per calendar source; the panel is greyscale.
SOURCE_SHADES = (214, 188, 236, 200, 176, 226, 194, 168)
DEFAULT_SHADE = 220


def _font_length(font: ImageFont.ImageFont, text: str) -> float:
    try:
        return font.getlength(text)  # type: ignore[attr-defined]
    except AttributeError:  # pragma: no cover - fallback for older Pillow
        dummy_img = Image.new("L", (1, 1), color=255)
        draw = ImageDraw.Draw(dummy_img)
        return float(draw.textlength(text, font=font))


def _load_font(path_candidates: Sequence[Path], size: int) -> ImageFont.ImageFont:
    for candidate in path_candidates:
        if candidate and candidate.exists():
            return ImageFont.truetype(str(candidate), size=size)
    return ImageFont.load_default()


def _default_font_candidates(bold: bool) -> List[Path]:
    names = [
        "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf",
        "Arial Bold.ttf" if bold else "Arial.ttf",
    ]
    search_dirs = [
        Path("/usr/share/fonts/truetype/dejavu"),
        Path("/usr/share/fonts"),
        Path("/Library/Fonts"),
        Path.home() / ".fonts",
    ]
    return [directory / name for name in names for directory in search_dirs]


def source_shade(source_index: int) -> int:
    if 0 <= source_index < len(SOURCE_SHADES):
        return SOURCE_SHADES[source_index]
    return DEFAULT_SHADE


@dataclass
class RendererConfig:
    """Configuration values and font management for the renderer."""

    layout: LayoutMetrics = DEFAULT_LAYOUT
    font_regular_path: Path | None = None
    font_bold_path: Path | None = None
    background_color: int = 255
    foreground_color: int = 0
    secondary_color: int = 96
    divider_color: int = 200
    accent_color: int = 0
    clock_font_size: int = 34
    temperature_font_size: int = 56
    section_font_size: int = 12
    body_font_size: int = 14
    small_font_size: int = 11

    def _font_candidates(self, bold: bool) -> List[Path]:
        provided = self.font_bold_path if bold else self.font_regular_path
        candidates: List[Path] = []
        if provided is not None:
            candidates.append(Path(provided))
        candidates.extend(_default_font_candidates(bold))
        return candidates

    def font(self, size: int, *, bold: bool = False) -> ImageFont.ImageFont:
        return _load_font(self._font_candidates(bold), size)


class DashboardRenderer:
    """Compose the clock, forecast and schedule into one greyscale image."""

    def __init__(self, config: RendererConfig | None = None) -> None:
        self.config = config or RendererConfig()

    @property
    def layout(self) -> LayoutMetrics:
        return self.config.layout

    def render(self, frame: DashboardFrame) -> Image.Image:
        cfg = self.config
        layout = cfg.layout
        image = Image.new(
            "L",
            (layout.canvas_width, layout.canvas_height),
            color=cfg.background_color,
        )
        draw = ImageDraw.Draw(image)

        self._draw_header(draw, frame)
        self._draw_weather(draw, frame)
        self._draw_schedule_title(draw, frame)
        self._draw_all_day(draw, frame.all_day)
        image.paste(self._render_schedule(frame), (layout.calendar_left, layout.schedule_top))
        self._draw_glance(draw, frame)
        return image

    # ------------------------------------------------------------------
    # Weather side
    # ------------------------------------------------------------------
    def _draw_header(self, draw: ImageDraw.ImageDraw, frame: DashboardFrame) -> None:
        cfg = self.config
        layout = cfg.layout
        clock_font = cfg.font(cfg.clock_font_size, bold=True)
        date_font = cfg.font(cfg.body_font_size)

        left = layout.weather_left
        draw.text((left, layout.outer_padding), format_clock(frame.now), font=clock_font, fill=cfg.foreground_color)
        date_text = frame.now.strftime("%A, %B %d")
        if frame.weather is not None and frame.weather.location:
            date_text = f"{date_text} · {frame.weather.location}"
        draw.text(
            (left, layout.outer_padding + cfg.clock_font_size + 6),
            date_text,
            font=date_font,
            fill=cfg.secondary_color,
        )

    def _draw_weather(self, draw: ImageDraw.ImageDraw, frame: DashboardFrame) -> None:
        cfg = self.config
        layout = cfg.layout
        top = layout.outer_padding + cfg.clock_font_size + 32
        body_font = cfg.font(cfg.body_font_size)

        if frame.weather is None:
            message = (
                "Loading weather..." if frame.weather_status is FeedStatus.LOADING else "Weather unavailable"
            )
            draw.text((layout.weather_left, top), message, font=body_font, fill=cfg.secondary_color)
            return

        self._draw_current(draw, frame.weather, top)
        self._draw_hourly(draw, frame.weather)
        self._draw_daily(draw, frame.weather)
        if frame.weather_status is FeedStatus.STALE:
            updated = format_clock(frame.weather_updated) if frame.weather_updated else "?"
            small = cfg.font(cfg.small_font_size)
            text = f"! {frame.weather_error or 'Refresh failed'} (updated {updated})"
            draw.text(
                (layout.weather_left, layout.hourly_strip_top - cfg.small_font_size - 6),
                text,
                font=small,
                fill=cfg.foreground_color,
            )

    def _draw_current(self, draw: ImageDraw.ImageDraw, weather: WeatherSnapshot, top: int) -> None:
        cfg = self.config
        layout = cfg.layout
        current = weather.current
        temp_font = cfg.font(cfg.temperature_font_size, bold=True)
        body_font = cfg.font(cfg.body_font_size)
        small_font = cfg.font(cfg.small_font_size)
        left = layout.weather_left

        temp_text = f"{current.temperature}°"
        draw.text((left, top), temp_text, font=temp_font, fill=cfg.foreground_color)
        summary_left = left + _font_length(temp_font, temp_text) + 14
        draw.text((summary_left, top + 6), current.description, font=body_font, fill=cfg.foreground_color)
        draw.text(
            (summary_left, top + 6 + cfg.body_font_size + 4),
            f"H {current.high}°  L {current.low}°  ·  {icon_name(current.icon_code, current.condition_id)}",
            font=small_font,
            fill=cfg.secondary_color,
        )

        details = [
            ("Feels like", f"{current.feels_like}°"),
            ("Humidity", f"{current.humidity}%"),
            ("Wind", f"{current.wind_speed} km/h {compass_point(current.wind_direction)}"),
            ("UV index", "N/A" if current.uv_index is None else str(current.uv_index)),
            ("Air quality", aqi_label(current.aqi)),
            ("Precip today", f"{current.precipitation_today:.1f} cm"),
            (current.next_sun_event.kind.capitalize(), current.next_sun_event.time_label),
            ("Moon", current.moon_phase.name),
        ]
        column_width = layout.weather_width // 2
        row_height = cfg.body_font_size + 8
        grid_top = top + cfg.temperature_font_size + 16
        for index, (label, value) in enumerate(details):
            x = left + (index % 2) * column_width
            y = grid_top + (index // 2) * row_height
            draw.text((x, y), label, font=small_font, fill=cfg.secondary_color)
            draw.text((x + 84, y - 2), value, font=body_font, fill=cfg.foreground_color)

    def _draw_hourly(self, draw: ImageDraw.ImageDraw, weather: WeatherSnapshot) -> None:
        layout = self.layout
        cells = [
            (hour.time_label, f"{hour.temperature}°", f"{hour.precipitation_probability}%")
            for hour in weather.hourly
        ]
        self._draw_strip(draw, "Next hours", cells, layout.hourly_strip_top, layout.hourly_strip_height)

    def _draw_daily(self, draw: ImageDraw.ImageDraw, weather: WeatherSnapshot) -> None:
        layout = self.layout
        cells = [
            (day.day.strftime("%a"), f"{day.temperature}°", f"{day.precipitation:.1f} cm")
            for day in weather.daily
        ]
        self._draw_strip(draw, "This week", cells, layout.daily_strip_top, layout.daily_strip_height)

    def _draw_strip(
        self,
        draw: ImageDraw.ImageDraw,
        title: str,
        cells: Sequence[tuple[str, str, str]],
        top: int,
        height: int,
    ) -> None:
        cfg = self.config
        layout = cfg.layout
        section_font = cfg.font(cfg.section_font_size, bold=True)
        body_font = cfg.font(cfg.body_font_size, bold=True)
        small_font = cfg.font(cfg.small_font_size)

        draw.rounded_rectangle(
            (layout.weather_left, top, layout.weather_right, top + height),
            radius=layout.event_corner_radius,
            outline=cfg.divider_color,
            width=1,
        )
        draw.text((layout.weather_left + 8, top + 4), title.upper(), font=section_font, fill=cfg.secondary_color)
        if not cells:
            return
        cell_width = layout.weather_width / len(cells)
        for index, (label, value, detail) in enumerate(cells):
            center = layout.weather_left + cell_width * index + cell_width / 2
            for offset, text, font, fill in (
                (22, label, small_font, cfg.secondary_color),
                (36, value, body_font, cfg.foreground_color),
                (54, detail, small_font, cfg.secondary_color),
            ):
                draw.text((center - _font_length(font, text) / 2, top + offset), text, font=font, fill=fill)

    # ------------------------------------------------------------------
    # Calendar side
    # ------------------------------------------------------------------
    def _draw_schedule_title(self, draw: ImageDraw.ImageDraw, frame: DashboardFrame) -> None:
        cfg = self.config
        layout = cfg.layout
        font = cfg.font(cfg.section_font_size, bold=True)
        title = "Tomorrow's Schedule" if frame.view is ViewMode.TOMORROW else "Today's Schedule"
        draw.text((layout.calendar_left, layout.outer_padding), title.upper(), font=font, fill=cfg.secondary_color)

        if frame.calendar_status in (FeedStatus.STALE, FeedStatus.UNAVAILABLE):
            note = "! " + (frame.calendar_error or "Error loading calendar")
            small = cfg.font(cfg.small_font_size)
            draw.text(
                (layout.calendar_right - _font_length(small, note), layout.outer_padding),
                note,
                font=small,
                fill=cfg.foreground_color,
            )

    def _draw_all_day(self, draw: ImageDraw.ImageDraw, events: Sequence[CalendarEvent]) -> None:
        cfg = self.config
        layout = cfg.layout
        font = cfg.font(cfg.small_font_size, bold=True)
        x = layout.calendar_left
        top = layout.all_day_top
        for event in events:
            text = event.display_title
            width = min(_font_length(font, text) + 16, layout.calendar_right - x)
            if width < 40:
                break
            draw.rounded_rectangle(
                (x, top, x + width, top + layout.all_day_row_height - 4),
                radius=layout.event_corner_radius,
                fill=source_shade(event.source_index),
            )
            text = self._truncate_line(text, font, int(width) - 12)
            draw.text((x + 6, top + 4), text, font=font, fill=cfg.foreground_color)
            x += width + 6

    def _render_schedule(self, frame: DashboardFrame) -> Image.Image:
        """Draw the whole day then crop the visible window at the scroll offset."""

        cfg = self.config
        layout = cfg.layout
        content = Image.new(
            "L",
            (layout.calendar_panel_width, layout.schedule_content_height),
            color=cfg.background_color,
        )
        draw = ImageDraw.Draw(content)
        self._draw_hour_grid(draw)

        if not frame.positioned and frame.calendar_status is not FeedStatus.LOADING:
            label = "No events scheduled for tomorrow" if frame.view is ViewMode.TOMORROW else "No events scheduled for today"
            font = cfg.font(cfg.body_font_size)
            y = layout.y_for_minutes(minutes_since_midnight(frame.now)) if frame.view is ViewMode.TODAY else 9 * 60
            draw.text((layout.events_left + 8, y + 8), label, font=font, fill=cfg.secondary_color)

        for positioned in frame.positioned:
            self._draw_event(draw, positioned, frame)
        if frame.view is ViewMode.TODAY:
            self._draw_current_time(draw, frame.now)

        top = int(round(frame.scroll_offset))
        return content.crop((0, top, layout.calendar_panel_width, top + layout.schedule_height))

    def _draw_hour_grid(self, draw: ImageDraw.ImageDraw) -> None:
        cfg = self.config
        layout = cfg.layout
        label_font = cfg.font(cfg.small_font_size)
        for hour in range(24):
            y = int(round(layout.y_for_minutes(hour * 60)))
            draw.line(
                (layout.events_left, y, layout.calendar_panel_width, y),
                fill=cfg.divider_color,
                width=layout.grid_line_thickness,
            )
            label = self._format_hour_label(hour)
            label_x = layout.hour_label_width - 6 - _font_length(label_font, label)
            draw.text((label_x, y + 2), label, font=label_font, fill=cfg.secondary_color)

    def _format_hour_label(self, hour: int) -> str:
        suffix = "AM" if hour < 12 else "PM"
        return f"{hour % 12 or 12} {suffix}"

    def _draw_event(self, draw: ImageDraw.ImageDraw, positioned: PositionedEvent, frame: DashboardFrame) -> None:
        cfg = self.config
        layout = cfg.layout
        event = positioned.event
        start: datetime = positioned.start
        end: datetime = positioned.end

        start_y = layout.y_for_minutes(minutes_since_midnight(start))
        if end.date() > frame.schedule_day:
            end_y = float(layout.schedule_content_height)
        else:
            end_y = layout.y_for_minutes(minutes_since_midnight(end))
        height = max(end_y - start_y - 2, layout.min_event_height)

        column_width = layout.events_width / positioned.total_columns
        left = layout.events_left + positioned.column * column_width
        right = left + column_width - layout.column_gap
        top = start_y + 1
        bottom = top + height
        shade = source_shade(event.source_index)

        draw.rounded_rectangle((left, top, right, bottom), radius=layout.event_corner_radius, fill=shade)
        draw.rectangle((left, top, left + 3, bottom), fill=max(shade - 120, 0))

        title_font = cfg.font(cfg.small_font_size, bold=True)
        body_font = cfg.font(cfg.small_font_size)
        max_width = int(right - left) - layout.event_padding_x * 2
        content_left = left + layout.event_padding_x
        title = self._truncate_line(event.display_title, title_font, max_width)
        draw.text((content_left, top + layout.event_padding_y), title, font=title_font, fill=cfg.foreground_color)
        if height > 40:
            draw.text(
                (content_left, top + layout.event_padding_y + cfg.small_font_size + 3),
                format_clock(start),
                font=body_font,
                fill=cfg.secondary_color,
            )

    def _draw_current_time(self, draw: ImageDraw.ImageDraw, now: datetime) -> None:
        cfg = self.config
        layout = cfg.layout
        y = layout.y_for_minutes(minutes_since_midnight(now))
        draw.line(
            (layout.events_left, y, layout.calendar_panel_width, y),
            fill=cfg.accent_color,
            width=layout.current_time_line_thickness,
        )
        radius = layout.current_time_dot_radius
        x = layout.events_left
        draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=cfg.accent_color)

    def _draw_glance(self, draw: ImageDraw.ImageDraw, frame: DashboardFrame) -> None:
        cfg = self.config
        layout = cfg.layout
        section_font = cfg.font(cfg.section_font_size, bold=True)
        title_font = cfg.font(cfg.small_font_size, bold=True)
        body_font = cfg.font(cfg.small_font_size)

        left, top = layout.calendar_left, layout.glance_top
        draw.rounded_rectangle(
            (left, top, layout.calendar_right, layout.glance_bottom),
            radius=layout.event_corner_radius,
            outline=cfg.divider_color,
            width=1,
        )
        heading = "Tomorrow at a glance"
        if frame.view is ViewMode.TOMORROW:
            heading += " (viewing above)"
        draw.text((left + 8, top + 4), heading.upper(), font=section_font, fill=cfg.secondary_color)

        if not frame.tomorrow:
            draw.text((left + 8, top + 26), "No events scheduled for tomorrow", font=body_font, fill=cfg.secondary_color)
            return

        card_width = (layout.calendar_panel_width - 24) / 2
        card_height = 40
        for index, event in enumerate(frame.tomorrow):
            row, column = divmod(index, 2)
            x = left + 8 + column * (card_width + 8)
            y = top + 24 + row * (card_height + 4)
            if y + card_height > layout.glance_bottom:
                break
            draw.rounded_rectangle(
                (x, y, x + card_width, y + card_height),
                radius=layout.event_corner_radius,
                fill=source_shade(event.source_index),
            )
            max_width = int(card_width) - 12
            draw.text(
                (x + 6, y + 4),
                self._truncate_line(event.display_title, title_font, max_width),
                font=title_font,
                fill=cfg.foreground_color,
            )
            when = "All Day" if event.all_day else format_clock(event.start)  # type: ignore[arg-type]
            if event.location:
                when = f"{when} · {event.location}"
            draw.text(
                (x + 6, y + 4 + cfg.small_font_size + 5),
                self._truncate_line(when, body_font, max_width),
                font=body_font,
                fill=cfg.secondary_color,
            )

    def _truncate_line(self, line: str, font: ImageFont.ImageFont, max_width: int) -> str:
        if _font_length(font, line) <= max_width:
            return line
        ellipsis = "…"
        current = line
        while current and _font_length(font, current + ellipsis) > max_width:
            current = current[:-1].rstrip()
        return (current + ellipsis) if current else ellipsis


__all__ = ["DashboardRenderer", "RendererConfig", "source_shade"]
