"""Layout constants and helpers for the dashboard canvas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class LayoutMetrics:
    """Collection of reusable layout constants derived from the design."""

    canvas_width: int = 800
    canvas_height: int = 480
    outer_padding: int = 12
    panel_gap: int = 12
    calendar_panel_width: int = 380
    section_title_height: int = 22
    all_day_row_height: int = 24
    schedule_height: int = 270
    hour_label_width: int = 52
    column_gap: int = 4
    pixels_per_minute: float = 1.0
    min_event_height: int = 20
    current_time_line_thickness: int = 2
    current_time_dot_radius: int = 4
    grid_line_thickness: int = 1
    event_corner_radius: int = 6
    event_padding_x: int = 6
    event_padding_y: int = 3
    hourly_strip_height: int = 74
    daily_strip_height: int = 74

    # Calendar panel -------------------------------------------------------
    @property
    def calendar_left(self) -> int:
        return self.canvas_width - self.outer_padding - self.calendar_panel_width

    @property
    def calendar_right(self) -> int:
        return self.canvas_width - self.outer_padding

    @property
    def all_day_top(self) -> int:
        return self.outer_padding + self.section_title_height

    @property
    def schedule_top(self) -> int:
        return self.all_day_top + self.all_day_row_height + 4

    @property
    def schedule_bottom(self) -> int:
        return self.schedule_top + self.schedule_height

    @property
    def schedule_content_height(self) -> int:
        return int(round(24 * 60 * self.pixels_per_minute))

    @property
    def events_left(self) -> int:
        return self.hour_label_width + self.column_gap

    @property
    def events_width(self) -> int:
        return self.calendar_panel_width - self.events_left

    @property
    def glance_top(self) -> int:
        return self.schedule_bottom + self.panel_gap

    @property
    def glance_bottom(self) -> int:
        return self.canvas_height - self.outer_padding

    # Weather panel --------------------------------------------------------
    @property
    def weather_left(self) -> int:
        return self.outer_padding

    @property
    def weather_right(self) -> int:
        return self.calendar_left - self.panel_gap

    @property
    def weather_width(self) -> int:
        return self.weather_right - self.weather_left

    @property
    def daily_strip_top(self) -> int:
        return self.canvas_height - self.outer_padding - self.daily_strip_height

    @property
    def hourly_strip_top(self) -> int:
        return self.daily_strip_top - self.panel_gap - self.hourly_strip_height

    def y_for_minutes(self, minutes: float) -> float:
        """Return the offset of ``minutes`` past midnight inside the schedule content."""

        return minutes * self.pixels_per_minute


DEFAULT_LAYOUT: Final[LayoutMetrics] = LayoutMetrics()

__all__ = ["DEFAULT_LAYOUT", "LayoutMetrics"]
