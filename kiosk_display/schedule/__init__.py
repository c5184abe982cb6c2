"""Schedule layout engine: overlap columns, day bucketing and auto-scroll."""

from .classify import (
    DayBucket,
    DaySchedule,
    classify_event,
    events_for_day,
    occurs_on,
    tomorrow_at_a_glance,
)
from .columns import assign_columns, events_overlap, max_concurrency
from .viewport import ViewportState, compute_scroll_target, time_position

__all__ = [
    "DayBucket",
    "DaySchedule",
    "ViewportState",
    "assign_columns",
    "classify_event",
    "compute_scroll_target",
    "events_for_day",
    "events_overlap",
    "max_concurrency",
    "occurs_on",
    "time_position",
    "tomorrow_at_a_glance",
]
