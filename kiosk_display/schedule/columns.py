"""Overlap column assignment for the day schedule."""

from __future__ import annotations

from typing import List, Sequence

from ..calendar.models import CalendarEvent, PositionedEvent


def events_overlap(first: CalendarEvent, second: CalendarEvent) -> bool:
    """Return True when the two intervals share any instant.

    Intervals that only touch at an endpoint do not overlap, and an empty
    interval (``end == start``) never overlaps anything.
    """

    if first.end <= first.start or second.end <= second.start:
        return False
    return first.start < second.end and second.start < first.end


def assign_columns(events: Sequence[CalendarEvent]) -> List[PositionedEvent]:
    """Place timed events of a single day into side-by-side columns.

    Events are visited in start order (stable, so ties keep their input
    order) and each one goes into the first column with no overlapping member.
    ``total_columns`` is computed per event from its own overlap neighbourhood
    rather than per cluster, so unrelated clusters on the same day do not
    narrow each other.
    """

    ordered = sorted(events, key=lambda event: event.start)
    columns: List[List[CalendarEvent]] = []
    placement: List[int] = []

    for event in ordered:
        for index, column in enumerate(columns):
            if not any(events_overlap(event, member) for member in column):
                column.append(event)
                placement.append(index)
                break
        else:
            columns.append([event])
            placement.append(len(columns) - 1)

    positioned: List[PositionedEvent] = []
    for event, column_index in zip(ordered, placement):
        overlapping_columns = sum(
            1
            for index, column in enumerate(columns)
            if index != column_index and any(events_overlap(event, other) for other in column)
        )
        if overlapping_columns:
            positioned.append(PositionedEvent(event, column_index, overlapping_columns + 1))
        else:
            positioned.append(PositionedEvent(event, 0, 1))
    return positioned


def max_concurrency(events: Sequence[CalendarEvent]) -> int:
    """Return the largest number of events active at one instant."""

    boundaries = []
    for event in events:
        if event.end <= event.start:
            continue
        boundaries.append((event.start, 1))
        boundaries.append((event.end, -1))
    # ends sort before starts at the same instant, so touching events don't stack
    boundaries.sort(key=lambda item: (item[0], item[1]))

    active = peak = 0
    for _, delta in boundaries:
        active += delta
        peak = max(peak, active)
    return peak


__all__ = ["assign_columns", "events_overlap", "max_concurrency"]
