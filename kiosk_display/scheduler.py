"""Single-threaded timer loop with wall-clock aligned periodic tasks."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

LOGGER = logging.getLogger(__name__)


def next_boundary(moment: datetime, period: timedelta, *, strict: bool = False) -> datetime:
    """Return the next multiple of ``period`` past local midnight at or after ``moment``.

    Boundaries are measured on the wall clock of ``moment`` (a five-minute
    period fires at :00, :05, :10 ...). With ``strict`` a ``moment`` that
    already sits on a boundary moves to the following one.
    """

    step = period.total_seconds()
    if step <= 0:
        raise ValueError("period must be positive")

    # Normalize to second granularity, rounding up if there are remaining
    # microseconds so that we never schedule a trigger in the past.
    if moment.microsecond:
        moment = moment.replace(microsecond=0) + timedelta(seconds=1)

    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    remainder = (moment - midnight).total_seconds() % step
    if remainder == 0:
        return moment + period if strict else moment
    return moment + timedelta(seconds=step - remainder)


class ScheduledTask:
    """Handle for a callback registered with a :class:`Scheduler`."""

    def __init__(
        self,
        scheduler: "Scheduler",
        callback: Callable[[], None],
        due: datetime,
        *,
        period: Optional[timedelta] = None,
        align: bool = False,
        name: str = "",
    ) -> None:
        self._scheduler = scheduler
        self.callback = callback
        self.due = due
        self.period = period
        self.align = align
        self.name = name or getattr(callback, "__name__", "task")
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not self.cancelled and self in self._scheduler.tasks

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._scheduler._discard(self)
        LOGGER.debug("Cancelled task %s", self.name)

    def _advance(self, fired_at: datetime, now: datetime) -> None:
        assert self.period is not None
        if self.align:
            self.due = next_boundary(max(fired_at, now), self.period, strict=True)
            return
        self.due = fired_at + self.period
        while self.due <= now:
            self.due += self.period

    def __repr__(self) -> str:
        return f"ScheduledTask(name={self.name!r}, due={self.due.isoformat()}, period={self.period})"


@dataclass
class Scheduler:
    """Run single-shot and periodic callbacks on one thread.

    Every callback runs on the thread calling :meth:`run` or
    :meth:`run_pending`, so callbacks never race each other.
    """

    time_provider: Callable[[], datetime] = datetime.now
    sleep_func: Callable[[float], None] = time.sleep
    tasks: List[ScheduledTask] = field(default_factory=list)

    def call_later(
        self,
        delay: float | timedelta,
        callback: Callable[[], None],
        *,
        name: str = "",
    ) -> ScheduledTask:
        if not isinstance(delay, timedelta):
            delay = timedelta(seconds=delay)
        task = ScheduledTask(self, callback, self.time_provider() + delay, name=name)
        self.tasks.append(task)
        LOGGER.debug("Scheduled %s at %s", task.name, task.due.isoformat())
        return task

    def call_every(
        self,
        period: timedelta,
        callback: Callable[[], None],
        *,
        align: bool = True,
        immediate: bool = False,
        name: str = "",
    ) -> ScheduledTask:
        """Register a periodic callback.

        Args:
            period: Interval between runs.
            align: Fire on wall-clock multiples of ``period`` rather than
                counting from now.
            immediate: Fire once as soon as the loop runs, then follow the
                regular cadence.
            name: Label used in log messages.
        """

        now = self.time_provider()
        if immediate:
            due = now
        elif align:
            due = next_boundary(now, period, strict=True)
        else:
            due = now + period
        task = ScheduledTask(self, callback, due, period=period, align=align, name=name)
        self.tasks.append(task)
        LOGGER.debug("Scheduled %s every %s starting %s", task.name, period, due.isoformat())
        return task

    def next_due(self) -> Optional[datetime]:
        if not self.tasks:
            return None
        return min(task.due for task in self.tasks)

    def run_pending(self) -> int:
        """Run every task that is due; return how many callbacks ran."""

        now = self.time_provider()
        due_tasks = sorted((task for task in self.tasks if task.due <= now), key=lambda t: t.due)
        ran = 0
        for task in due_tasks:
            # an earlier callback may have cancelled or rescheduled this one
            if task.cancelled or task.due > now:
                continue
            fired_at = task.due
            if task.period is None:
                self._discard(task)
            else:
                task._advance(fired_at, now)
            LOGGER.debug("Running %s (due %s)", task.name, fired_at.isoformat())
            task.callback()
            ran += 1
        return ran

    def wait_until_next_due(self) -> Optional[datetime]:
        """Block until the earliest task is due and return its due time."""

        while True:
            target = self.next_due()
            if target is None:
                return None
            remaining = (target - self.time_provider()).total_seconds()
            if remaining <= 0:
                return target
            LOGGER.debug("Sleeping %.3f seconds until %s", remaining, target.isoformat())
            self.sleep_func(remaining)

    def run(self, *, iterations: Optional[int] = None) -> None:
        """Run the loop until no task is left or ``iterations`` passes are done."""

        remaining = iterations
        while remaining is None or remaining > 0:
            if self.wait_until_next_due() is None:
                return
            self.run_pending()
            if remaining is not None:
                remaining -= 1

    def cancel_all(self) -> None:
        for task in list(self.tasks):
            task.cancel()

    def _discard(self, task: ScheduledTask) -> None:
        if task in self.tasks:
            self.tasks.remove(task)


__all__ = ["ScheduledTask", "Scheduler", "next_boundary"]
