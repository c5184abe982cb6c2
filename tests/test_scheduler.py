from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from kiosk_display.scheduler import Scheduler, next_boundary


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


FIVE_MINUTES = timedelta(minutes=5)


@pytest.mark.parametrize(
    "moment, expected",
    [
        (datetime(2024, 1, 1, 12, 1, 5), datetime(2024, 1, 1, 12, 5, 0)),
        (datetime(2024, 1, 1, 12, 5, 0), datetime(2024, 1, 1, 12, 5, 0)),
        (datetime(2024, 1, 1, 12, 4, 59, 500000), datetime(2024, 1, 1, 12, 5, 0)),
        (datetime(2024, 1, 1, 23, 58, 0), datetime(2024, 1, 2, 0, 0, 0)),
    ],
)
def test_next_boundary(moment: datetime, expected: datetime) -> None:
    assert next_boundary(moment, FIVE_MINUTES) == expected


def test_next_boundary_strict_skips_current_boundary() -> None:
    moment = datetime(2024, 1, 1, 12, 5, 0)
    assert next_boundary(moment, FIVE_MINUTES, strict=True) == datetime(2024, 1, 1, 12, 10, 0)


def test_next_boundary_rejects_non_positive_period() -> None:
    with pytest.raises(ValueError):
        next_boundary(datetime(2024, 1, 1), timedelta(0))


def test_periodic_task_fires_on_wall_clock_marks() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 1, 30))
    fired: list[datetime] = []
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)
    scheduler.call_every(FIVE_MINUTES, lambda: fired.append(clock.now()))

    scheduler.run(iterations=3)

    assert fired == [
        datetime(2024, 1, 1, 12, 5),
        datetime(2024, 1, 1, 12, 10),
        datetime(2024, 1, 1, 12, 15),
    ]
    assert clock.sleeps[0] == pytest.approx(210)


def test_immediate_task_runs_first_then_aligns() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 1, 30))
    fired: list[datetime] = []
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)
    scheduler.call_every(FIVE_MINUTES, lambda: fired.append(clock.now()), immediate=True)

    scheduler.run(iterations=2)

    assert fired == [datetime(2024, 1, 1, 12, 1, 30), datetime(2024, 1, 1, 12, 5)]


def test_scheduler_resynchronizes_after_drift() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 0, 0))
    fired: list[datetime] = []

    def callback() -> None:
        fired.append(clock.now())
        # Simulate a long-running refresh that drifts past the next boundary.
        clock.advance(45)

    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)
    scheduler.call_every(timedelta(minutes=1), callback, immediate=True)
    scheduler.run(iterations=2)

    assert fired == [datetime(2024, 1, 1, 12, 0, 0), datetime(2024, 1, 1, 12, 1, 0)]
    # After drift we only sleep to the next aligned boundary.
    assert clock.sleeps[-1] == pytest.approx(15)


def test_overdue_task_runs_once_then_realigns() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 0, 0))
    fired: list[datetime] = []

    def callback() -> None:
        fired.append(clock.now())
        clock.advance(75)

    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)
    task = scheduler.call_every(timedelta(minutes=1), callback, immediate=True)
    scheduler.run(iterations=2)

    assert fired == [datetime(2024, 1, 1, 12, 0, 0), datetime(2024, 1, 1, 12, 1, 15)]
    assert task.due == datetime(2024, 1, 1, 12, 2, 0)


def test_unaligned_task_counts_from_registration() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 0, 0, 250000))
    fired: list[datetime] = []
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)
    scheduler.call_every(timedelta(seconds=2), lambda: fired.append(clock.now()), align=False)

    scheduler.run(iterations=2)

    assert fired == [datetime(2024, 1, 1, 12, 0, 2, 250000), datetime(2024, 1, 1, 12, 0, 4, 250000)]


def test_call_later_fires_once_and_can_be_cancelled() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 0, 0))
    fired: list[str] = []
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)

    once = scheduler.call_later(10, lambda: fired.append("once"))
    cancelled = scheduler.call_later(5, lambda: fired.append("cancelled"))
    cancelled.cancel()

    assert once.active
    assert not cancelled.active
    scheduler.run()

    assert fired == ["once"]
    assert not once.active
    assert scheduler.tasks == []
    assert clock.now() == datetime(2024, 1, 1, 12, 0, 10)


def test_callback_can_cancel_a_later_task_due_at_the_same_time() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 0, 0))
    fired: list[str] = []
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)

    def first() -> None:
        fired.append("first")
        second.cancel()

    scheduler.call_later(1, first)
    second = scheduler.call_later(1, lambda: fired.append("second"))
    clock.advance(1)
    scheduler.run_pending()

    assert fired == ["first"]


def test_cancel_all_stops_the_loop() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 0, 0))
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)
    scheduler.call_every(timedelta(minutes=1), lambda: None)
    scheduler.call_later(30, lambda: None)

    scheduler.cancel_all()

    assert scheduler.next_due() is None
    scheduler.run()
    assert clock.sleeps == []


def test_callback_errors_propagate() -> None:
    clock = FakeClock(datetime(2024, 1, 1, 12, 0, 0))
    scheduler = Scheduler(time_provider=clock.now, sleep_func=clock.sleep)

    def explode() -> None:
        raise RuntimeError("boom")

    scheduler.call_later(0, explode)
    with pytest.raises(RuntimeError, match="boom"):
        scheduler.run_pending()
