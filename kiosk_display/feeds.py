"""Background fetches that keep the last good result."""

from __future__ import annotations

import enum
import logging
from concurrent import futures
from concurrent.futures import Executor, Future
from datetime import datetime
from typing import Callable, Generic, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class FeedStatus(enum.Enum):
    LOADING = "loading"
    READY = "ready"
    STALE = "stale"
    UNAVAILABLE = "unavailable"


class DataFeed(Generic[T]):
    """Run ``fetch`` on an executor and hold its latest successful value.

    :meth:`refresh` never blocks; results are applied by :meth:`poll` on the
    caller's thread. A failed fetch keeps the previous value and records an
    error message instead.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], T],
        executor: Executor,
        *,
        now_provider: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.name = name
        self._fetch = fetch
        self._executor = executor
        self._now = now_provider
        self._future: Optional[Future[T]] = None
        self.data: Optional[T] = None
        self.error: Optional[str] = None
        self.last_success: Optional[datetime] = None
        self.version = 0

    @property
    def status(self) -> FeedStatus:
        if self.error is not None:
            return FeedStatus.STALE if self.data is not None else FeedStatus.UNAVAILABLE
        if self.data is None:
            return FeedStatus.LOADING
        return FeedStatus.READY

    @property
    def in_flight(self) -> bool:
        return self._future is not None and not self._future.done()

    def refresh(self) -> bool:
        """Start a fetch unless one is already running; return True if started."""

        if self.in_flight:
            LOGGER.debug("%s refresh already in flight; skipping", self.name)
            return False
        self._future = self._executor.submit(self._fetch)
        return True

    def poll(self) -> bool:
        """Apply a finished fetch; return True when the feed state changed."""

        future = self._future
        if future is None or not future.done():
            return False
        self._future = None
        if future.cancelled():
            return False

        try:
            result = future.result()
        except Exception:
            LOGGER.exception("Error fetching %s", self.name)
            self.error = f"Failed to load {self.name} data"
        else:
            self.data = result
            self.error = None
            self.last_success = self._now()
            LOGGER.info("Refreshed %s data", self.name)
        self.version += 1
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the running fetch finishes, then :meth:`poll` it."""

        if self._future is not None:
            try:
                self._future.exception(timeout=timeout)
            except futures.TimeoutError:
                return False
            except futures.CancelledError:
                self._future = None
                return False
        return self.poll()

    def cancel(self) -> None:
        if self._future is not None:
            self._future.cancel()
            self._future = None


__all__ = ["DataFeed", "FeedStatus"]
