# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import asyncio
import enum
import logging
import math
import threading
import time
from collections import deque
from datetime import timedelta
from typing import Optional, Union

from crptapi.errors import AcquireInterruptedError, ConfigurationError, LimiterClosedError
from crptapi.metrics import PERMITS_AVAILABLE, RATE_LIMITER_WAITS


class TimeUnit(enum.Enum):
    """Window length expressed as one unit of time."""

    NANOSECONDS = 1e-9
    MICROSECONDS = 1e-6
    MILLISECONDS = 1e-3
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0

    @property
    def seconds(self) -> float:
        return self.value


IntervalLike = Union[TimeUnit, timedelta, float, int, str]

# Shortest window the refill thread can keep up with
MIN_INTERVAL_SECONDS = 0.001


def interval_seconds(interval: IntervalLike) -> float:
    """Convert an interval value to a positive number of seconds.

    Accepts a :class:`TimeUnit` member (or its name), a ``timedelta`` or a
    plain number of seconds. Windows shorter than one millisecond are
    rejected.

    Raises:
        ConfigurationError: If the interval is not a positive duration
    """
    if isinstance(interval, TimeUnit):
        seconds = interval.seconds
    elif isinstance(interval, timedelta):
        seconds = interval.total_seconds()
    elif isinstance(interval, str):
        try:
            seconds = TimeUnit[interval.strip().upper()].seconds
        except KeyError:
            raise ConfigurationError(
                f"Unknown time unit: {interval!r}. "
                f"Valid units: {', '.join(u.name for u in TimeUnit)}"
            ) from None
    elif isinstance(interval, (int, float)) and not isinstance(interval, bool):
        seconds = float(interval)
    else:
        raise ConfigurationError(f"Interval must be a positive duration, got {interval!r}")

    if not seconds > 0 or math.isinf(seconds):
        raise ConfigurationError(f"Interval must be a positive duration, got {interval!r}")
    if seconds < MIN_INTERVAL_SECONDS:
        raise ConfigurationError(
            f"Interval must be at least {MIN_INTERVAL_SECONDS * 1000:g}ms, got {interval!r}"
        )
    return seconds


class _Waiter:
    """A caller queued for a permit."""

    def __init__(self) -> None:
        self.granted = False
        self.closed = False

    def wake(self) -> None:
        raise NotImplementedError


class _ThreadWaiter(_Waiter):
    def __init__(self) -> None:
        super().__init__()
        self._event = threading.Event()

    def wake(self) -> None:
        self._event.set()

    def wait(self, timeout: Optional[float]) -> bool:
        return self._event.wait(timeout)


class _AsyncWaiter(_Waiter):
    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._loop = loop
        self.future: asyncio.Future[None] = loop.create_future()

    def wake(self) -> None:
        # Raises RuntimeError if the owning loop is already closed
        self._loop.call_soon_threadsafe(self._resolve)

    def _resolve(self) -> None:
        if not self.future.done():
            self.future.set_result(None)


class FixedWindowRateLimiter:
    """Fixed-window permit limiter with a background refill thread.

    Holds ``capacity`` permits. Each :meth:`acquire` takes one, blocking while
    the pool is empty. Once per ``interval`` a dedicated thread tops the pool
    back up to ``capacity`` and hands permits straight to queued callers in
    arrival order, so a late arrival never overtakes a caller that is already
    waiting.

    Permits are never returned by callers; only the periodic refill restores
    them. Up to ``2 * capacity`` permits can therefore be handed out around a
    window boundary.

    Example:
        >>> limiter = FixedWindowRateLimiter(capacity=10, interval=TimeUnit.MINUTES)
        >>> limiter.acquire()  # blocks once 10 permits were taken this minute
        >>> limiter.shutdown()

    Args:
        capacity: Permits per window
        interval: Window length (see :func:`interval_seconds`)
        name: Label for this limiter in the permits gauge
        thread_name: Name of the refill thread
        logger: Optional logger
    """

    def __init__(
        self,
        capacity: int,
        interval: IntervalLike,
        *,
        name: str = "default",
        thread_name: str = "crptapi-refill",
        logger: Optional[logging.Logger] = None,
    ):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ConfigurationError(f"Request limit must be a positive integer, got {capacity!r}")

        self._capacity = capacity
        self._interval = interval_seconds(interval)
        self._available = capacity
        self._acquired_in_window = 0
        self._waiters: deque[_Waiter] = deque()
        self._lock = threading.Lock()
        self._closed = False
        self._stop = threading.Event()
        self.log = logger or logging.getLogger(self.__class__.__name__)

        self._gauge = PERMITS_AVAILABLE.labels(limiter=name)
        self._gauge.set(capacity)

        self._thread = threading.Thread(target=self._run_refill, name=thread_name, daemon=True)
        self._thread.start()

    # ---------- introspection ----------
    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def interval(self) -> float:
        """Window length in seconds."""
        return self._interval

    @property
    def available_permits(self) -> int:
        with self._lock:
            return self._available

    @property
    def acquired_in_window(self) -> int:
        """Permits granted since the last refill."""
        with self._lock:
            return self._acquired_in_window

    @property
    def waiting(self) -> int:
        """Number of callers queued for a permit."""
        with self._lock:
            return len(self._waiters)

    @property
    def closed(self) -> bool:
        return self._closed

    # ---------- acquire ----------
    def acquire(self, timeout: Optional[float] = None) -> None:
        """Take one permit, blocking until one is available.

        Args:
            timeout: Give up after this many seconds (default: wait forever)

        Raises:
            LimiterClosedError: If the limiter is or becomes shut down
            AcquireInterruptedError: If ``timeout`` elapsed before a permit was granted
        """
        with self._lock:
            waiter = self._try_take_or_enqueue(_ThreadWaiter)
        if waiter is None:
            return

        RATE_LIMITER_WAITS.labels(mode="sync").inc()
        try:
            woke = waiter.wait(timeout)
        except BaseException:
            self._abandon(waiter)
            raise

        if not woke:
            with self._lock:
                if not waiter.granted and not waiter.closed:
                    self._waiters.remove(waiter)
                    raise AcquireInterruptedError(
                        f"Gave up waiting for a permit after {timeout}s"
                    )

        if waiter.closed:
            raise LimiterClosedError("Rate limiter is closed")

    async def acquire_async(self) -> None:
        """Take one permit without blocking the event loop.

        Shares the FIFO queue with :meth:`acquire`. Cancelling the awaiting
        task removes it from the queue; a permit already handed to it is
        passed on to the next waiter.

        Raises:
            LimiterClosedError: If the limiter is or becomes shut down
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            waiter = self._try_take_or_enqueue(lambda: _AsyncWaiter(loop))
        if waiter is None:
            return

        RATE_LIMITER_WAITS.labels(mode="async").inc()
        try:
            await waiter.future
        except asyncio.CancelledError:
            self._abandon(waiter)
            raise

        if waiter.closed:
            raise LimiterClosedError("Rate limiter is closed")

    def _try_take_or_enqueue(self, make_waiter):
        """Take a permit immediately or queue a new waiter. Caller holds the lock."""
        if self._closed:
            raise LimiterClosedError("Rate limiter is closed")
        if self._available > 0 and not self._waiters:
            self._available -= 1
            self._acquired_in_window += 1
            self._gauge.set(self._available)
            return None
        waiter = make_waiter()
        self._waiters.append(waiter)
        return waiter

    def _abandon(self, waiter: _Waiter) -> None:
        """Drop a waiter whose caller stopped waiting."""
        with self._lock:
            if waiter.granted:
                # Granted but never used: pass it on
                waiter.granted = False
                self._acquired_in_window = max(0, self._acquired_in_window - 1)
                if not self._closed:
                    self._available = min(self._capacity, self._available + 1)
                    self._dispatch_locked()
                return
            try:
                self._waiters.remove(waiter)
            except ValueError:
                pass

    # ---------- refill ----------
    def refill(self) -> None:
        """Restore the pool to full capacity and serve queued waiters.

        Runs once per interval on the refill thread.
        """
        with self._lock:
            if self._closed:
                return
            self._available = max(0, min(self._capacity, self._available))
            deficit = max(0, self._capacity - self._available)
            self._available += deficit
            self._acquired_in_window = 0
            self._dispatch_locked()

    def _dispatch_locked(self) -> None:
        while self._available > 0 and self._waiters:
            waiter = self._waiters.popleft()
            waiter.granted = True
            self._available -= 1
            self._acquired_in_window += 1
            try:
                waiter.wake()
            except RuntimeError as exc:
                waiter.granted = False
                self._available += 1
                self._acquired_in_window -= 1
                self.log.warning("Dropped a waiter whose event loop is gone: %s", exc)
        self._gauge.set(self._available)

    def _run_refill(self) -> None:
        next_due = time.monotonic() + self._interval
        while not self._stop.wait(max(0.0, next_due - time.monotonic())):
            try:
                self.refill()
            except Exception:
                self.log.exception("Permit refill failed")

            next_due += self._interval
            now = time.monotonic()
            if next_due <= now:
                # Fell behind (suspended process); skip the missed windows
                missed = int((now - next_due) // self._interval) + 1
                next_due += missed * self._interval

    # ---------- lifecycle ----------
    def shutdown(self) -> None:
        """Stop the refill thread and fail all current and future acquires.

        Safe to call more than once.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            waiters = list(self._waiters)
            self._waiters.clear()
            for waiter in waiters:
                waiter.closed = True
                try:
                    waiter.wake()
                except RuntimeError:
                    self.log.debug("Closed waiter belongs to a stopped event loop")

        self._stop.set()
        if threading.current_thread() is not self._thread:
            self._thread.join()
        self.log.debug("Rate limiter shut down, %d waiter(s) released", len(waiters))

    def __enter__(self) -> FixedWindowRateLimiter:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(capacity={self._capacity}, "
            f"interval={self._interval}, closed={self._closed})"
        )


__all__ = [
    "FixedWindowRateLimiter",
    "TimeUnit",
    "IntervalLike",
    "MIN_INTERVAL_SECONDS",
    "interval_seconds",
]
