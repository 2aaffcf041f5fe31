"""Repeating-callback schedulers with cancel handles.

Both engines drive their tick through a :class:`Scheduler`; the concrete
primitive is swappable:

* :class:`ThreadScheduler`: one daemon thread per job, paced with
  ``threading.Event.wait`` so cancellation wakes it immediately.
* :class:`ManualScheduler`: a virtual clock advanced explicitly; fires due
  jobs synchronously. Used by hosts with their own loop and by tests.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

_logger = logging.getLogger(__name__)


class ScheduleHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_repeating(self, interval_ms: float, callback: Callable[[], None]) -> ScheduleHandle: ...


def wall_clock_ms() -> float:
    """Current epoch time in milliseconds."""
    return time.time() * 1000.0


def _check_interval(interval_ms: float) -> None:
    if interval_ms <= 0:
        raise ValueError("interval_ms must be > 0")


# ---------------------------------------------------------------------------
# Thread-backed scheduler
# ---------------------------------------------------------------------------


class _ThreadJob:
    """A daemon thread calling *callback* every *interval_ms* until cancelled."""

    def __init__(self, interval_ms: float, callback: Callable[[], None], name: str) -> None:
        self._interval_s = interval_ms / 1000.0
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True, name=name)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop the job without waiting for an in-flight callback to return.

        Safe to call from inside the callback itself.
        """
        self._stop_event.set()

    def join(self, timeout: float | None = 2.0) -> None:
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def _run(self) -> None:
        next_due = time.monotonic() + self._interval_s
        while not self._stop_event.is_set():
            wait = next_due - time.monotonic()
            if wait > 0 and self._stop_event.wait(wait):
                break
            try:
                self._callback()
            except Exception:
                # A failing tick is logged; the job keeps its schedule.
                _logger.exception("Scheduled callback on %s failed", self._thread.name)
            next_due += self._interval_s
            # Fall behind gracefully instead of firing a burst of catch-up calls.
            now = time.monotonic()
            if next_due < now:
                next_due = now


class ThreadScheduler:
    """Runs each repeating job on its own daemon thread.

    Callbacks run on the job's thread; one job never overlaps itself, so an
    engine's tick body is strictly sequential. A callback already in flight
    when its job is cancelled still completes, so callbacks must re-check
    their owner's state before doing work. An exception raised by a
    callback is logged and the job carries on with its next tick.
    """

    def __init__(self, name: str = "triptrack") -> None:
        self._name = name
        self._counter = itertools.count(1)

    def schedule_repeating(self, interval_ms: float, callback: Callable[[], None]) -> _ThreadJob:
        _check_interval(interval_ms)
        job = _ThreadJob(interval_ms, callback, name=f"{self._name}-{next(self._counter)}")
        job.start()
        return job


# ---------------------------------------------------------------------------
# Manual (virtual clock) scheduler
# ---------------------------------------------------------------------------


class _ManualJob:
    def __init__(self, seq: int, interval_ms: float, next_due: float, callback: Callable[[], None]) -> None:
        self.seq = seq
        self.interval_ms = interval_ms
        self.next_due = next_due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`.

    Exposes its virtual time through :meth:`now_ms`, which engines accept as
    their ``clock`` so that timestamps and elapsed times line up with the
    fired callbacks.

    Args:
        start_ms: Initial value of the virtual clock.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = start_ms
        self._jobs: list[_ManualJob] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def schedule_repeating(self, interval_ms: float, callback: Callable[[], None]) -> _ManualJob:
        _check_interval(interval_ms)
        job = _ManualJob(next(self._seq), interval_ms, self._now + interval_ms, callback)
        self._jobs.append(job)
        return job

    @property
    def pending(self) -> int:
        """Number of live (non-cancelled) jobs."""
        return sum(1 for j in self._jobs if not j.cancelled)

    def advance(self, ms: float) -> int:
        """Move the clock forward by *ms*, firing every job that falls due.

        Jobs fire in due-time order (ties by creation order), with the clock
        set to each job's due time while its callback runs.

        Returns the number of callbacks fired.
        """
        target = self._now + ms
        fired = 0
        while True:
            self._jobs = [j for j in self._jobs if not j.cancelled]
            due = [j for j in self._jobs if j.next_due <= target]
            if not due:
                break
            job = min(due, key=lambda j: (j.next_due, j.seq))
            self._now = job.next_due
            job.next_due += job.interval_ms
            job.callback()
            fired += 1
        self._now = target
        return fired
