"""ReplayEngine — plays back a recorded trip on a scalable virtual clock.

State machine::

    stopped ──play()──▶ playing ──pause()──▶ paused ──play()/resume()──▶ playing
       ▲                   │
       │                   └── reaches last sample ──▶ ended ──play()──▶ playing (from 0)
       └──────────── stop() from any state

Each timer step advances the index by one sample. The step interval is the
recorded trip's mean sample spacing divided by the speed multiplier, floored
at :attr:`ReplayEngine.MIN_STEP_MS`.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from triptrack.geo.geodesy import convert_speed, speed_mps
from triptrack.geo.models import PositionSample
from triptrack.runtime.scheduler import ScheduleHandle, Scheduler, ThreadScheduler, wall_clock_ms

_logger = logging.getLogger(__name__)

ReplayStatus = Literal["stopped", "playing", "paused", "ended"]


@dataclass
class ReplayState:
    """Snapshot of a :class:`ReplayEngine`."""

    status: ReplayStatus
    current_index: int
    speed_multiplier: float
    progress_percent: float
    """0–100, derived from ``current_index``."""

    elapsed_ms: float
    """Time spent playing; paused time is excluded."""

    @property
    def playing(self) -> bool:
        return self.status == "playing"


class ReplayEngine:
    """Replays a finite, time-ordered sequence of :class:`PositionSample`.

    The sequence is never mutated. An empty sequence is valid: every
    operation becomes a no-op and queries return None / zero.

    Parameters
    ----------
    samples:
        Recorded fixes in time order.
    start_time_ms, end_time_ms:
        Real-world start/end of the recorded trip. Default to the first and
        last sample timestamps.
    speed_multiplier:
        Playback rate, clamped to [0.1, 5].
    clock:
        Returns the current time in ms; used for elapsed-time accounting.
    scheduler:
        Step timer; defaults to a :class:`ThreadScheduler`.
    skip_step:
        Number of samples moved by :meth:`skip_to_next` / :meth:`skip_to_previous`.
    """

    MIN_STEP_MS = 50.0
    MIN_MULTIPLIER = 0.1
    MAX_MULTIPLIER = 5.0

    def __init__(
        self,
        samples: Sequence[PositionSample],
        start_time_ms: float | None = None,
        end_time_ms: float | None = None,
        *,
        speed_multiplier: float = 1.0,
        clock: Callable[[], float] | None = None,
        scheduler: Scheduler | None = None,
        skip_step: int = 10,
    ) -> None:
        self._samples: tuple[PositionSample, ...] = tuple(samples)
        if start_time_ms is None:
            start_time_ms = self._samples[0].timestamp_ms if self._samples else 0.0
        if end_time_ms is None:
            end_time_ms = self._samples[-1].timestamp_ms if self._samples else start_time_ms
        self._duration_ms = max(0.0, end_time_ms - start_time_ms)

        self._clock = clock or wall_clock_ms
        self._scheduler = scheduler or ThreadScheduler(name="ReplayEngine")
        self._skip_step = skip_step
        self._multiplier = self._clamp_multiplier(speed_multiplier)

        self._lock = threading.RLock()
        self._handle: ScheduleHandle | None = None
        self._status: ReplayStatus = "stopped"
        self._index = 0
        self._accumulated_ms = 0.0
        self._play_started_ms: float | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def samples(self) -> tuple[PositionSample, ...]:
        return self._samples

    @property
    def status(self) -> ReplayStatus:
        return self._status

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def speed_multiplier(self) -> float:
        return self._multiplier

    @property
    def is_playing(self) -> bool:
        return self._status == "playing"

    @property
    def is_at_start(self) -> bool:
        return bool(self._samples) and self._index == 0

    @property
    def is_at_end(self) -> bool:
        return bool(self._samples) and self._index == len(self._samples) - 1

    @property
    def progress_percent(self) -> float:
        n = len(self._samples)
        if n <= 1:
            return 100.0 if self._status == "ended" else 0.0
        return self._index / (n - 1) * 100.0

    @property
    def elapsed_ms(self) -> float:
        """Time spent playing so far, excluding paused time."""
        with self._lock:
            running = 0.0
            if self._play_started_ms is not None:
                running = max(0.0, self._clock() - self._play_started_ms)
            return self._accumulated_ms + running

    @property
    def step_interval_ms(self) -> float:
        """Timer interval between index steps at the current multiplier."""
        n = len(self._samples)
        if n == 0:
            return self.MIN_STEP_MS
        return max(self.MIN_STEP_MS, (self._duration_ms / n) / self._multiplier)

    def get_current_location(self) -> PositionSample | None:
        if not self._samples:
            return None
        return self._samples[self._index]

    def get_total_duration(self) -> float:
        """Recorded trip duration in ms."""
        return self._duration_ms

    def get_remaining_time(self) -> float:
        return max(0.0, self._duration_ms - self.elapsed_ms)

    def current_speed(self, unit: str = "mps") -> float:
        """Speed into the current sample, derived from the previous one."""
        if self._index == 0 or len(self._samples) < 2:
            return 0.0
        prev, cur = self._samples[self._index - 1], self._samples[self._index]
        return convert_speed(speed_mps(prev, cur), unit)

    def get_state(self) -> ReplayState:
        with self._lock:
            return ReplayState(
                status=self._status,
                current_index=self._index,
                speed_multiplier=self._multiplier,
                progress_percent=self.progress_percent,
                elapsed_ms=self.elapsed_ms,
            )

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def play(self) -> None:
        """Start or resume playback; restarts from the beginning when at the end."""
        with self._lock:
            if not self._samples or self._status == "playing":
                return
            if self.is_at_end:
                self._index = 0
                self._accumulated_ms = 0.0
            if self.is_at_end:
                # Single-sample trip: nothing to advance through.
                self._status = "ended"
                return
            self._status = "playing"
            self._play_started_ms = self._clock()
            self._schedule()

    def resume(self) -> None:
        self.play()

    def pause(self) -> None:
        with self._lock:
            if self._status != "playing":
                return
            self._freeze_elapsed()
            self._cancel()
            self._status = "paused"

    def stop(self) -> None:
        """Cancel playback and rewind to the first sample. Idempotent."""
        with self._lock:
            self._cancel()
            self._status = "stopped"
            self._index = 0
            self._accumulated_ms = 0.0
            self._play_started_ms = None

    def set_speed_multiplier(self, multiplier: float) -> None:
        with self._lock:
            self._multiplier = self._clamp_multiplier(multiplier)
            if self._status == "playing":
                self._schedule()

    def seek_to(self, percent: float) -> None:
        """Jump to *percent* (0–100) of the sample range; play state is kept."""
        with self._lock:
            n = len(self._samples)
            if n == 0:
                return
            percent = max(0.0, min(100.0, percent))
            self._move_to(math.floor(percent / 100.0 * (n - 1)))

    def skip_to_next(self) -> None:
        with self._lock:
            if self._samples:
                self._move_to(self._index + self._skip_step)

    def skip_to_previous(self) -> None:
        with self._lock:
            if self._samples:
                self._move_to(self._index - self._skip_step)

    def step(self) -> None:
        """Advance one sample, exactly as a timer step does while playing."""
        with self._lock:
            if self._status != "playing":
                return
            self._index = min(self._index + 1, len(self._samples) - 1)
            if self.is_at_end:
                self._end()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _move_to(self, index: int) -> None:
        self._index = max(0, min(index, len(self._samples) - 1))
        if self._status == "ended" and not self.is_at_end:
            self._status = "paused"

    def _end(self) -> None:
        self._freeze_elapsed()
        self._cancel()
        self._status = "ended"
        _logger.info("Replay reached the last of %d samples", len(self._samples))

    def _freeze_elapsed(self) -> None:
        if self._play_started_ms is not None:
            self._accumulated_ms += max(0.0, self._clock() - self._play_started_ms)
            self._play_started_ms = None

    def _schedule(self) -> None:
        self._cancel()
        self._handle = self._scheduler.schedule_repeating(self.step_interval_ms, self._on_step)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_step(self) -> None:
        # step() ignores callbacks that fire after pause()/stop().
        self.step()

    def _clamp_multiplier(self, multiplier: float) -> float:
        return max(self.MIN_MULTIPLIER, min(self.MAX_MULTIPLIER, multiplier))
