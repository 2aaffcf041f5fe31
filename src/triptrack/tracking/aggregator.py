"""SpeedAggregator — bounded speed history derived from consecutive fixes."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from triptrack.geo.geodesy import convert_speed, speed_mps
from triptrack.geo.models import PositionSample


@dataclass
class SpeedSample:
    """Speed between the previous accepted fix and :attr:`source`."""

    speed_mps: float
    timestamp_ms: float
    source: PositionSample

    @property
    def accuracy_m(self) -> float:
        return self.source.accuracy_m


@dataclass
class SpeedSummary:
    """Current / average / maximum speed in a single unit."""

    current: float
    average: float
    max: float
    unit: str


class SpeedAggregator:
    """Keeps the last *capacity* speed samples (drop-oldest).

    Speeds are stored in m/s and converted when queried.

    Args:
        capacity: Maximum number of :class:`SpeedSample` retained.
    """

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._history: deque[SpeedSample] = deque(maxlen=capacity)
        self._previous: PositionSample | None = None

    @property
    def capacity(self) -> int:
        return self._history.maxlen

    def add(self, sample: PositionSample) -> SpeedSample | None:
        """Feed the next accepted fix; returns the derived speed sample.

        The very first fix only primes the aggregator and returns None.
        """
        previous = self._previous
        self._previous = sample
        if previous is None:
            return None
        entry = SpeedSample(
            speed_mps=speed_mps(previous, sample),
            timestamp_ms=sample.timestamp_ms,
            source=sample,
        )
        self._history.append(entry)
        return entry

    def current_speed(self, unit: str = "mps") -> float:
        if not self._history:
            return 0.0
        return convert_speed(self._history[-1].speed_mps, unit)

    def average_speed(self, unit: str = "mps") -> float:
        if not self._history:
            return 0.0
        total = sum(s.speed_mps for s in self._history)
        return convert_speed(total / len(self._history), unit)

    def max_speed(self, unit: str = "mps") -> float:
        if not self._history:
            return 0.0
        return convert_speed(max(s.speed_mps for s in self._history), unit)

    def summary(self, unit: str = "mps") -> SpeedSummary:
        return SpeedSummary(
            current=self.current_speed(unit),
            average=self.average_speed(unit),
            max=self.max_speed(unit),
            unit=unit,
        )

    def history(self) -> list[SpeedSample]:
        """Copy of the retained samples, oldest first."""
        return list(self._history)

    def clear(self) -> None:
        self._history.clear()
        self._previous = None
