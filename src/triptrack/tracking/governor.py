"""Sample-rate governor — per-purpose minimum intervals over one sample stream."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from triptrack.runtime.scheduler import wall_clock_ms

_logger = logging.getLogger(__name__)

DISPLAY = "display"
RECORDING = "recording"
SYNC = "sync"

PURPOSES: tuple[str, ...] = (DISPLAY, RECORDING, SYNC)

DEFAULT_INTERVAL_MS = 2000.0


@dataclass
class IntervalGate:
    """Admits at most one event per *interval_ms*; the first event always passes."""

    interval_ms: float
    _last_ms: float | None = field(default=None, init=False, repr=False)

    def can_pass(self, now_ms: float) -> bool:
        return self._last_ms is None or (now_ms - self._last_ms) >= self.interval_ms

    def mark_passed(self, now_ms: float) -> None:
        self._last_ms = now_ms

    @property
    def last_ms(self) -> float | None:
        return self._last_ms

    def reset(self) -> None:
        self._last_ms = None


class SampleRateGovernor:
    """Independent gates for UI display, trip recording and outbound sync.

    A sample rejected for one purpose is simply dropped for that purpose;
    nothing is queued or replayed later.

    Args:
        intervals: Minimum interval per purpose in ms; missing purposes use
            :data:`DEFAULT_INTERVAL_MS`.
        clock: Returns the current time in ms.
    """

    def __init__(
        self,
        intervals: Mapping[str, float] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        intervals = dict(intervals or {})
        unknown = set(intervals) - set(PURPOSES)
        if unknown:
            raise ValueError(f"Unknown purpose(s): {', '.join(sorted(unknown))}")
        self._clock = clock or wall_clock_ms
        self._gates: dict[str, IntervalGate] = {}
        for purpose in PURPOSES:
            self.set_interval(purpose, intervals.get(purpose, DEFAULT_INTERVAL_MS))

    def _gate(self, purpose: str) -> IntervalGate:
        try:
            return self._gates[purpose]
        except KeyError:
            raise ValueError(f"Unknown purpose {purpose!r}; expected one of {PURPOSES}") from None

    def admit(self, purpose: str, now_ms: float | None = None) -> bool:
        """Return True (and mark the gate) if *purpose* may take a sample now."""
        gate = self._gate(purpose)
        now = self._clock() if now_ms is None else now_ms
        if not gate.can_pass(now):
            _logger.debug("Dropped sample for %s (%.0f ms since last)", purpose, now - gate.last_ms)
            return False
        gate.mark_passed(now)
        return True

    def admitted(self, now_ms: float | None = None) -> set[str]:
        """Evaluate every purpose against the same instant; return those admitted."""
        now = self._clock() if now_ms is None else now_ms
        return {purpose for purpose in PURPOSES if self.admit(purpose, now)}

    def interval(self, purpose: str) -> float:
        return self._gate(purpose).interval_ms

    def set_interval(self, purpose: str, interval_ms: float) -> None:
        if purpose not in PURPOSES:
            raise ValueError(f"Unknown purpose {purpose!r}; expected one of {PURPOSES}")
        if interval_ms < 0:
            raise ValueError("interval_ms must be >= 0")
        gate = self._gates.get(purpose)
        if gate is None:
            self._gates[purpose] = IntervalGate(interval_ms)
        else:
            gate.interval_ms = interval_ms

    def reset(self) -> None:
        """Forget all last-admitted timestamps."""
        for gate in self._gates.values():
            gate.reset()
