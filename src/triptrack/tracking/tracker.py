"""LiveTracker — routes raw position fixes to display, recording and sync consumers.

Both the real device feed and the route simulator push samples into
:meth:`LiveTracker.process`. Each purpose is throttled independently by a
:class:`~triptrack.tracking.governor.SampleRateGovernor`; samples admitted
for display also feed the :class:`~triptrack.tracking.aggregator.SpeedAggregator`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from triptrack.geo.models import PositionSample
from triptrack.tracking.aggregator import SpeedAggregator, SpeedSummary
from triptrack.tracking.governor import DISPLAY, PURPOSES, RECORDING, SYNC, SampleRateGovernor

_logger = logging.getLogger(__name__)

SampleListener = Callable[[PositionSample], None]


class LiveTracker:
    """Live speed display plus throttled recording and sync fan-out.

    Parameters
    ----------
    governor:
        Per-purpose throttle; a default 2000 ms governor when omitted.
    aggregator:
        Speed history; a default 100-entry aggregator when omitted.
    """

    def __init__(
        self,
        governor: SampleRateGovernor | None = None,
        aggregator: SpeedAggregator | None = None,
    ) -> None:
        self._governor = governor or SampleRateGovernor()
        self._aggregator = aggregator or SpeedAggregator()
        self._listeners: dict[str, list[SampleListener]] = {p: [] for p in PURPOSES}
        self._guard = threading.Lock()
        self._current: PositionSample | None = None
        self._last_recorded: PositionSample | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def governor(self) -> SampleRateGovernor:
        return self._governor

    @property
    def aggregator(self) -> SpeedAggregator:
        return self._aggregator

    @property
    def current_location(self) -> PositionSample | None:
        """Last sample admitted for display."""
        return self._current

    @property
    def last_recorded(self) -> PositionSample | None:
        return self._last_recorded

    def subscribe(self, purpose: str, listener: SampleListener) -> Callable[[], None]:
        """Call *listener* with each sample admitted for *purpose*.

        Returns an unsubscribe function.
        """
        if purpose not in self._listeners:
            raise ValueError(f"Unknown purpose {purpose!r}; expected one of {PURPOSES}")
        listeners = self._listeners[purpose]
        listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return _unsubscribe

    def subscribe_to_recording(self, listener: SampleListener) -> Callable[[], None]:
        """Like ``subscribe(RECORDING, ...)`` but immediately replays the last
        recorded sample, if any, so a late recorder does not miss the current fix.
        """
        unsubscribe = self.subscribe(RECORDING, listener)
        if self._last_recorded is not None:
            listener(self._last_recorded)
        return unsubscribe

    def process(self, sample: PositionSample, now_ms: float | None = None) -> set[str]:
        """Offer one raw fix to every purpose.

        A fix arriving while another is still being processed is ignored.

        Returns:
            The purposes that admitted the sample.
        """
        if not self._guard.acquire(blocking=False):
            _logger.debug("Ignored sample at %.0f: processing already in flight", sample.timestamp_ms)
            return set()
        try:
            accepted = self._governor.admitted(now_ms)
            if DISPLAY in accepted:
                self._aggregator.add(sample)
                self._current = sample
            if RECORDING in accepted:
                self._last_recorded = sample
            for purpose in PURPOSES:
                if purpose in accepted:
                    self._notify(purpose, sample)
            return accepted
        finally:
            self._guard.release()

    def speeds(self, unit: str = "mph") -> SpeedSummary:
        """Current / average / max speed in *unit*."""
        return self._aggregator.summary(unit)

    def clear_session(self) -> None:
        """Drop speed history, recording state and throttle timestamps."""
        self._aggregator.clear()
        self._governor.reset()
        self._current = None
        self._last_recorded = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _notify(self, purpose: str, sample: PositionSample) -> None:
        for listener in list(self._listeners[purpose]):
            if purpose != SYNC:
                listener(sample)
                continue
            # Outbound sync must never interrupt local tracking.
            try:
                listener(sample)
            except Exception as exc:
                _logger.warning("Sync listener failed: %s", exc)
