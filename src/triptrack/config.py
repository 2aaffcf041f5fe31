"""Tunable defaults, optionally overridden from ``TRIPTRACK_*`` environment variables.

The core components take every setting as a constructor argument; this module
only gathers them for entry points. Call ``dotenv.load_dotenv()`` before
:meth:`TrackerSettings.from_env` to pick up a project ``.env`` file.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from triptrack.tracking.aggregator import SpeedAggregator
from triptrack.tracking.governor import DISPLAY, RECORDING, SYNC, SampleRateGovernor

_PREFIX = "TRIPTRACK_"


@dataclass
class TrackerSettings:
    """Throttle, history and timing defaults."""

    display_interval_ms: float = 2000.0
    recording_interval_ms: float = 2000.0
    sync_interval_ms: float = 2000.0
    history_capacity: int = 100
    emit_interval_ms: float = 2000.0
    """Minimum time between simulator samples delivered to listeners."""

    frame_hz: float = 60.0
    skip_step: int = 10

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TrackerSettings:
        """Build settings from ``TRIPTRACK_<FIELD>`` variables, e.g.
        ``TRIPTRACK_RECORDING_INTERVAL_MS=5000``.

        Raises:
            ValueError: If a variable is present but not a number.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _get(name: str, cast: Callable[[str], float | int]):
            raw = env.get(_PREFIX + name.upper())
            if raw is None or raw.strip() == "":
                return getattr(defaults, name)
            try:
                return cast(raw)
            except ValueError:
                raise ValueError(f"{_PREFIX}{name.upper()} must be a number, got {raw!r}") from None

        return cls(
            display_interval_ms=_get("display_interval_ms", float),
            recording_interval_ms=_get("recording_interval_ms", float),
            sync_interval_ms=_get("sync_interval_ms", float),
            history_capacity=_get("history_capacity", int),
            emit_interval_ms=_get("emit_interval_ms", float),
            frame_hz=_get("frame_hz", float),
            skip_step=_get("skip_step", int),
        )

    def intervals(self) -> dict[str, float]:
        """Per-purpose intervals in the shape :class:`SampleRateGovernor` expects."""
        return {
            DISPLAY: self.display_interval_ms,
            RECORDING: self.recording_interval_ms,
            SYNC: self.sync_interval_ms,
        }

    def build_governor(self, clock: Callable[[], float] | None = None) -> SampleRateGovernor:
        return SampleRateGovernor(self.intervals(), clock=clock)

    def build_aggregator(self) -> SpeedAggregator:
        return SpeedAggregator(capacity=self.history_capacity)
