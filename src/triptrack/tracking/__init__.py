"""Live speed derivation and per-purpose sample throttling.

Public API
----------
SampleRateGovernor  - independent minimum intervals for display/recording/sync
SpeedAggregator     - bounded speed history with current/average/max
LiveTracker         - composes both behind a re-entrancy guard
"""

from triptrack.tracking.aggregator import SpeedAggregator, SpeedSample, SpeedSummary
from triptrack.tracking.governor import (
    DEFAULT_INTERVAL_MS,
    DISPLAY,
    PURPOSES,
    RECORDING,
    SYNC,
    IntervalGate,
    SampleRateGovernor,
)
from triptrack.tracking.tracker import LiveTracker

__all__ = [
    "DEFAULT_INTERVAL_MS",
    "DISPLAY",
    "PURPOSES",
    "RECORDING",
    "SYNC",
    "IntervalGate",
    "LiveTracker",
    "SampleRateGovernor",
    "SpeedAggregator",
    "SpeedSample",
    "SpeedSummary",
]
