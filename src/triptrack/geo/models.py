"""Position data model shared by simulation, live tracking and replay."""

from __future__ import annotations

import math
from dataclasses import dataclass

LonLat = tuple[float, float]
"""A ``(longitude, latitude)`` pair in degrees, as used by route geometry."""


@dataclass
class PositionSample:
    """A single timestamped geographic fix.

    Produced by the route simulator and by real device feeds; consumed by the
    speed aggregator, the trip recorder and the replay engine.
    """

    latitude: float
    """Latitude in degrees [-90, 90]."""

    longitude: float
    """Longitude in degrees [-180, 180]."""

    timestamp_ms: float
    """Epoch milliseconds. Non-decreasing within one producer's sequence."""

    accuracy_m: float = 0.0
    """Estimated fix uncertainty in metres. Non-negative."""

    altitude_m: float | None = None
    heading_deg: float | None = None
    """Direction of travel [0, 360), 0 = north."""

    speed_mps: float | None = None
    """Speed reported by the producer in m/s, if any."""

    def is_valid(self) -> bool:
        """Return True if the coordinates are finite and inside their ranges."""
        if not all(math.isfinite(v) for v in (self.latitude, self.longitude, self.timestamp_ms)):
            return False
        if not -90.0 <= self.latitude <= 90.0:
            return False
        if not -180.0 <= self.longitude <= 180.0:
            return False
        return self.accuracy_m >= 0.0

    @property
    def lon_lat(self) -> LonLat:
        return (self.longitude, self.latitude)
