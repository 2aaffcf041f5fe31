"""Geodesy kernel — great-circle distance, sample speed and unit conversion.

All functions are pure. Distances use the haversine formula on a spherical
Earth; speeds are stored in m/s everywhere and converted only for display.
"""

from __future__ import annotations

import math

from triptrack.geo.models import PositionSample

EARTH_RADIUS_M = 6_371_000.0

MPH_TO_MPS = 0.44704

_SPEED_FACTORS = {
    "mps": 1.0,
    "mph": 2.237,
    "kmh": 3.6,
}

SPEED_UNITS = frozenset(_SPEED_FACTORS)


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in metres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def speed_mps(a: PositionSample, b: PositionSample) -> float:
    """Average speed in m/s travelling from sample *a* to sample *b*.

    Returns 0.0 when the samples share a timestamp (or are out of order).
    """
    dt_s = (b.timestamp_ms - a.timestamp_ms) / 1000.0
    if dt_s <= 0:
        return 0.0
    return distance_m(a.latitude, a.longitude, b.latitude, b.longitude) / dt_s


def convert_speed(mps: float, unit: str) -> float:
    """Convert a speed in m/s to *unit* (``"mps"``, ``"mph"`` or ``"kmh"``).

    Raises:
        ValueError: If *unit* is not recognised.
    """
    try:
        return mps * _SPEED_FACTORS[unit]
    except KeyError:
        raise ValueError(f"Unknown speed unit {unit!r}; expected one of {sorted(SPEED_UNITS)}") from None


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing (forward azimuth) from point 1 to point 2 in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
