"""Geodesy kernel and the shared position model.

Public API
----------
PositionSample  - one timestamped geographic fix
distance_m      - haversine great-circle distance
speed_mps       - speed between two samples
convert_speed   - m/s → mph / km/h
bearing_deg     - forward azimuth between two points
"""

from triptrack.geo.formatting import format_distance, format_duration, format_speed
from triptrack.geo.geodesy import (
    EARTH_RADIUS_M,
    MPH_TO_MPS,
    SPEED_UNITS,
    bearing_deg,
    convert_speed,
    distance_m,
    speed_mps,
)
from triptrack.geo.models import LonLat, PositionSample

__all__ = [
    "EARTH_RADIUS_M",
    "MPH_TO_MPS",
    "SPEED_UNITS",
    "LonLat",
    "PositionSample",
    "bearing_deg",
    "convert_speed",
    "distance_m",
    "format_distance",
    "format_duration",
    "format_speed",
    "speed_mps",
]
