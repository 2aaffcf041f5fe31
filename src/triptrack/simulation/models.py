"""Route and simulation data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from triptrack.geo.geodesy import MPH_TO_MPS
from triptrack.geo.models import LonLat

RoadType = Literal["highway", "arterial", "residential", "local", "parking"]

ROAD_TYPES: tuple[str, ...] = ("highway", "arterial", "residential", "local", "parking")


@dataclass
class RouteSegment:
    """One leg of a route, traversed by the simulator.

    ``coordinates`` are ``(longitude, latitude)`` pairs; the first is the
    leg's entry and the last its exit.
    """

    coordinates: list[LonLat]
    distance_m: float
    """Leg length, used to turn travelled metres into fractional progress."""

    road_type: RoadType = "residential"
    speed_limit_mps: float | None = None
    """Overrides the road type's base target speed when set."""

    duration_s: float | None = None
    name: str | None = None
    instruction: str | None = None


@dataclass(frozen=True)
class RoadProfile:
    """Speed behaviour for one road type. All values in m/s or m/s²."""

    base_speed: float
    jitter: float
    """Target speeds are drawn uniformly from ``base ± jitter``."""

    max_acceleration: float
    max_speed: float
    """Hard ceiling on the simulated speed for this road type."""

    @classmethod
    def from_mph(cls, base: float, jitter: float, accel: float, max_speed: float) -> RoadProfile:
        """Build a profile from mph / mph-per-second figures."""
        return cls(
            base_speed=base * MPH_TO_MPS,
            jitter=jitter * MPH_TO_MPS,
            max_acceleration=accel * MPH_TO_MPS,
            max_speed=max_speed * MPH_TO_MPS,
        )


DEFAULT_ROAD_PROFILES: dict[str, RoadProfile] = {
    "highway": RoadProfile.from_mph(base=65, jitter=5, accel=15, max_speed=75),
    "arterial": RoadProfile.from_mph(base=45, jitter=3, accel=10, max_speed=50),
    "residential": RoadProfile.from_mph(base=25, jitter=3, accel=8, max_speed=30),
    "local": RoadProfile.from_mph(base=30, jitter=3, accel=8, max_speed=35),
    "parking": RoadProfile.from_mph(base=5, jitter=1, accel=3, max_speed=10),
}


@dataclass
class SimulationState:
    """Mutable state of one :class:`~triptrack.simulation.simulator.RouteMotionSimulator`.

    Only the simulator's own tick and control methods write to it; callers get
    copies via ``get_state()``.
    """

    active: bool = False
    paused: bool = False
    completed: bool = False
    segment_index: int = 0
    position_in_segment: float = 0.0
    """Fractional progress through the current segment by distance, [0, 1)."""

    current_speed: float = 0.0
    target_speed: float = 0.0
    speed_multiplier: float = 1.0
    last_tick_ms: float = field(default=0.0)
