"""Route motion simulation ("demo" mode).

Public API
----------
RouteSegment          - one leg of a route
RoadProfile           - per-road-type speed/acceleration constants
SimulationState       - snapshot of simulator state
RouteMotionSimulator  - time-stepped vehicle simulation along a route
RouteValidationError  - raised on unusable route geometry
repair_route          - fill in segments with missing geometry
validate_route        - reject segments that remain unusable
"""

from triptrack.simulation.models import (
    DEFAULT_ROAD_PROFILES,
    ROAD_TYPES,
    RoadProfile,
    RoadType,
    RouteSegment,
    SimulationState,
)
from triptrack.simulation.route import RouteValidationError, repair_route, validate_route
from triptrack.simulation.simulator import RouteMotionSimulator

__all__ = [
    "DEFAULT_ROAD_PROFILES",
    "ROAD_TYPES",
    "RoadProfile",
    "RoadType",
    "RouteMotionSimulator",
    "RouteSegment",
    "RouteValidationError",
    "SimulationState",
    "repair_route",
    "validate_route",
]
