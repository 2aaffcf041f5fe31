"""Pydantic schemas for the JSON shapes exchanged with routing and trip storage.

Field names follow the web client's camelCase wire format (``roadType``,
``speedLimit``, ``startTime`` ...); snake_case names are accepted too. Each
payload converts to the core dataclasses via ``to_domain()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from triptrack.geo.geodesy import MPH_TO_MPS
from triptrack.geo.models import PositionSample
from triptrack.replay.engine import ReplayEngine
from triptrack.simulation.models import RoadType, RouteSegment
from triptrack.simulation.simulator import RouteMotionSimulator


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LocationPayload(_Payload):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float = Field(default=0.0, ge=0)
    timestamp: float
    """Epoch milliseconds."""

    altitude: float | None = None
    heading: float | None = None
    speed: float | None = None
    """m/s."""

    def to_domain(self) -> PositionSample:
        return PositionSample(
            latitude=self.latitude,
            longitude=self.longitude,
            timestamp_ms=self.timestamp,
            accuracy_m=self.accuracy,
            altitude_m=self.altitude,
            heading_deg=self.heading,
            speed_mps=self.speed,
        )

    @classmethod
    def from_domain(cls, sample: PositionSample) -> LocationPayload:
        return cls(
            latitude=sample.latitude,
            longitude=sample.longitude,
            accuracy=sample.accuracy_m,
            timestamp=sample.timestamp_ms,
            altitude=sample.altitude_m,
            heading=sample.heading_deg,
            speed=sample.speed_mps,
        )


class RouteSegmentPayload(_Payload):
    coordinates: list[tuple[float, float]] = Field(default_factory=list)
    """``[longitude, latitude]`` pairs; may be short or null, the simulator repairs it."""

    distance: float = Field(ge=0)
    """Metres."""

    duration: float | None = None
    road_type: RoadType = Field(default="residential", alias="roadType")
    speed_limit: float | None = Field(default=None, alias="speedLimit")
    """mph, as delivered by the routing service."""

    name: str | None = None
    instruction: str | None = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def _null_coordinates(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_domain(self) -> RouteSegment:
        return RouteSegment(
            coordinates=list(self.coordinates),
            distance_m=self.distance,
            road_type=self.road_type,
            speed_limit_mps=self.speed_limit * MPH_TO_MPS if self.speed_limit else None,
            duration_s=self.duration,
            name=self.name,
            instruction=self.instruction,
        )


class DemoTripPayload(_Payload):
    start_address: str = Field(default="", alias="startAddress")
    end_address: str = Field(default="", alias="endAddress")
    start_coordinates: tuple[float, float] | None = Field(default=None, alias="startCoordinates")
    end_coordinates: tuple[float, float] | None = Field(default=None, alias="endCoordinates")
    route: list[RouteSegmentPayload]
    total_distance: float | None = Field(default=None, alias="totalDistance")
    estimated_duration: float | None = Field(default=None, alias="estimatedDuration")
    speed_multiplier: float = Field(default=1.0, alias="speedMultiplier", gt=0)

    def to_domain(self) -> list[RouteSegment]:
        return [segment.to_domain() for segment in self.route]

    def build_simulator(self, **kwargs: Any) -> RouteMotionSimulator:
        """Create a simulator for this trip; *kwargs* go to the constructor."""
        return RouteMotionSimulator(
            self.to_domain(),
            speed_multiplier=self.speed_multiplier,
            start=self.start_coordinates,
            end=self.end_coordinates,
            **kwargs,
        )


class RecordedTripPayload(_Payload):
    id: str = ""
    name: str = ""
    start_time: float = Field(alias="startTime")
    end_time: float | None = Field(default=None, alias="endTime")
    route: list[LocationPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_time_order(self) -> RecordedTripPayload:
        stamps = [p.timestamp for p in self.route]
        if any(b < a for a, b in zip(stamps, stamps[1:])):
            raise ValueError("route timestamps must be non-decreasing")
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("endTime must not precede startTime")
        return self

    def to_domain(self) -> list[PositionSample]:
        return [p.to_domain() for p in self.route]

    def build_engine(self, **kwargs: Any) -> ReplayEngine:
        """Create a replay engine; a missing ``endTime`` falls back to the last fix."""
        samples = self.to_domain()
        end = self.end_time
        if end is None:
            end = samples[-1].timestamp_ms if samples else self.start_time
        return ReplayEngine(samples, self.start_time, end, **kwargs)


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def load_demo_trip(path: str | Path) -> DemoTripPayload:
    """Parse a demo trip (route plan) JSON file.

    Raises:
        pydantic.ValidationError: If the file content does not match the schema.
    """
    return DemoTripPayload.model_validate_json(Path(path).read_text(encoding="utf-8"))


def load_recorded_trip(path: str | Path) -> RecordedTripPayload:
    return RecordedTripPayload.model_validate_json(Path(path).read_text(encoding="utf-8"))


def dump_recorded_trip(
    path: str | Path,
    samples: list[PositionSample],
    start_time_ms: float | None = None,
    end_time_ms: float | None = None,
    name: str = "",
    trip_id: str = "",
) -> RecordedTripPayload:
    """Write *samples* as a recorded trip JSON file and return the payload."""
    if start_time_ms is None:
        start_time_ms = samples[0].timestamp_ms if samples else 0.0
    if end_time_ms is None and samples:
        end_time_ms = samples[-1].timestamp_ms
    payload = RecordedTripPayload(
        id=trip_id,
        name=name,
        start_time=start_time_ms,
        end_time=end_time_ms,
        route=[LocationPayload.from_domain(s) for s in samples],
    )
    Path(path).write_text(payload.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    return payload
