"""Wire schemas: camelCase parsing, unit conversion, file round trips."""

from __future__ import annotations

import json
import random

import pytest
from pydantic import ValidationError

from triptrack.geo.geodesy import MPH_TO_MPS
from triptrack.geo.models import PositionSample
from triptrack.runtime.scheduler import ManualScheduler
from triptrack.schemas import (
    DemoTripPayload,
    LocationPayload,
    RecordedTripPayload,
    RouteSegmentPayload,
    dump_recorded_trip,
    load_demo_trip,
    load_recorded_trip,
)

DEMO_TRIP = {
    "startAddress": "Main St & Elm St",
    "endAddress": "Deep Ellum",
    "startCoordinates": [-96.7970, 32.7767],
    "endCoordinates": [-96.7836, 32.7845],
    "route": [
        {"coordinates": [[-96.7970, 32.7767], [-96.7900, 32.7800]], "distance": 780, "roadType": "arterial", "speedLimit": 40},
        {"coordinates": [], "distance": 700, "roadType": "residential", "name": "Elm St"},
    ],
    "totalDistance": 1480,
    "estimatedDuration": 180,
    "speedMultiplier": 2,
}


def recorded(n: int = 3, spacing_ms: float = 1_000.0) -> dict:
    return {
        "id": "trip-1",
        "name": "Morning commute",
        "startTime": 1_000.0,
        "endTime": 1_000.0 + (n - 1) * spacing_ms,
        "route": [
            {"latitude": 32.0 + i * 1e-4, "longitude": -96.8, "accuracy": 5, "timestamp": 1_000.0 + i * spacing_ms}
            for i in range(n)
        ],
    }


class TestRouteSegmentPayload:
    def test_camel_case_and_mph_conversion(self):
        segment = RouteSegmentPayload.model_validate(DEMO_TRIP["route"][0]).to_domain()
        assert segment.road_type == "arterial"
        assert segment.distance_m == 780.0
        assert segment.speed_limit_mps == pytest.approx(40 * MPH_TO_MPS)
        assert segment.coordinates == [(-96.7970, 32.7767), (-96.7900, 32.7800)]

    def test_snake_case_accepted(self):
        payload = RouteSegmentPayload(distance=10.0, road_type="highway", speed_limit=None)
        assert payload.to_domain().road_type == "highway"
        assert payload.to_domain().speed_limit_mps is None

    def test_unknown_road_type_rejected(self):
        with pytest.raises(ValidationError):
            RouteSegmentPayload.model_validate({"distance": 10, "roadType": "dirt"})

    def test_negative_distance_rejected(self):
        with pytest.raises(ValidationError):
            RouteSegmentPayload.model_validate({"distance": -1})

    def test_null_coordinates_treated_as_missing(self):
        payload = RouteSegmentPayload.model_validate({"coordinates": None, "distance": 10})
        assert payload.to_domain().coordinates == []


class TestDemoTripPayload:
    def test_parses_route_plan(self):
        trip = DemoTripPayload.model_validate(DEMO_TRIP)
        assert trip.start_coordinates == (-96.7970, 32.7767)
        assert trip.speed_multiplier == 2.0
        assert [s.name for s in trip.to_domain()] == [None, "Elm St"]

    def test_build_simulator_starts_exactly_at_start(self):
        sched = ManualScheduler(start_ms=0.0)
        samples = []
        sim = DemoTripPayload.model_validate(DEMO_TRIP).build_simulator(
            on_sample=samples.append, rng=random.Random(3), clock=sched.now_ms, scheduler=sched
        )
        assert sim.get_state().speed_multiplier == 2.0
        # The empty second leg is repaired to finish at the requested end.
        assert sim.route[-1].coordinates[-1] == (-96.7836, 32.7845)
        sim.start()
        assert (samples[0].longitude, samples[0].latitude) == (-96.7970, 32.7767)

    def test_null_coordinates_leg_is_repaired(self):
        trip = {**DEMO_TRIP, "route": [DEMO_TRIP["route"][0], {**DEMO_TRIP["route"][1], "coordinates": None}]}
        sched = ManualScheduler(start_ms=0.0)
        sim = DemoTripPayload.model_validate(trip).build_simulator(
            rng=random.Random(3), clock=sched.now_ms, scheduler=sched
        )
        assert sim.route[1].coordinates == [(-96.79, 32.78), (-96.7836, 32.7845)]

    def test_non_positive_multiplier_rejected(self):
        with pytest.raises(ValidationError):
            DemoTripPayload.model_validate({**DEMO_TRIP, "speedMultiplier": 0})

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "demo.json"
        path.write_text(json.dumps(DEMO_TRIP), encoding="utf-8")
        assert len(load_demo_trip(path).route) == 2


class TestRecordedTripPayload:
    def test_parses_and_converts(self):
        trip = RecordedTripPayload.model_validate(recorded())
        samples = trip.to_domain()
        assert trip.start_time == 1_000.0
        assert [s.timestamp_ms for s in samples] == [1_000.0, 2_000.0, 3_000.0]
        assert all(isinstance(s, PositionSample) for s in samples)

    def test_out_of_order_timestamps_rejected(self):
        data = recorded()
        data["route"][2]["timestamp"] = 0.0
        with pytest.raises(ValidationError, match="non-decreasing"):
            RecordedTripPayload.model_validate(data)

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError, match="endTime"):
            RecordedTripPayload.model_validate({**recorded(), "endTime": 0.0})

    def test_latitude_range_enforced(self):
        data = recorded()
        data["route"][0]["latitude"] = 95.0
        with pytest.raises(ValidationError):
            RecordedTripPayload.model_validate(data)

    def test_build_engine_uses_trip_bounds(self):
        data = {**recorded(n=5, spacing_ms=10_000.0), "endTime": 41_000.0}
        sched = ManualScheduler()
        engine = RecordedTripPayload.model_validate(data).build_engine(
            speed_multiplier=2.0, clock=sched.now_ms, scheduler=sched
        )
        assert engine.get_total_duration() == 40_000.0
        assert engine.step_interval_ms == 4_000.0

    def test_build_engine_without_end_time(self):
        data = {**recorded(n=3), "endTime": None}
        engine = RecordedTripPayload.model_validate(data).build_engine(scheduler=ManualScheduler())
        assert engine.get_total_duration() == 2_000.0

    def test_empty_trip_builds_inert_engine(self):
        engine = RecordedTripPayload.model_validate({"startTime": 0}).build_engine(scheduler=ManualScheduler())
        assert engine.get_current_location() is None


class TestFileHelpers:
    def test_dump_then_load(self, tmp_path):
        samples = [
            PositionSample(32.0, -96.8, 1_000.0, accuracy_m=4.0, speed_mps=3.0),
            PositionSample(32.001, -96.8, 3_000.0, accuracy_m=6.0, heading_deg=0.0, speed_mps=5.5),
        ]
        path = tmp_path / "trip.json"
        dump_recorded_trip(path, samples, name="Test", trip_id="abc")

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["startTime"] == 1_000.0
        assert raw["endTime"] == 3_000.0

        trip = load_recorded_trip(path)
        assert trip.name == "Test"
        assert trip.to_domain() == samples

    def test_location_payload_from_domain(self):
        sample = PositionSample(10.0, 20.0, 5.0, accuracy_m=1.5, altitude_m=250.0)
        payload = LocationPayload.from_domain(sample)
        assert payload.altitude == 250.0
        assert payload.to_domain() == sample
