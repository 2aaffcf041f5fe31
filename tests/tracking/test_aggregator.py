"""SpeedAggregator: bounded history and derived statistics."""

from __future__ import annotations

import math

import pytest

from triptrack.geo.geodesy import EARTH_RADIUS_M
from triptrack.geo.models import PositionSample
from triptrack.tracking.aggregator import SpeedAggregator


def fix(meters_north: float, t_ms: float, accuracy: float = 5.0) -> PositionSample:
    lat = 40.0 + math.degrees(meters_north / EARTH_RADIUS_M)
    return PositionSample(latitude=lat, longitude=-75.0, timestamp_ms=t_ms, accuracy_m=accuracy)


def drive(agg: SpeedAggregator, speeds_mps: list[float], dt_ms: float = 1_000.0) -> None:
    """Feed fixes so that consecutive pairs yield *speeds_mps*."""
    pos, t = 0.0, 0.0
    agg.add(fix(pos, t))
    for v in speeds_mps:
        pos += v * dt_ms / 1000.0
        t += dt_ms
        agg.add(fix(pos, t))


def test_empty_aggregator_reports_zero():
    agg = SpeedAggregator()
    summary = agg.summary("mph")
    assert (summary.current, summary.average, summary.max) == (0.0, 0.0, 0.0)


def test_first_fix_only_primes():
    agg = SpeedAggregator()
    assert agg.add(fix(0.0, 0.0)) is None
    assert agg.history() == []


def test_add_returns_speed_sample():
    agg = SpeedAggregator()
    agg.add(fix(0.0, 0.0))
    entry = agg.add(fix(50.0, 5_000.0, accuracy=7.5))
    assert entry.speed_mps == pytest.approx(10.0)
    assert entry.timestamp_ms == 5_000.0
    assert entry.accuracy_m == 7.5


def test_current_average_max():
    agg = SpeedAggregator()
    drive(agg, [10.0, 20.0, 30.0])
    assert agg.current_speed() == pytest.approx(30.0)
    assert agg.average_speed() == pytest.approx(20.0)
    assert agg.max_speed() == pytest.approx(30.0)


def test_units_applied_on_query():
    agg = SpeedAggregator()
    drive(agg, [10.0])
    summary = agg.summary("kmh")
    assert summary.unit == "kmh"
    assert summary.current == pytest.approx(36.0)


def test_capacity_drops_oldest():
    agg = SpeedAggregator()
    assert agg.capacity == 100
    drive(agg, [50.0] + [10.0] * 100)
    assert len(agg.history()) == 100
    assert agg.max_speed() == pytest.approx(10.0)


def test_small_capacity():
    agg = SpeedAggregator(capacity=2)
    drive(agg, [1.0, 2.0, 3.0])
    assert [round(s.speed_mps, 6) for s in agg.history()] == [2.0, 3.0]


def test_invalid_capacity():
    with pytest.raises(ValueError):
        SpeedAggregator(capacity=0)


def test_non_increasing_timestamps_give_zero_speed():
    agg = SpeedAggregator()
    agg.add(fix(0.0, 1_000.0))
    assert agg.add(fix(100.0, 1_000.0)).speed_mps == 0.0


def test_clear_resets_priming():
    agg = SpeedAggregator()
    drive(agg, [10.0, 20.0])
    agg.clear()
    assert agg.history() == []
    assert agg.add(fix(0.0, 99_000.0)) is None
