"""RouteMotionSimulator — drives a synthetic vehicle along a route ("demo" mode).

Internal state advances every frame for smooth motion; observers receive
discrete :class:`~triptrack.geo.models.PositionSample` values no more often
than ``emit_interval_ms``.
"""

from __future__ import annotations

import bisect
import dataclasses
import logging
import math
import random
import threading
from collections.abc import Callable

from triptrack.geo.geodesy import MPH_TO_MPS, bearing_deg, distance_m
from triptrack.geo.models import LonLat, PositionSample
from triptrack.runtime.scheduler import ScheduleHandle, Scheduler, ThreadScheduler, wall_clock_ms
from triptrack.simulation.models import (
    DEFAULT_ROAD_PROFILES,
    RoadProfile,
    RouteSegment,
    SimulationState,
)
from triptrack.simulation.route import RouteValidationError, repair_route, validate_route

_logger = logging.getLogger(__name__)

SampleListener = Callable[[PositionSample], None]


def _cumulative_fractions(coordinates: list[LonLat]) -> list[float]:
    """Fraction of the polyline's length reached at each vertex.

    Degenerate (zero-length) polylines fall back to evenly spaced vertices.
    """
    steps = [
        distance_m(a[1], a[0], b[1], b[0])
        for a, b in zip(coordinates, coordinates[1:])
    ]
    total = sum(steps)
    n = len(coordinates)
    if total <= 0:
        return [i / (n - 1) for i in range(n)]
    fractions = [0.0]
    run = 0.0
    for step in steps:
        run += step
        fractions.append(run / total)
    fractions[-1] = 1.0
    return fractions


class RouteMotionSimulator:
    """Simulates a vehicle travelling an ordered list of :class:`RouteSegment`.

    Speed converges on a per-road-type target with bounded acceleration and a
    hard per-road-type ceiling; position is interpolated along each segment's
    geometry by travelled distance.

    Parameters
    ----------
    route:
        Route legs in travel order. Segments with fewer than two coordinates
        are repaired (see :mod:`triptrack.simulation.route`).
    on_sample:
        Optional listener; more can be added with :meth:`subscribe`.
    speed_multiplier:
        Time-compression factor, clamped to [0.1, 10].
    start, end:
        Exact intended start/end ``(longitude, latitude)``. The first emitted
        sample equals *start* exactly when given.
    rng:
        Random source for target-speed jitter and cosmetic accuracy/altitude.
        Pass a seeded ``random.Random`` for reproducible runs.
    clock:
        Returns the current time in epoch milliseconds.
    scheduler:
        Frame scheduler; defaults to a :class:`ThreadScheduler`.
    profiles:
        Per-road-type overrides merged over :data:`DEFAULT_ROAD_PROFILES`.
    emit_interval_ms:
        Minimum time between samples delivered to listeners.
    frame_hz:
        Internal integration rate.

    Raises
    ------
    RouteValidationError
        If a segment still lacks usable geometry after repair.
    ValueError
        If a segment names a road type with no profile.
    """

    MIN_MULTIPLIER = 0.1
    MAX_MULTIPLIER = 10.0
    SNAP_THRESHOLD_MPS = 1.0
    MIN_TARGET_SPEED_MPS = 5 * MPH_TO_MPS

    def __init__(
        self,
        route: list[RouteSegment],
        on_sample: SampleListener | None = None,
        speed_multiplier: float = 1.0,
        start: LonLat | None = None,
        end: LonLat | None = None,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], float] | None = None,
        scheduler: Scheduler | None = None,
        profiles: dict[str, RoadProfile] | None = None,
        emit_interval_ms: float = 2000.0,
        frame_hz: float = 60.0,
    ) -> None:
        if frame_hz <= 0:
            raise ValueError("frame_hz must be > 0")
        self._start = tuple(start) if start is not None else None
        self._end = tuple(end) if end is not None else None
        self._profiles = {**DEFAULT_ROAD_PROFILES, **(profiles or {})}

        unknown = sorted({s.road_type for s in route if s.road_type not in self._profiles})
        if unknown:
            raise ValueError(f"No road profile for road type(s): {', '.join(unknown)}")

        self._route = repair_route(route, self._start, self._end)
        validate_route(self._route)
        self._fractions = [_cumulative_fractions(s.coordinates) for s in self._route]

        self._rng = rng if rng is not None else random.Random()
        self._clock = clock or wall_clock_ms
        self._scheduler = scheduler or ThreadScheduler(name="RouteSimulator")
        self._emit_interval_ms = emit_interval_ms
        self._frame_interval_ms = 1000.0 / frame_hz

        self._listeners: list[SampleListener] = []
        if on_sample is not None:
            self._listeners.append(on_sample)

        self._lock = threading.RLock()
        self._handle: ScheduleHandle | None = None
        self._last_sample: PositionSample | None = None
        self._last_emit_ms: float | None = None
        self._state = SimulationState(speed_multiplier=self._clamp_multiplier(speed_multiplier))
        self._reset()

        _logger.debug(
            "Simulator created: %d segments, multiplier %.1f, start=%s, end=%s",
            len(self._route),
            self._state.speed_multiplier,
            self._start,
            self._end,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def route(self) -> list[RouteSegment]:
        """The repaired route (a copy)."""
        return list(self._route)

    @property
    def is_active(self) -> bool:
        return self._state.active

    @property
    def is_paused(self) -> bool:
        return self._state.paused

    @property
    def is_complete(self) -> bool:
        return self._state.completed

    @property
    def last_sample(self) -> PositionSample | None:
        """The most recently emitted sample, if any."""
        return self._last_sample

    def subscribe(self, listener: SampleListener) -> Callable[[], None]:
        """Register *listener* for emitted samples; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def start(self) -> None:
        """Begin the simulation and emit the current position.

        A paused simulation is resumed; an active one is left alone.

        Raises:
            RouteValidationError: If the route has no segments.
        """
        with self._lock:
            if not self._route:
                raise RouteValidationError([], "No route available for simulation")
            st = self._state
            if st.active:
                self.resume()
                return
            if st.completed:
                self._reset()
            st.active = True
            st.paused = False
            st.last_tick_ms = self._clock()
            _logger.info(
                "Simulation started at segment %d (%.1f%%)",
                st.segment_index,
                self.get_progress_percent(),
            )
            self._schedule()
            # The current position goes out before any integration step.
            self._emit_locked(st.last_tick_ms)

    def pause(self) -> None:
        with self._lock:
            if not self._state.active or self._state.paused:
                return
            self._state.paused = True
            self._cancel()

    def resume(self) -> None:
        """Continue a paused simulation. No-op unless active and paused."""
        with self._lock:
            st = self._state
            if not st.active or not st.paused:
                return
            st.paused = False
            st.last_tick_ms = self._clock()
            self._schedule()

    def stop(self) -> None:
        """Cancel the frame loop and reset to the start of the route. Idempotent."""
        with self._lock:
            self._cancel()
            self._reset()

    def set_speed_multiplier(self, multiplier: float) -> None:
        with self._lock:
            self._state.speed_multiplier = self._clamp_multiplier(multiplier)

    def get_progress_percent(self) -> float:
        """Route progress by segment count, 0–100."""
        if not self._route:
            return 0.0
        st = self._state
        progress = (st.segment_index + st.position_in_segment) / len(self._route) * 100.0
        return min(100.0, progress)

    def get_state(self) -> SimulationState:
        """Snapshot copy of the simulation state."""
        return dataclasses.replace(self._state)

    def tick(self, now_ms: float | None = None) -> PositionSample | None:
        """Run one integration step; returns the emitted sample, if any.

        Called by the frame scheduler, but also usable directly by hosts that
        drive their own loop.
        """
        with self._lock:
            return self._tick_locked(self._clock() if now_ms is None else now_ms)

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def _schedule(self) -> None:
        self._cancel()
        self._handle = self._scheduler.schedule_repeating(self._frame_interval_ms, self._on_frame)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_frame(self) -> None:
        with self._lock:
            # A frame may still fire after stop()/pause() raced with the scheduler.
            if not self._state.active or self._state.paused:
                return
            self._tick_locked(self._clock())

    def _tick_locked(self, now: float) -> PositionSample | None:
        st = self._state
        if not st.active or st.paused:
            return None

        dt_s = max(0.0, (now - st.last_tick_ms) / 1000.0)
        st.last_tick_ms = now

        self._integrate_speed(dt_s, self._route[st.segment_index])
        self._advance(st.current_speed * st.speed_multiplier * dt_s)

        if st.segment_index >= len(self._route):
            self._finish()
            return None

        return self._emit_locked(now)

    def _emit_locked(self, now: float) -> PositionSample | None:
        if self._last_emit_ms is not None and now - self._last_emit_ms < self._emit_interval_ms:
            return None

        sample = self._build_sample(now)
        self._last_sample = sample
        self._last_emit_ms = now
        for listener in list(self._listeners):
            listener(sample)
        return sample

    # ------------------------------------------------------------------
    # Dynamics
    # ------------------------------------------------------------------

    def _integrate_speed(self, dt_s: float, segment: RouteSegment) -> None:
        st = self._state
        profile = self._profiles[segment.road_type]
        diff = st.target_speed - st.current_speed
        if abs(diff) < self.SNAP_THRESHOLD_MPS:
            st.current_speed = st.target_speed
        else:
            st.current_speed += math.copysign(min(abs(diff), profile.max_acceleration * dt_s), diff)
        st.current_speed = max(0.0, min(st.current_speed, profile.max_speed))

    def _advance(self, meters: float) -> None:
        """Move *meters* along the route, rolling over into later segments."""
        st = self._state
        while st.segment_index < len(self._route):
            segment = self._route[st.segment_index]
            if segment.distance_m <= 0:
                self._enter_segment(st.segment_index + 1)
                continue
            st.position_in_segment += meters / segment.distance_m
            if st.position_in_segment < 1.0:
                return
            meters = (st.position_in_segment - 1.0) * segment.distance_m
            st.position_in_segment = 0.0
            self._enter_segment(st.segment_index + 1)

    def _enter_segment(self, index: int) -> None:
        st = self._state
        st.segment_index = index
        if index < len(self._route):
            segment = self._route[index]
            st.target_speed = self._target_speed_for(segment)
            # Entering a slower road type caps the speed immediately.
            st.current_speed = min(st.current_speed, self._profiles[segment.road_type].max_speed)

    def _target_speed_for(self, segment: RouteSegment) -> float:
        profile = self._profiles[segment.road_type]
        base = segment.speed_limit_mps or profile.base_speed
        jitter = self._rng.uniform(-profile.jitter, profile.jitter)
        return max(self.MIN_TARGET_SPEED_MPS, base + jitter)

    def _finish(self) -> None:
        st = self._state
        st.active = False
        st.paused = False
        st.completed = True
        st.position_in_segment = 0.0
        self._cancel()
        _logger.info("Simulation complete after %d segments", len(self._route))

    def _reset(self) -> None:
        st = self._state
        st.active = False
        st.paused = False
        st.completed = False
        st.segment_index = 0
        st.position_in_segment = 0.0
        st.current_speed = 0.0
        st.target_speed = self._target_speed_for(self._route[0]) if self._route else 0.0
        st.last_tick_ms = self._clock()
        self._last_sample = None
        self._last_emit_ms = None

    def _clamp_multiplier(self, multiplier: float) -> float:
        return max(self.MIN_MULTIPLIER, min(self.MAX_MULTIPLIER, multiplier))

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------

    def _interpolate(self, segment_index: int, position: float) -> LonLat:
        coords = self._route[segment_index].coordinates
        fractions = self._fractions[segment_index]
        i = bisect.bisect_right(fractions, position) - 1
        i = max(0, min(i, len(coords) - 2))
        span = fractions[i + 1] - fractions[i]
        t = 0.0 if span < 1e-12 else (position - fractions[i]) / span
        (lon0, lat0), (lon1, lat1) = coords[i], coords[i + 1]
        return (lon0 + (lon1 - lon0) * t, lat0 + (lat1 - lat0) * t)

    def _build_sample(self, now: float) -> PositionSample:
        st = self._state
        if st.segment_index == 0 and st.position_in_segment == 0 and self._start is not None:
            lon, lat = self._start
        else:
            lon, lat = self._interpolate(st.segment_index, st.position_in_segment)

        heading = None
        prev = self._last_sample
        if prev is not None:
            if prev.lon_lat == (lon, lat):
                heading = prev.heading_deg
            else:
                heading = bearing_deg(prev.latitude, prev.longitude, lat, lon)

        return PositionSample(
            latitude=lat,
            longitude=lon,
            timestamp_ms=now,
            accuracy_m=self._rng.uniform(5.0, 10.0),
            altitude_m=200.0 + self._rng.uniform(0.0, 100.0),
            heading_deg=heading,
            speed_mps=st.current_speed,
        )
