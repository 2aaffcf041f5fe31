"""Demo mode — drive a simulated vehicle along a route and show live speeds.

Press Ctrl+C to quit early.

Usage:
    uv run python scripts/demo_trip.py
    uv run python scripts/demo_trip.py --route route.json --multiplier 5
    uv run python scripts/demo_trip.py --record trip.json --seed 7
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time

from dotenv import load_dotenv

load_dotenv()

from triptrack.config import TrackerSettings  # noqa: E402
from triptrack.geo.formatting import format_duration, format_speed  # noqa: E402
from triptrack.geo.models import PositionSample  # noqa: E402
from triptrack.runtime.scheduler import ThreadScheduler  # noqa: E402
from triptrack.schemas import dump_recorded_trip, load_demo_trip  # noqa: E402
from triptrack.simulation import RouteMotionSimulator, RouteSegment, RouteValidationError  # noqa: E402
from triptrack.tracking import LiveTracker  # noqa: E402

_SAMPLE_START = (-96.7970, 32.7767)
_SAMPLE_END = (-96.7810, 32.7880)


def _sample_route() -> list[RouteSegment]:
    """A short downtown Dallas drive: parking lot → residential → arterial → highway."""
    return [
        RouteSegment([(-96.7970, 32.7767), (-96.7962, 32.7770)], 90.0, "parking"),
        RouteSegment([(-96.7962, 32.7770), (-96.7940, 32.7790), (-96.7925, 32.7795)], 420.0, "residential"),
        RouteSegment([(-96.7925, 32.7795), (-96.7870, 32.7830)], 640.0, "arterial"),
        RouteSegment([(-96.7870, 32.7830), (-96.7810, 32.7880)], 780.0, "highway"),
    ]


def main() -> None:
    ap = argparse.ArgumentParser(description="Trip tracker — simulated demo trip")
    ap.add_argument("--route", help="Demo trip JSON (startCoordinates, endCoordinates, route)")
    ap.add_argument("--multiplier", type=float, default=None, help="Simulation speed multiplier")
    ap.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs")
    ap.add_argument("--unit", choices=("mph", "kmh"), default="mph", help="Speed display unit")
    ap.add_argument("--record", help="Write recorded samples to this trip JSON file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = TrackerSettings.from_env()

    if args.route:
        plan = load_demo_trip(args.route)
        route, start, end = plan.to_domain(), plan.start_coordinates, plan.end_coordinates
        multiplier = plan.speed_multiplier
    else:
        route, start, end = _sample_route(), _SAMPLE_START, _SAMPLE_END
        multiplier = 1.0
    if args.multiplier is not None:
        multiplier = args.multiplier

    tracker = LiveTracker(settings.build_governor(), settings.build_aggregator())
    recorded: list[PositionSample] = []

    def _on_recorded(sample: PositionSample) -> None:
        recorded.append(sample)
        speeds = tracker.speeds(args.unit)
        print(
            f"  {sample.latitude:.6f}, {sample.longitude:.6f} | "
            f"now {format_speed(speeds.current, args.unit)} | "
            f"avg {format_speed(speeds.average, args.unit)} | "
            f"max {format_speed(speeds.max, args.unit)}",
            flush=True,
        )

    tracker.subscribe_to_recording(_on_recorded)

    try:
        simulator = RouteMotionSimulator(
            route,
            on_sample=lambda s: tracker.process(s, now_ms=s.timestamp_ms),
            speed_multiplier=multiplier,
            start=start,
            end=end,
            rng=random.Random(args.seed),
            scheduler=ThreadScheduler(name="DemoTrip"),
            emit_interval_ms=settings.emit_interval_ms,
            frame_hz=settings.frame_hz,
        )
    except RouteValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Demo trip: {len(route)} segment(s) at x{multiplier:g}. Press Ctrl+C to stop.", flush=True)
    started = time.monotonic()
    simulator.start()
    try:
        while not simulator.is_complete:
            time.sleep(0.25)
    except KeyboardInterrupt:
        pass
    finally:
        progress = simulator.get_progress_percent()
        simulator.stop()

    elapsed_ms = (time.monotonic() - started) * 1000.0
    print(f"\nStopped at {progress:.0f}% after {format_duration(elapsed_ms)}; {len(recorded)} sample(s) recorded.")

    if args.record and recorded:
        dump_recorded_trip(args.record, recorded, name="Demo trip")
        print(f"Recorded trip written to {args.record}")


if __name__ == "__main__":
    main()
