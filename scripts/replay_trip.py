"""Replay a recorded trip JSON file in the terminal.

Usage:
    uv run python scripts/replay_trip.py trip.json
    uv run python scripts/replay_trip.py trip.json --speed 4 --seek 50
"""

from __future__ import annotations

import argparse
import logging
import time

from dotenv import load_dotenv

load_dotenv()

from triptrack.config import TrackerSettings  # noqa: E402
from triptrack.geo.formatting import format_duration, format_speed  # noqa: E402
from triptrack.runtime.scheduler import ThreadScheduler  # noqa: E402
from triptrack.schemas import load_recorded_trip  # noqa: E402


def _seek_percent(value: str) -> float:
    """Start position for playback, in [0, 100).

    Seeking to 100 % would leave the engine at its last sample, from which
    ``play()`` rewinds to the beginning.
    """
    try:
        percent = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not 0.0 <= percent < 100.0:
        raise argparse.ArgumentTypeError(f"must be at least 0 and below 100, got {value}")
    return percent


def main() -> None:
    ap = argparse.ArgumentParser(description="Trip tracker — recorded trip replay")
    ap.add_argument("trip", help="Recorded trip JSON file")
    ap.add_argument("--speed", type=float, default=1.0, help="Playback speed multiplier (0.1-5)")
    ap.add_argument("--seek", type=_seek_percent, default=0.0, help="Start at this percentage of the trip (0-99.9)")
    ap.add_argument("--unit", choices=("mph", "kmh"), default="mph", help="Speed display unit")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = TrackerSettings.from_env()

    trip = load_recorded_trip(args.trip)
    engine = trip.build_engine(
        speed_multiplier=args.speed,
        scheduler=ThreadScheduler(name="Replay"),
        skip_step=settings.skip_step,
    )
    if not engine.samples:
        print("Trip has no recorded positions.")
        return

    print(
        f"Replaying {trip.name or trip.id or args.trip}: {len(engine.samples)} samples, "
        f"{format_duration(engine.get_total_duration())} recorded, step {engine.step_interval_ms:.0f} ms",
        flush=True,
    )
    engine.seek_to(args.seek)
    engine.play()
    last_index = -1
    try:
        while engine.is_playing:
            if engine.current_index != last_index:
                last_index = engine.current_index
                loc = engine.get_current_location()
                print(
                    f"  [{engine.progress_percent:5.1f}%] {loc.latitude:.6f}, {loc.longitude:.6f} | "
                    f"{format_speed(engine.current_speed(args.unit), args.unit)} | "
                    f"remaining {format_duration(engine.get_remaining_time())}",
                    flush=True,
                )
            time.sleep(0.02)
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()
    print("Replay finished.")


if __name__ == "__main__":
    main()
