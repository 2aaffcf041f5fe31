"""Human-readable formatting for speeds, distances and durations."""

from __future__ import annotations

_METRES_PER_MILE = 1609.34
_FEET_PER_METRE = 3.28084


def format_speed(speed: float, unit: str) -> str:
    """``12.345, "mph"`` → ``"12.3 mph"``."""
    return f"{speed:.1f} {unit}"


def format_distance(meters: float) -> str:
    """Feet below one mile, miles with two decimals above."""
    if meters < _METRES_PER_MILE:
        return f"{round(meters * _FEET_PER_METRE)}ft"
    return f"{meters / _METRES_PER_MILE:.2f}mi"


def format_duration(milliseconds: float) -> str:
    """Compact duration: ``"1h 5m"``, ``"4m 12s"`` or ``"9s"``."""
    seconds = int(milliseconds // 1000)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"
