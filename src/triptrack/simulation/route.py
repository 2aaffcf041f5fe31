"""Route geometry repair and validation.

Routing collaborators occasionally hand over segments with fewer than two
coordinates. Such segments are repaired deterministically before simulation,
in travel order, so each repair can build on the ones before it:

1. First segment with a known start → ``[start, start + ε]``.
2. Last segment with a known end → ``[previous end, end]``.
3. Any other segment → continue from the previous (already repaired)
   segment's last coordinate.
4. First segment without a start → lead into the next segment's first
   coordinate, or fall back to :data:`DEFAULT_COORDINATE`.
"""

from __future__ import annotations

import dataclasses
import logging
import math

from triptrack.geo.models import LonLat
from triptrack.simulation.models import RouteSegment

_logger = logging.getLogger(__name__)

EPSILON_DEG = 0.001

DEFAULT_COORDINATE: LonLat = (-96.7970, 32.7767)
"""Last-resort anchor (Dallas, TX) when no geometry is known at all."""


class RouteValidationError(ValueError):
    """Raised when route segments lack usable geometry even after repair.

    Attributes:
        indices: Offending segment indices (empty for an empty route).
    """

    def __init__(self, indices: list[int], message: str | None = None) -> None:
        self.indices = list(indices)
        if message is None:
            joined = ", ".join(str(i) for i in self.indices)
            message = f"Route segments {joined} have insufficient coordinate data after repair"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _offset(coord: LonLat, delta: float = EPSILON_DEG) -> LonLat:
    return (coord[0] + delta, coord[1] + delta)


def _is_valid_coordinate(coord) -> bool:
    try:
        lon, lat = float(coord[0]), float(coord[1])
    except (TypeError, ValueError, IndexError):
        return False
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return False
    return -180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0


def _synthesize(
    index: int,
    segments: list[RouteSegment],
    repaired: list[RouteSegment],
    start: LonLat | None,
    end: LonLat | None,
) -> list[LonLat]:
    """Two-point geometry for *segments[index]*; *repaired* holds the legs before it."""
    prev_end = tuple(repaired[index - 1].coordinates[-1]) if index > 0 else None

    if index == 0 and start is not None:
        return [start, _offset(start)]
    if index == len(segments) - 1 and end is not None:
        if prev_end is not None:
            return [prev_end, end]
        return [_offset(end, -EPSILON_DEG), end]
    if prev_end is not None:
        return [prev_end, _offset(prev_end)]

    # First leg with no known start: lead into whatever the next leg supplies.
    next_coords = segments[1].coordinates if len(segments) > 1 else None
    if next_coords and _is_valid_coordinate(next_coords[0]):
        entry = tuple(next_coords[0])
        return [_offset(entry, -EPSILON_DEG), entry]
    return [DEFAULT_COORDINATE, _offset(DEFAULT_COORDINATE)]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def repair_route(
    segments: list[RouteSegment],
    start: LonLat | None = None,
    end: LonLat | None = None,
) -> list[RouteSegment]:
    """Return copies of *segments* where every segment has ≥2 coordinates.

    The input list and its segments are left untouched.

    Args:
        segments: Route legs in travel order.
        start: Exact intended start ``(longitude, latitude)``, if known.
        end: Exact intended end ``(longitude, latitude)``, if known.
    """
    repaired: list[RouteSegment] = []
    for index, segment in enumerate(segments):
        coords = [tuple(c) for c in (segment.coordinates or [])]
        if len(coords) < 2:
            coords = _synthesize(index, segments, repaired, start, end)
            _logger.warning(
                "Repaired segment %d (%s) with synthetic coordinates %s",
                index,
                segment.road_type,
                coords,
            )
        repaired.append(dataclasses.replace(segment, coordinates=coords))
    return repaired


def validate_route(segments: list[RouteSegment]) -> None:
    """Check every segment has ≥2 finite, in-range coordinates.

    Raises:
        RouteValidationError: Listing every offending segment index.
    """
    invalid = [
        index
        for index, segment in enumerate(segments)
        if len(segment.coordinates or []) < 2
        or not all(_is_valid_coordinate(c) for c in segment.coordinates)
    ]
    if invalid:
        raise RouteValidationError(invalid)
