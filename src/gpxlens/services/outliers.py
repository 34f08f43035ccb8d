"""GPS outlier rejection.

Two single passes over a raw point series:

1. Distance jumps: a point is dropped when it lies more than
   ``MAX_STEP_KM`` from its original predecessor.
2. Elevation spikes: on the distance-filtered series, an interior point is
   dropped when its elevation differs by more than ``ELEVATION_SPIKE_M``
   from both neighbors.

Neither pass is repeated to a fixed point.
"""

from __future__ import annotations

import logging
from typing import TypeVar

from gpxlens.lib.geo import haversine_distance
from gpxlens.models.track import Point

logger = logging.getLogger("gpxlens.outliers")

# Largest plausible distance between consecutive samples
MAX_STEP_KM = 1.0

# Elevation difference to both neighbors that marks a spike
ELEVATION_SPIKE_M = 100.0

P = TypeVar("P", bound=Point)


def _drop_distance_jumps(points: list[P]) -> list[P]:
    # Compares against the original predecessor, not the last kept point
    kept = [points[0]]
    for prev, point in zip(points, points[1:]):
        if haversine_distance(prev, point) <= MAX_STEP_KM:
            kept.append(point)
    return kept


def _is_elevation_spike(prev: Point, point: Point, nxt: Point) -> bool:
    if point.ele is None or prev.ele is None or nxt.ele is None:
        return False
    return (
        abs(point.ele - prev.ele) > ELEVATION_SPIKE_M
        and abs(point.ele - nxt.ele) > ELEVATION_SPIKE_M
    )


def _drop_elevation_spikes(points: list[P]) -> list[P]:
    if len(points) < 3:
        return list(points)

    kept = [points[0]]
    for i in range(1, len(points) - 1):
        point = points[i]
        if _is_elevation_spike(points[i - 1], point, points[i + 1]):
            logger.debug("Dropped elevation spike: %.1f m at (%f, %f)", point.ele, point.lat, point.lng)
            continue
        kept.append(point)
    kept.append(points[-1])
    return kept


def filter_points(points: list[P]) -> list[P]:
    """Remove points implying impossible motion or elevation noise.

    Args:
        points: Raw point series in recording order.

    Returns:
        Filtered series in the same order. Series with fewer than three
        points are returned unchanged.
    """
    if len(points) < 3:
        return points

    distance_filtered = _drop_distance_jumps(points)
    filtered = _drop_elevation_spikes(distance_filtered)

    removed = len(points) - len(filtered)
    if removed:
        logger.debug("Outlier filter removed %d of %d points", removed, len(points))
    return filtered
