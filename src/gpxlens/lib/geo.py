"""Geodesic helpers."""

from __future__ import annotations

import math
from typing import Protocol

# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


class HasLatLng(Protocol):
    lat: float
    lng: float


def haversine_distance(a: HasLatLng, b: HasLatLng) -> float:
    """Great-circle distance between two points using the haversine formula.

    Args:
        a: First point (anything with ``lat``/``lng`` in degrees).
        b: Second point.

    Returns:
        Distance in kilometers.
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    h = min(1.0, h)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
