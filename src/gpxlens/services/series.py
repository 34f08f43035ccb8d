"""Elevation-derived series and track statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gpxlens.models.track import Point, SeriesMode


@dataclass(frozen=True)
class TrackStats:
    """Summary statistics of one track.

    ``max_ele``/``min_ele`` are None when the track has no elevation data,
    which is distinct from an elevation of 0.
    """

    total_distance: float
    elevation_gain: float
    max_ele: float | None
    min_ele: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_distance_km": self.total_distance,
            "elevation_gain_m": self.elevation_gain,
            "max_ele_m": self.max_ele,
            "min_ele_m": self.min_ele,
        }


def elevation_series(points: list[Point]) -> list[float | None]:
    """Raw elevations; missing values stay None."""
    return [p.ele for p in points]


def delta_series(points: list[Point]) -> list[float | None]:
    """Elevation relative to the first point (baseline 0 when it has none)."""
    if not points:
        return []
    baseline = points[0].ele if points[0].ele is not None else 0.0
    return [p.ele - baseline if p.ele is not None else None for p in points]


def gain_series(points: list[Point]) -> list[float]:
    """Running total of positive elevation changes.

    Steps touching a missing elevation contribute nothing.
    """
    gains: list[float] = []
    total = 0.0
    prev: Point | None = None
    for point in points:
        if prev is not None and prev.ele is not None and point.ele is not None:
            total += max(0.0, point.ele - prev.ele)
        gains.append(total)
        prev = point
    return gains


def compute_series(points: list[Point], mode: SeriesMode) -> list[float | None]:
    """Derive one y-value per point for the given mode.

    Args:
        points: Track points.
        mode: Which series to compute.

    Returns:
        Values in point order (same length as ``points``).
    """
    mode = SeriesMode.parse(mode)
    if mode is SeriesMode.DELTA:
        return delta_series(points)
    if mode is SeriesMode.GAIN:
        return list(gain_series(points))
    return elevation_series(points)


def compute_stats(points: list[Point]) -> TrackStats:
    """Summarize a track's distance and elevation."""
    elevations = [p.ele for p in points if p.ele is not None]
    gains = gain_series(points)
    return TrackStats(
        total_distance=points[-1].distance if points else 0.0,
        elevation_gain=gains[-1] if gains else 0.0,
        max_ele=max(elevations) if elevations else None,
        min_ele=min(elevations) if elevations else None,
    )
