"""Cursor queries: linear interpolation along an ordered x/y series.

Works on raw track points (x = cumulative distance, y = elevation) and on
merged points (x/y offset-adjusted, position taken from the source point).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from gpxlens.models.track import Point
from gpxlens.services.merge import MergedPoint

SeriesPoint = Union[Point, MergedPoint]


@dataclass(frozen=True)
class InterpolatedPoint:
    """Position and value at an arbitrary x along a series.

    ``lat``/``lng`` are always real coordinates interpolated between the
    source points, never merge offsets. ``time`` is the source time of the
    segment's first point.
    """

    x: float
    y: float | None
    lat: float
    lng: float
    time: datetime | None
    color: str | None
    label: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "lat": self.lat,
            "lng": self.lng,
            "time": self.time.isoformat() if self.time else None,
            "color": self.color,
            "label": self.label,
        }


@dataclass(frozen=True)
class _Sample:
    x: float
    y: float | None
    lat: float
    lng: float
    time: datetime | None
    color: str | None
    label: str | None


def _as_sample(item: SeriesPoint, color: str | None, label: str | None) -> _Sample:
    if isinstance(item, MergedPoint):
        source = item.original_point
        return _Sample(item.x, item.y, source.lat, source.lng, source.time, item.color, item.source_label)
    return _Sample(item.distance, item.ele, item.lat, item.lng, item.time, color, label)


def _lerp(a: float, b: float, t: float) -> float:
    return a * (1 - t) + b * t


def interpolate_at(
    series: Sequence[SeriesPoint],
    target_x: float,
    color: str | None = None,
    label: str | None = None,
) -> InterpolatedPoint | None:
    """Interpolate the series at ``target_x``.

    The first consecutive pair with ``p1.x <= target_x <= p2.x`` is used.
    A zero-length pair yields ``p1`` (t = 0).

    Args:
        series: Ordered raw or merged points.
        target_x: Position along the x axis (km).
        color: Color reported for raw points (merged points carry their own).
        label: Label reported for raw points.

    Returns:
        InterpolatedPoint, or None when the series has fewer than two
        entries or ``target_x`` lies outside it.
    """
    if len(series) < 2:
        return None

    prev = _as_sample(series[0], color, label)
    for item in series[1:]:
        cur = _as_sample(item, color, label)
        if prev.x <= target_x <= cur.x:
            span = cur.x - prev.x
            t = (target_x - prev.x) / span if span != 0 else 0.0
            y = None
            if prev.y is not None and cur.y is not None:
                y = _lerp(prev.y, cur.y, t)
            return InterpolatedPoint(
                x=target_x,
                y=y,
                lat=_lerp(prev.lat, cur.lat, t),
                lng=_lerp(prev.lng, cur.lng, t),
                time=prev.time,
                color=prev.color,
                label=prev.label,
            )
        prev = cur

    return None


def interpolate_at_fraction(
    series: Sequence[SeriesPoint],
    fraction: float,
    color: str | None = None,
    label: str | None = None,
) -> InterpolatedPoint | None:
    """Interpolate at a relative position between the first and last x.

    Maps a pixel position along a chart (0.0 = left edge, 1.0 = right
    edge) onto the series' x range.
    """
    if len(series) < 2:
        return None
    first = _as_sample(series[0], color, label).x
    last = _as_sample(series[-1], color, label).x
    return interpolate_at(series, first + (last - first) * fraction, color=color, label=label)
