"""Chronological merging of several tracks into one series.

Tracks are concatenated oldest first. Each track's distance axis (and, for
delta/gain modes, its y axis) is shifted so it starts where the previous
track ended.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from gpxlens.models.track import HydratedTrack, Point, SeriesMode, as_utc
from gpxlens.services.series import compute_series, gain_series


@dataclass(frozen=True)
class MergedPoint:
    """One point of a merged series.

    ``x``/``y`` are offset-adjusted; ``original_point`` keeps the source
    sample with its real coordinates.
    """

    x: float
    y: float | None
    source_track_id: str
    source_label: str
    color: str
    original_point: Point

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "source_track_id": self.source_track_id,
            "source_label": self.source_label,
            "color": self.color,
            "original_point": self.original_point.to_dict(),
        }


@dataclass(frozen=True)
class MergeSegment:
    """Where one source track landed in the merged series."""

    track_id: str
    name: str
    start_x: float
    end_x: float
    gain: float
    point_count: int


@dataclass
class MergeResult:
    """Merged series plus mode-independent totals."""

    points: list[MergedPoint] = field(default_factory=list)
    total_gain: float = 0.0
    total_distance: float = 0.0
    segments: list[MergeSegment] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_gain_m": self.total_gain,
            "total_distance_km": self.total_distance,
            "point_count": len(self.points),
            "segments": [
                {
                    "track_id": s.track_id,
                    "name": s.name,
                    "start_x": s.start_x,
                    "end_x": s.end_x,
                    "gain_m": s.gain,
                    "point_count": s.point_count,
                }
                for s in self.segments
            ],
        }


def sort_chronologically(tracks: Iterable[HydratedTrack]) -> list[HydratedTrack]:
    """Sort tracks by start time ascending; tracks without time go last.

    The sort is stable, so untimed tracks keep their relative order.
    """
    return sorted(
        tracks,
        key=lambda t: (t.time is None, as_utc(t.time).timestamp() if t.time else 0.0),
    )


def merge_tracks(tracks: Iterable[HydratedTrack], mode: SeriesMode) -> MergeResult:
    """Concatenate tracks into one continuous series.

    Args:
        tracks: Hydrated tracks, in any order.
        mode: Series mode for the y values.

    Returns:
        MergeResult. ``total_gain`` sums each track's own gain regardless
        of mode; ``total_distance`` is the final x offset.
    """
    mode = SeriesMode.parse(mode)
    result = MergeResult()

    x_offset = 0.0
    y_offsets = {SeriesMode.DELTA: 0.0, SeriesMode.GAIN: 0.0}

    for track in sort_chronologically(tracks):
        points = track.points
        if not points:
            continue

        segment_series = compute_series(points, mode)
        y_offset = y_offsets.get(mode, 0.0)
        start_x = points[0].distance + x_offset

        for point, value in zip(points, segment_series):
            result.points.append(
                MergedPoint(
                    x=point.distance + x_offset,
                    y=value + y_offset if value is not None else None,
                    source_track_id=track.id,
                    source_label=track.name,
                    color=track.color,
                    original_point=point,
                )
            )

        last = result.points[-1]
        x_offset = last.x
        if mode in y_offsets:
            y_offsets[mode] = last.y if last.y is not None else 0.0

        segment_gain = gain_series(points)[-1]
        result.total_gain += segment_gain
        result.segments.append(
            MergeSegment(
                track_id=track.id,
                name=track.name,
                start_x=start_x,
                end_x=last.x,
                gain=segment_gain,
                point_count=len(points),
            )
        )

    result.total_distance = x_offset
    return result
