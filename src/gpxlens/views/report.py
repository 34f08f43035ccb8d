"""Plain-text rendering of tracks, statistics and series."""

from __future__ import annotations

from collections.abc import Sequence

from gpxlens.models.track import Point, TrackMetadata
from gpxlens.services.interpolate import InterpolatedPoint
from gpxlens.services.merge import MergedPoint, MergeResult
from gpxlens.services.series import TrackStats


def _fmt_time(track: TrackMetadata) -> str:
    return track.time.strftime("%Y-%m-%d %H:%M") if track.time else "-"


def _fmt_ele(value: float | None) -> str:
    return f"{value:,.0f} m" if value is not None else "N/A"


def format_track_table(tracks: Sequence[TrackMetadata]) -> str:
    """Render track metadata as an aligned table."""
    if not tracks:
        return "No tracks found."

    id_width = max(len("ID"), *(len(t.id) for t in tracks))
    lines = [f"{'ID':<{id_width}}  {'Start':<16}  Name"]
    for track in tracks:
        lines.append(f"{track.id:<{id_width}}  {_fmt_time(track):<16}  {track.name}")
    lines.append("")
    lines.append(f"{len(tracks)} track(s)")
    return "\n".join(lines)


def format_stats(track: TrackMetadata, stats: TrackStats, points: Sequence[Point] = ()) -> str:
    """Render track statistics."""
    departure = points[0].time if points and points[0].time else None
    arrival = points[-1].time if points and points[-1].time else None
    lines = [
        track.name,
        "=" * len(track.name),
        f"Date:            {track.time.strftime('%Y-%m-%d') if track.time else 'N/A'}",
        f"Departure:       {departure.strftime('%H:%M') if departure else 'N/A'}",
        f"Arrival:         {arrival.strftime('%H:%M') if arrival else 'N/A'}",
        f"Total distance:  {stats.total_distance:.2f} km",
        f"Elevation gain:  {stats.elevation_gain:,.0f} m",
        f"Max elevation:   {_fmt_ele(stats.max_ele)}",
        f"Min elevation:   {_fmt_ele(stats.min_ele)}",
    ]
    return "\n".join(lines)


def format_merge_summary(result: MergeResult) -> str:
    """Render the totals and per-track segments of a merge."""
    lines = [
        f"Merged {len(result.segments)} track(s), {len(result.points)} points",
        f"Total distance:  {result.total_distance:.2f} km",
        f"Elevation gain:  {result.total_gain:,.0f} m",
        "",
    ]
    for segment in result.segments:
        lines.append(
            f"  {segment.start_x:8.2f} - {segment.end_x:8.2f} km  "
            f"+{segment.gain:,.0f} m  {segment.name}"
        )
    return "\n".join(lines)


def format_interpolated(point: InterpolatedPoint | None) -> str:
    """Render an interpolation query result."""
    if point is None:
        return "Position is outside the series."
    y = f"{point.y:.1f}" if point.y is not None else "N/A"
    lines = [
        f"Distance:  {point.x:.3f} km",
        f"Value:     {y}",
        f"Position:  {point.lat:.6f}, {point.lng:.6f}",
        f"Time:      {point.time.isoformat() if point.time else 'N/A'}",
    ]
    if point.label:
        lines.append(f"Track:     {point.label}")
    return "\n".join(lines)


def format_series_tsv(xs: Sequence[float], ys: Sequence[float | None]) -> str:
    """Render x/y pairs as tab-separated rows with a header."""
    rows = ["x_km\ty"]
    for x, y in zip(xs, ys):
        rows.append(f"{x:.5f}\t{'' if y is None else f'{y:.3f}'}")
    return "\n".join(rows)


def merged_xy(points: Sequence[MergedPoint]) -> tuple[list[float], list[float | None]]:
    """Split merged points into x and y columns."""
    return [p.x for p in points], [p.y for p in points]
