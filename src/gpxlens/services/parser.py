"""GPX track parsing.

Turns raw GPX text into a cleaned, distance-annotated point series.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

import gpxpy
import gpxpy.gpx

from gpxlens.errors import ParseError
from gpxlens.lib.geo import haversine_distance
from gpxlens.models.track import LatLng, Point
from gpxlens.services.outliers import filter_points

logger = logging.getLogger("gpxlens.parser")

DEFAULT_TRACK_NAME = "Untitled Track"


@dataclass
class ParsedTrack:
    """Result of parsing one GPX payload."""

    name: str
    original_name: str
    time: datetime | None
    points: list[Point] = field(default_factory=list)
    start_point: LatLng | None = None
    end_point: LatLng | None = None


def _load_gpx(raw_text: str) -> gpxpy.gpx.GPX:
    try:
        return gpxpy.parse(raw_text)
    except gpxpy.gpx.GPXXMLSyntaxException as e:
        raise ParseError(f"Not a well-formed GPX document: {e}") from e
    except (gpxpy.gpx.GPXException, ValueError) as e:
        raise ParseError(f"Malformed track point: {e}") from e


def _track_name(gpx: gpxpy.gpx.GPX) -> str:
    if gpx.name and gpx.name.strip():
        return gpx.name.strip()
    for track in gpx.tracks:
        if track.name and track.name.strip():
            return track.name.strip()
    return DEFAULT_TRACK_NAME


def _raw_points(gpx: gpxpy.gpx.GPX) -> list[Point]:
    points: list[Point] = []
    for track in gpx.tracks:
        for segment in track.segments:
            for trkpt in segment.points:
                if trkpt.latitude is None or trkpt.longitude is None:
                    raise ParseError("Malformed coordinate: track point without lat/lon")
                points.append(
                    Point(
                        lat=float(trkpt.latitude),
                        lng=float(trkpt.longitude),
                        ele=float(trkpt.elevation) if trkpt.elevation is not None else None,
                        time=trkpt.time,
                    )
                )
    return points


def _start_time(gpx: gpxpy.gpx.GPX, points: list[Point]) -> datetime | None:
    if gpx.time is not None:
        return gpx.time
    for point in points:
        if point.time is not None:
            return point.time
    return None


def with_cumulative_distance(points: list[Point]) -> list[Point]:
    """Recompute cumulative distance over a series from scratch.

    The first point gets 0; each following point adds the haversine
    distance to its predecessor in this same series.
    """
    result: list[Point] = []
    total = 0.0
    prev: Point | None = None
    for point in points:
        if prev is not None:
            total += haversine_distance(prev, point)
        result.append(replace(point, distance=total))
        prev = point
    return result


def parse_gpx(raw_text: str) -> ParsedTrack:
    """Parse GPX text into a cleaned track.

    Args:
        raw_text: GPX document content.

    Returns:
        ParsedTrack with outliers removed and distances recomputed.

    Raises:
        ParseError: If the document is not well-formed GPX or a track
            point has a missing or unparsable coordinate.
    """
    gpx = _load_gpx(raw_text)

    name = _track_name(gpx)
    raw = _raw_points(gpx)
    time = _start_time(gpx, raw)

    points = with_cumulative_distance(filter_points(raw))

    logger.debug("Parsed '%s': %d raw points, %d after filtering", name, len(raw), len(points))

    return ParsedTrack(
        name=name,
        original_name=name,
        time=time,
        points=points,
        start_point=LatLng(points[0].lat, points[0].lng) if points else None,
        end_point=LatLng(points[-1].lat, points[-1].lng) if points else None,
    )
