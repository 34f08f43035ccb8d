"""Track metadata filtering and ordering."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from typing import TypeVar

from gpxlens.models.track import TrackFilter, TrackMetadata, as_utc

T = TypeVar("T", bound=TrackMetadata)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def matches_keyword(track: TrackMetadata, keyword: str) -> bool:
    """Case-insensitive substring match on the track name."""
    if not keyword:
        return True
    return keyword.casefold() in track.name.casefold()


def matches_date_range(track: TrackMetadata, start_date: date | None, end_date: date | None) -> bool:
    """Check the start time against ``[start_date, end_date + 1 day)``.

    Tracks without a start time fail as soon as either bound is set.
    """
    if start_date is None and end_date is None:
        return True
    if track.time is None:
        return False

    started = as_utc(track.time)
    if start_date is not None and started < _day_start(start_date):
        return False
    if end_date is not None and started >= _day_start(end_date) + timedelta(days=1):
        return False
    return True


def matches_bounds(track: TrackMetadata, track_filter: TrackFilter) -> bool:
    """Check whether the start or end point lies in the filter's box."""
    if not track_filter.use_bounds or track_filter.bounds is None:
        return True
    bounds = track_filter.bounds
    return bounds.contains(track.start_point) or bounds.contains(track.end_point)


def filter_tracks(tracks: Iterable[T], track_filter: TrackFilter) -> list[T]:
    """Return the tracks satisfying every active predicate, in input order.

    Args:
        tracks: Track metadata (or hydrated tracks).
        track_filter: Keyword, date range and bounding-box predicates.

    Returns:
        Matching tracks.
    """
    return [
        track
        for track in tracks
        if matches_keyword(track, track_filter.keyword)
        and matches_date_range(track, track_filter.start_date, track_filter.end_date)
        and matches_bounds(track, track_filter)
    ]


def sort_newest_first(tracks: Iterable[T]) -> list[T]:
    """Sort by start time descending; tracks without time go last."""
    items = list(tracks)
    timed = [t for t in items if t.time is not None]
    untimed = [t for t in items if t.time is None]
    timed.sort(key=lambda t: as_utc(t.time), reverse=True)
    return timed + untimed
