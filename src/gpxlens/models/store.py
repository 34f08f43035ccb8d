"""Persisted track store.

Key-value storage keyed by track id. Metadata lives in ``info.json`` and
the point series in ``points.parquet`` inside each track partition, so
listing metadata never has to read point data.
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from gpxlens.lib.paths import (
    get_info_path,
    get_points_path,
    get_track_dir,
    iter_track_dirs,
)
from gpxlens.models.track import HydratedTrack, Point, TrackMetadata, as_utc

logger = logging.getLogger("gpxlens.store")

POINTS_SCHEMA = pa.schema(
    [
        ("lat", pa.float64()),
        ("lng", pa.float64()),
        ("ele", pa.float64()),
        ("time", pa.timestamp("us", tz="UTC")),
        ("distance", pa.float64()),
    ]
)

# Metadata fields that update() may change
UPDATABLE_FIELDS = frozenset({"name", "color", "time", "file_name", "original_name"})


def points_to_table(points: list[Point]) -> pa.Table:
    """Convert a point series to an Arrow table."""
    return pa.table(
        {
            "lat": [p.lat for p in points],
            "lng": [p.lng for p in points],
            "ele": [p.ele for p in points],
            "time": [as_utc(p.time) if p.time else None for p in points],
            "distance": [p.distance for p in points],
        },
        schema=POINTS_SCHEMA,
    )


def table_to_points(table: pa.Table) -> list[Point]:
    """Convert an Arrow table back to a point series."""
    return [
        Point(
            lat=row["lat"],
            lng=row["lng"],
            ele=row["ele"],
            time=row["time"],
            distance=row["distance"],
        )
        for row in table.to_pylist()
    ]


def save_points(track_dir: Path, points: list[Point]) -> Path:
    """Write a point series to points.parquet.

    Args:
        track_dir: Track partition directory.
        points: Points to write.

    Returns:
        Path to the written Parquet file.
    """
    points_path = get_points_path(track_dir)
    pq.write_table(points_to_table(points), points_path)
    return points_path


def load_points(track_dir: Path) -> list[Point] | None:
    """Read a point series from points.parquet.

    Returns:
        Points, or None if the file does not exist.
    """
    points_path = get_points_path(track_dir)
    if not points_path.exists():
        return None
    return table_to_points(pq.read_table(points_path))


def save_metadata(track_dir: Path, track: TrackMetadata) -> Path:
    """Write track metadata to info.json."""
    info_path = get_info_path(track_dir)
    with open(info_path, "w", encoding="utf-8") as f:
        json.dump(track.to_dict(), f, indent=2, ensure_ascii=False)
    return info_path


def load_metadata(track_dir: Path) -> TrackMetadata | None:
    """Read track metadata from info.json.

    Returns:
        TrackMetadata, or None if info.json does not exist.
    """
    info_path = get_info_path(track_dir)
    if not info_path.exists():
        return None

    with open(info_path, encoding="utf-8") as f:
        data = json.load(f)

    return TrackMetadata.from_dict(data)


class TrackStore:
    """Filesystem-backed track store.

    Records are always read and written whole; ``update`` merges fields
    into the stored metadata and rewrites it.
    """

    def __init__(self, data_dir: Path) -> None:
        """Initialize the store.

        Args:
            data_dir: Base data directory holding track partitions.
        """
        self.data_dir = data_dir

    def iter_ids(self) -> Iterator[str]:
        """Iterate over stored track ids."""
        for track_id, _track_dir in iter_track_dirs(self.data_dir):
            yield track_id

    def get_metadata(self) -> list[TrackMetadata]:
        """Load all tracks without their points.

        Returns:
            Metadata records in partition order.
        """
        tracks: list[TrackMetadata] = []
        for track_id, track_dir in iter_track_dirs(self.data_dir):
            metadata = load_metadata(track_dir)
            if metadata is None:
                logger.warning("Track partition %s has no info.json, skipping", track_id)
                continue
            tracks.append(metadata)
        return tracks

    def get_full(self, track_id: str) -> HydratedTrack | None:
        """Load one track including its points.

        Returns:
            Hydrated track, or None if the id is unknown.
        """
        track_dir = get_track_dir(self.data_dir, track_id)
        metadata = load_metadata(track_dir)
        if metadata is None:
            return None

        points = load_points(track_dir)
        if points is None:
            logger.warning("Track %s has no points.parquet, treating as empty", track_id)
            points = []

        logger.debug("Loaded track %s (%d points)", track_id, len(points))
        return metadata.hydrate(points)

    def put(self, track: HydratedTrack) -> Path:
        """Insert or replace a full track record.

        Points are written before metadata so a partition only becomes
        listable once its series is on disk.

        Returns:
            Track partition directory.
        """
        track_dir = get_track_dir(self.data_dir, track.id)
        track_dir.mkdir(parents=True, exist_ok=True)

        save_points(track_dir, track.points)
        save_metadata(track_dir, track.metadata())

        logger.debug("Stored track %s (%d points)", track.id, len(track.points))
        return track_dir

    def update(self, track_id: str, **changes: Any) -> bool:
        """Merge metadata fields into a stored track.

        Args:
            track_id: Track to update.
            **changes: Field values (name, color, time, file_name, original_name).

        Returns:
            True if the track existed and was updated.

        Raises:
            ValueError: If a field cannot be updated.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        track_dir = get_track_dir(self.data_dir, track_id)
        metadata = load_metadata(track_dir)
        if metadata is None:
            return False

        for key, value in changes.items():
            setattr(metadata, key, value)

        save_metadata(track_dir, metadata)
        logger.debug("Updated track %s: %s", track_id, ", ".join(sorted(changes)))
        return True

    def delete(self, track_ids: Iterable[str]) -> int:
        """Delete tracks by id.

        Unknown ids are ignored.

        Returns:
            Number of tracks removed.
        """
        removed = 0
        for track_id in track_ids:
            track_dir = get_track_dir(self.data_dir, track_id)
            if track_dir.exists():
                shutil.rmtree(track_dir)
                removed += 1
                logger.debug("Deleted track %s", track_id)
        return removed

    def clear(self) -> int:
        """Delete every stored track.

        Returns:
            Number of tracks removed.
        """
        return self.delete(list(self.iter_ids()))
