"""Data directory layout for gpxlens.

Each track lives in its own Hive-style partition::

    <data_dir>/
        trk=<track_id>/
            info.json        # metadata (name, time, color, start/end points)
            points.parquet   # cleaned point series
        logs/
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path

TRACK_PREFIX = "trk="
INFO_FILENAME = "info.json"
POINTS_FILENAME = "points.parquet"
LOGS_DIRNAME = "logs"

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_id_part(value: str) -> str:
    """Make a string safe for use inside a track id / directory name."""
    cleaned = _UNSAFE_ID_CHARS.sub("_", value).strip("._")
    return cleaned or "track"


def make_track_id(file_name: str, timestamp_ms: int) -> str:
    """Build a stable track id from import time and file name.

    Args:
        file_name: Original file name of the imported track.
        timestamp_ms: Import time in epoch milliseconds.

    Returns:
        Track id such as ``1718000000000-morning_ride.gpx``.
    """
    return f"{timestamp_ms}-{sanitize_id_part(file_name)}"


def get_track_dir(data_dir: Path, track_id: str) -> Path:
    """Get the partition directory of a track."""
    return data_dir / f"{TRACK_PREFIX}{track_id}"


def get_info_path(track_dir: Path) -> Path:
    """Get path to a track's info.json."""
    return track_dir / INFO_FILENAME


def get_points_path(track_dir: Path) -> Path:
    """Get path to a track's points.parquet."""
    return track_dir / POINTS_FILENAME


def get_logs_dir(data_dir: Path) -> Path:
    """Get the log directory inside the data directory."""
    return data_dir / LOGS_DIRNAME


def iter_track_dirs(data_dir: Path) -> Iterator[tuple[str, Path]]:
    """Iterate over track partitions.

    Args:
        data_dir: Base data directory.

    Yields:
        Tuples of (track_id, track_dir) in sorted directory order.
    """
    if not data_dir.exists():
        return

    for entry in sorted(data_dir.iterdir()):
        if entry.is_dir() and entry.name.startswith(TRACK_PREFIX):
            yield entry.name[len(TRACK_PREFIX) :], entry
