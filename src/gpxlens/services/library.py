"""Track library service for gpxlens.

Handles importing GPX files into the store, listing and filtering tracks,
loading point series on demand, editing, deleting and merging. Interaction
state (focused track, selection) is owned by the caller and passed in as a
``WorkingSet``.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gpxlens.config import DEFAULT_MAX_SELECTED, Config, ensure_data_dir
from gpxlens.errors import NotFoundError, ParseError
from gpxlens.lib.colors import next_color, to_hsl
from gpxlens.lib.paths import (
    get_info_path,
    get_points_path,
    get_track_dir,
    iter_track_dirs,
    make_track_id,
)
from gpxlens.models.store import TrackStore, load_metadata, load_points
from gpxlens.models.track import HydratedTrack, SeriesMode, TrackFilter, TrackMetadata
from gpxlens.services.filter import filter_tracks, sort_newest_first
from gpxlens.services.merge import MergeResult, merge_tracks
from gpxlens.services.parser import parse_gpx

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger("gpxlens.library")

# Upper bound on concurrent store reads when hydrating many tracks
MAX_LOAD_WORKERS = 8


@dataclass
class WorkingSet:
    """Caller-owned interaction state: focused track and selection."""

    focused_id: str | None = None
    selected_ids: list[str] = field(default_factory=list)

    def discard(self, track_ids: Iterable[str]) -> None:
        """Forget the given ids (after deletion)."""
        removed = set(track_ids)
        if self.focused_id in removed:
            self.focused_id = None
        self.selected_ids = [i for i in self.selected_ids if i not in removed]

    def reset(self) -> None:
        """Clear focus and selection."""
        self.focused_id = None
        self.selected_ids = []


class TrackLibrary:
    """Service for managing the local track library."""

    def __init__(self, config: Config, store: TrackStore | None = None) -> None:
        """Initialize the library.

        Args:
            config: Application configuration.
            store: Store to use (defaults to the data directory store).
        """
        self.config = config
        self.data_dir = ensure_data_dir(config)
        self.store = store or TrackStore(self.data_dir)

    @property
    def max_selected(self) -> int:
        return self.config.display.max_selected or DEFAULT_MAX_SELECTED

    def import_text(self, file_name: str, raw_text: str, color: str | None = None) -> HydratedTrack:
        """Parse GPX text and store it as a new track.

        Args:
            file_name: Original file name.
            raw_text: GPX content.
            color: Display color (generated when omitted).

        Returns:
            Stored track.

        Raises:
            ParseError: If the content is not valid GPX.
        """
        parsed = parse_gpx(raw_text)
        track = HydratedTrack(
            id=make_track_id(file_name, time.time_ns() // 1_000_000),
            file_name=file_name,
            name=parsed.name,
            original_name=parsed.original_name,
            time=parsed.time,
            color=color or next_color(),
            start_point=parsed.start_point,
            end_point=parsed.end_point,
            points=parsed.points,
        )
        self.store.put(track)
        logger.info("Imported %s as %s (%d points)", file_name, track.id, len(track.points))
        return track

    def import_files(
        self,
        paths: Iterable[Path],
        log_callback: Callable[[str, int], None] | None = None,
    ) -> dict[str, Any]:
        """Import GPX files into the library.

        Files whose name is already in the library are skipped. A file
        that cannot be read or parsed is recorded as failed and the batch
        continues.

        Args:
            paths: GPX files to import.
            log_callback: Optional callback for progress messages.

        Returns:
            Dictionary with import results.
        """
        log = log_callback or (lambda _msg, _lvl: None)

        known_names = {t.file_name for t in self.store.get_metadata()}
        track_ids: list[str] = []
        skipped = 0
        errors: list[dict[str, Any]] = []

        for path in paths:
            file_name = path.name
            if file_name in known_names:
                logger.info("Skipping %s: already imported", file_name)
                log(f"  Skipped {file_name} (already imported)", 1)
                skipped += 1
                continue

            try:
                raw_text = path.read_text(encoding="utf-8")
                track = self.import_text(file_name, raw_text)
            except (OSError, UnicodeDecodeError, ParseError) as e:
                logger.warning("Failed to import %s: %s", path, e)
                log(f"  Failed {file_name}: {e}", 0)
                errors.append({"file": str(path), "error": str(e)})
                continue

            known_names.add(file_name)
            track_ids.append(track.id)
            log(f"  Imported {file_name} -> {track.name} ({len(track.points)} points)", 1)

        return {
            "imported": len(track_ids),
            "skipped": skipped,
            "failed": len(errors),
            "track_ids": track_ids,
            "errors": errors,
        }

    def list_tracks(self, track_filter: TrackFilter | None = None) -> list[TrackMetadata]:
        """List track metadata, newest first.

        Tracks stored without a color get one assigned and persisted.

        Args:
            track_filter: Optional filter; inactive filters are ignored.

        Returns:
            Metadata records.
        """
        tracks = self.store.get_metadata()
        for track in tracks:
            if not track.color:
                track.color = next_color()
                self.store.update(track.id, color=track.color)

        tracks = sort_newest_first(tracks)
        if track_filter is not None and track_filter.is_active:
            tracks = filter_tracks(tracks, track_filter)
        return tracks

    def hydrate(self, track_id: str) -> HydratedTrack:
        """Load a track with its points.

        Raises:
            NotFoundError: If the id is unknown.
        """
        track = self.store.get_full(track_id)
        if track is None:
            raise NotFoundError(track_id)
        return track

    def hydrate_many(self, track_ids: Iterable[str]) -> list[HydratedTrack]:
        """Load several tracks concurrently.

        Returns:
            Hydrated tracks in the order of ``track_ids``.

        Raises:
            NotFoundError: If any id is unknown.
        """
        ids = list(track_ids)
        if not ids:
            return []
        workers = min(MAX_LOAD_WORKERS, len(ids))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self.hydrate, ids))

    def edit(self, track_id: str, name: str | None = None, color: str | None = None) -> TrackMetadata:
        """Change a track's display name and/or color.

        Hex colors (``#rrggbb``) are stored in HSL form.

        Raises:
            NotFoundError: If the id is unknown.
            ValueError: If the color cannot be parsed.
        """
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if color is not None:
            changes["color"] = to_hsl(color)

        if changes and not self.store.update(track_id, **changes):
            raise NotFoundError(track_id)
        return self._metadata(track_id)

    def reset_name(self, track_id: str) -> TrackMetadata:
        """Restore a track's name to the name found in its file."""
        metadata = self._metadata(track_id)
        self.store.update(track_id, name=metadata.original_name)
        return self._metadata(track_id)

    def delete(self, track_ids: Iterable[str], working_set: WorkingSet | None = None) -> int:
        """Delete tracks and drop them from the working set.

        Returns:
            Number of tracks removed.
        """
        ids = list(track_ids)
        removed = self.store.delete(ids)
        if working_set is not None:
            working_set.discard(ids)
        logger.info("Deleted %d tracks", removed)
        return removed

    def clear(self, working_set: WorkingSet | None = None) -> int:
        """Delete every track."""
        removed = self.store.clear()
        if working_set is not None:
            working_set.reset()
        logger.info("Cleared library (%d tracks)", removed)
        return removed

    def apply_filter(self, track_filter: TrackFilter, working_set: WorkingSet) -> list[TrackMetadata]:
        """Filter the library and select the first matches.

        An inactive filter leaves the working set untouched. Otherwise the
        selection becomes the first ``max_selected`` matching tracks.

        Returns:
            All matching tracks (newest first).
        """
        if not track_filter.is_active:
            return self.list_tracks()

        matches = self.list_tracks(track_filter)
        working_set.selected_ids = [t.id for t in matches[: self.max_selected]]
        logger.debug(
            "Filter matched %d tracks, selected %d", len(matches), len(working_set.selected_ids)
        )
        return matches

    def clear_filter(self, working_set: WorkingSet) -> list[TrackMetadata]:
        """Drop the filter: empty the selection and focus."""
        working_set.reset()
        return self.list_tracks()

    def merge(self, track_ids: Iterable[str], mode: SeriesMode) -> MergeResult:
        """Hydrate tracks concurrently and merge them chronologically."""
        tracks = self.hydrate_many(track_ids)
        return merge_tracks(tracks, mode)

    def check(self) -> dict[str, Any]:
        """Check that every track partition is complete and readable.

        Returns:
            Dictionary with the number of tracks checked and the issues found.
        """
        checked = 0
        issues: list[dict[str, str]] = []

        for track_id, track_dir in iter_track_dirs(self.data_dir):
            checked += 1

            if not get_info_path(track_dir).exists():
                issues.append({"track_id": track_id, "issue": "missing_info_json"})
            else:
                try:
                    load_metadata(track_dir)
                except (OSError, ValueError, KeyError) as e:
                    issues.append({"track_id": track_id, "issue": f"corrupted_info_json: {e}"})

            if not get_points_path(track_dir).exists():
                issues.append({"track_id": track_id, "issue": "missing_points"})
            else:
                try:
                    load_points(track_dir)
                except Exception as e:
                    issues.append({"track_id": track_id, "issue": f"corrupted_points: {e}"})

        logger.info("Checked %d tracks, %d issues", checked, len(issues))
        return {"tracks_checked": checked, "issues_found": len(issues), "issues": issues}

    def _metadata(self, track_id: str) -> TrackMetadata:
        metadata = load_metadata(get_track_dir(self.data_dir, track_id))
        if metadata is None:
            raise NotFoundError(track_id)
        return metadata


def longest_track(tracks: Iterable[HydratedTrack]) -> HydratedTrack | None:
    """Return the track with the largest total distance (first on ties)."""
    longest: HydratedTrack | None = None
    for track in tracks:
        if longest is None or track.total_distance > longest.total_distance:
            longest = track
    return longest
