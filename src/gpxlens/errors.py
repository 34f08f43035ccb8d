"""Error types raised by gpxlens."""

from __future__ import annotations


class GpxLensError(Exception):
    """Base class for gpxlens errors."""


class ParseError(GpxLensError, ValueError):
    """Raised when a track file cannot be parsed.

    Covers malformed XML containers and track points with a missing or
    unparsable coordinate. Fatal for the single file only.
    """


class NotFoundError(GpxLensError, KeyError):
    """Raised when a track id is not present in the store."""

    def __init__(self, track_id: str) -> None:
        super().__init__(track_id)
        self.track_id = track_id

    def __str__(self) -> str:
        return f"Track not found: {self.track_id}"
