"""Track model.

A track is either metadata-only (``TrackMetadata``: the point series has
not been loaded) or hydrated (``HydratedTrack``: metadata plus the cleaned
point series). Both forms serialize to the JSON layout stored in info.json.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class SeriesMode(str, Enum):
    """Which derived vertical series is computed or merged."""

    ELEVATION = "elevation"
    DELTA = "delta"
    GAIN = "gain"

    @classmethod
    def parse(cls, value: str | SeriesMode) -> SeriesMode:
        """Parse a mode name (case-insensitive).

        Raises:
            ValueError: If the name is not a known mode.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown series mode {value!r} (expected one of: {choices})") from None


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class LatLng:
    """A bare geographic position."""

    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> LatLng | None:
        if not data:
            return None
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


@dataclass(frozen=True)
class Point:
    """One track sample.

    ``distance`` is the cumulative geodesic distance in kilometers from the
    first point of the owning track.
    """

    lat: float
    lng: float
    ele: float | None = None
    time: datetime | None = None
    distance: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "ele": self.ele,
            "time": self.time.isoformat() if self.time else None,
            "distance": self.distance,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Point:
        ele = data.get("ele")
        return cls(
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            ele=float(ele) if ele is not None else None,
            time=_parse_datetime(data.get("time")),
            distance=float(data.get("distance", 0.0)),
        )


@dataclass
class TrackMetadata:
    """Track record without its point series."""

    id: str
    file_name: str
    name: str
    original_name: str
    time: datetime | None = None
    color: str = ""
    start_point: LatLng | None = None
    end_point: LatLng | None = None

    @property
    def is_hydrated(self) -> bool:
        return False

    def hydrate(self, points: list[Point]) -> HydratedTrack:
        """Attach a point series, producing the full record."""
        values = {f.name: getattr(self, f.name) for f in fields(TrackMetadata)}
        return HydratedTrack(**values, points=list(points))

    def metadata(self) -> TrackMetadata:
        """Return the metadata-only form of this record."""
        values = {f.name: getattr(self, f.name) for f in fields(TrackMetadata)}
        return TrackMetadata(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to dictionary for JSON serialization.

        Returns:
            Dictionary representation (never includes points).
        """
        return {
            "id": self.id,
            "file_name": self.file_name,
            "name": self.name,
            "original_name": self.original_name,
            "time": self.time.isoformat() if self.time else None,
            "color": self.color,
            "start_point": self.start_point.to_dict() if self.start_point else None,
            "end_point": self.end_point.to_dict() if self.end_point else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackMetadata:
        """Create track metadata from a dictionary.

        Args:
            data: Dictionary with track metadata.

        Returns:
            TrackMetadata instance.
        """
        name = data.get("name") or "Untitled Track"
        return cls(
            id=data["id"],
            file_name=data.get("file_name", ""),
            name=name,
            original_name=data.get("original_name") or name,
            time=_parse_datetime(data.get("time")),
            color=data.get("color") or "",
            start_point=LatLng.from_dict(data.get("start_point")),
            end_point=LatLng.from_dict(data.get("end_point")),
        )


@dataclass
class HydratedTrack(TrackMetadata):
    """Track record with its cleaned point series loaded."""

    points: list[Point] = field(default_factory=list)

    @property
    def is_hydrated(self) -> bool:
        return True

    @property
    def total_distance(self) -> float:
        return self.points[-1].distance if self.points else 0.0


@dataclass(frozen=True)
class Bounds:
    """Geographic bounding box (degrees)."""

    south: float
    west: float
    north: float
    east: float

    def contains(self, point: LatLng | Point | None) -> bool:
        """Check whether a position lies in the box (edges inclusive)."""
        if point is None:
            return False
        return self.south <= point.lat <= self.north and self.west <= point.lng <= self.east

    @classmethod
    def parse(cls, value: str) -> Bounds:
        """Parse ``south,west,north,east``.

        Raises:
            ValueError: If the string does not hold four numbers.
        """
        parts = [p.strip() for p in value.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Bounds must be 'south,west,north,east', got {value!r}")
        south, west, north, east = (float(p) for p in parts)
        return cls(south=south, west=west, north=north, east=east)


@dataclass(frozen=True)
class TrackFilter:
    """Attribute filter over track metadata."""

    keyword: str = ""
    start_date: date | None = None
    end_date: date | None = None
    use_bounds: bool = False
    bounds: Bounds | None = None

    @property
    def is_active(self) -> bool:
        """True when at least one predicate would restrict the result."""
        return bool(self.keyword or self.start_date or self.end_date or self.use_bounds)
