"""Shared pytest fixtures for gpxlens tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Sequence
from pathlib import Path

import pytest
from click.testing import CliRunner

from gpxlens.config import Config, DataConfig
from gpxlens.services.library import TrackLibrary

# (lat, lon, ele, time) rows; ele/time may be None
PointRow = tuple[float, float, float | None, str | None]
GpxFactory = Callable[..., str]


def build_gpx(
    rows: Sequence[PointRow],
    name: str | None = None,
    time: str | None = None,
    track_name: str | None = None,
) -> str:
    """Build a GPX 1.1 document from point rows."""
    metadata = ""
    if name is not None or time is not None:
        parts = []
        if name is not None:
            parts.append(f"<name>{name}</name>")
        if time is not None:
            parts.append(f"<time>{time}</time>")
        metadata = f"  <metadata>{''.join(parts)}</metadata>\n"

    trkpts = []
    for lat, lon, ele, ts in rows:
        children = ""
        if ele is not None:
            children += f"<ele>{ele}</ele>"
        if ts is not None:
            children += f"<time>{ts}</time>"
        trkpts.append(f'      <trkpt lat="{lat}" lon="{lon}">{children}</trkpt>')

    trk_name = f"    <name>{track_name}</name>\n" if track_name is not None else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gpx version="1.1" creator="gpxlens-tests" xmlns="http://www.topografix.com/GPX/1/1">\n'
        f"{metadata}"
        "  <trk>\n"
        f"{trk_name}"
        "    <trkseg>\n"
        + "\n".join(trkpts)
        + "\n    </trkseg>\n"
        "  </trk>\n"
        "</gpx>\n"
    )


def line_rows(
    count: int,
    start_lat: float = 46.0,
    lon: float = 7.0,
    step: float = 0.001,
    ele_start: float = 1000.0,
    ele_step: float = 10.0,
    start_time: str = "2024-05-01T08:00",
) -> list[PointRow]:
    """Rows along a meridian, ~111 m apart, climbing steadily."""
    return [
        (
            round(start_lat + i * step, 6),
            lon,
            ele_start + i * ele_step,
            f"{start_time}:{i:02d}Z",
        )
        for i in range(count)
    ]


@pytest.fixture
def gpx_factory() -> GpxFactory:
    """Factory building GPX documents from point rows."""
    return build_gpx


@pytest.fixture
def rows_factory() -> Callable[..., list[PointRow]]:
    """Factory building straight climbing point rows."""
    return line_rows


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory for a Config rooted in a temporary data directory."""

    def _make(max_selected: int = 20) -> Config:
        config = Config(data=DataConfig(directory=tmp_path / "data"))
        config.display.max_selected = max_selected
        return config

    return _make


@pytest.fixture
def library(make_config: Callable[..., Config]) -> TrackLibrary:
    """Empty track library in a temporary directory."""
    return TrackLibrary(make_config())


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def cli_data_dir(tmp_path: Path) -> Path:
    """Data directory holding three imported tracks.

    - "Alps Traverse" (2024-06-10), climbing
    - "Coastal Ride" (2024-05-01), flat
    - "Night Walk" (no timestamps)
    """
    data_dir = tmp_path / "cli-data"
    library = TrackLibrary(Config(data=DataConfig(directory=data_dir)))

    library.import_text(
        "alps.gpx",
        build_gpx(
            line_rows(5, start_lat=46.0, start_time="2024-06-10T07:00"),
            name="Alps Traverse",
            time="2024-06-10T07:00:00Z",
        ),
    )
    library.import_text(
        "coast.gpx",
        build_gpx(
            line_rows(4, start_lat=43.5, lon=-1.5, ele_start=5.0, ele_step=0.0),
            name="Coastal Ride",
            time="2024-05-01T08:00:00Z",
        ),
    )
    library.import_text(
        "night.gpx",
        build_gpx(
            [(50.0, 4.0, None, None), (50.001, 4.0, None, None), (50.002, 4.0, None, None)],
            track_name="Night Walk",
        ),
    )
    return data_dir


@pytest.fixture
def cli_env(tmp_path: Path, cli_data_dir: Path) -> dict[str, str]:
    """Environment pointing the CLI at the test data and no user config."""
    return {
        "GPXLENS_CONFIG": str(tmp_path / "missing-config.toml"),
        "GPXLENS_DATA_DIR": str(cli_data_dir),
    }


@pytest.fixture
def track_ids(cli_data_dir: Path) -> dict[str, str]:
    """Map of track name to id in the CLI data directory."""
    library = TrackLibrary(Config(data=DataConfig(directory=cli_data_dir)))
    return {t.name: t.id for t in library.list_tracks()}


@pytest.fixture(autouse=True)
def _reset_gpxlens_logging() -> Generator[None, None, None]:
    """Drop handlers installed by CLI runs so later tests do not log to closed streams."""
    yield
    for name in ("gpxlens", "gpxpy"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
