"""Command-line interface for gpxlens.

Provides CLI commands for importing, listing, inspecting, merging and
querying GPX tracks stored in the local library.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click

from gpxlens import __version__
from gpxlens.config import DEFAULT_CONFIG_PATH, load_config
from gpxlens.errors import NotFoundError
from gpxlens.lib.colors import hsl_to_hex
from gpxlens.models.track import Bounds, SeriesMode, TrackFilter

if TYPE_CHECKING:
    from gpxlens.config import Config
    from gpxlens.services.library import TrackLibrary

SERIES_MODE_CHOICES = [m.value for m in SeriesMode]


class JSONOutput:
    """Helper for JSON output formatting."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._data: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        """Set a value in the output."""
        self._data[key] = value

    def update(self, data: dict[str, Any]) -> None:
        """Update with multiple values."""
        self._data.update(data)

    def output(self) -> None:
        """Print JSON output if enabled."""
        if self.enabled:
            click.echo(json.dumps(self._data, indent=2, default=str))


# Custom context class to hold shared state
class Context:
    """CLI context holding shared configuration and state."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: int = 0
        self.quiet: bool = False
        self.json_output: bool = False
        self.output: JSONOutput = JSONOutput()

    def log(self, message: str, level: int = 0) -> None:
        """Log a message if verbosity allows.

        Args:
            message: Message to log.
            level: Required verbosity level (0=normal, 1=-v, 2=-vv).
        """
        if self.json_output:
            return
        if self.quiet and level == 0:
            return
        if level <= self.verbose or level == 0:
            click.echo(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        if self.json_output:
            self.output.set("error", message)
            self.output.set("status", "error")
        else:
            click.echo(f"Error: {message}", err=True)

    def fail(self, message: str, exit_code: int = 1) -> NoReturn:
        """Report an error and exit."""
        self.error(message)
        if self.json_output:
            self.output.output()
        sys.exit(exit_code)

    def library(self) -> TrackLibrary:
        """Open the track library for the configured data directory."""
        from gpxlens.services.library import TrackLibrary

        if self.config is None:
            self.fail("Configuration not loaded")
        return TrackLibrary(self.config)

    def success(self, data: dict[str, Any]) -> None:
        """Emit a JSON success payload (no-op in text mode)."""
        if self.json_output:
            self.output.update({"status": "success", **data})
            self.output.output()


pass_context = click.make_pass_decorator(Context, ensure=True)


def _parse_bounds(_ctx: click.Context, _param: click.Parameter, value: str | None) -> Bounds | None:
    if value is None:
        return None
    try:
        return Bounds.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


mode_option = click.option(
    "--mode",
    "-m",
    type=click.Choice(SERIES_MODE_CHOICES, case_sensitive=False),
    default=None,
    help="Series mode (default: from config, usually elevation)",
)


def _resolve_mode(ctx: Context, mode: str | None) -> SeriesMode:
    if mode is not None:
        return SeriesMode.parse(mode)
    if ctx.config is not None:
        return ctx.config.display.series_mode
    return SeriesMode.ELEVATION


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help=f"Configuration file path (default: {DEFAULT_CONFIG_PATH})",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Data directory path (default: ./data)",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-error output",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output in JSON format",
)
@click.version_option(version=__version__, prog_name="gpxlens")
@pass_context
def main(
    ctx: Context,
    config_path: Path | None,
    data_dir: Path | None,
    verbose: int,
    quiet: bool,
    json_output: bool,
) -> None:
    """GPX track library and analytics CLI.

    Import GPX recordings, inspect distance and elevation, merge tracks
    chronologically, and query interpolated positions.
    """
    from gpxlens.lib.logging import setup_logging

    ctx.verbose = verbose
    ctx.quiet = quiet
    ctx.json_output = json_output
    ctx.output = JSONOutput(json_output)

    try:
        ctx.config = load_config(config_path)
    except ValueError as e:
        ctx.fail(f"Invalid configuration: {e}", exit_code=2)

    # Override data directory if specified
    if data_dir is not None:
        ctx.config.data.directory = data_dir

    console_level = logging.WARNING
    if verbose >= 2:
        console_level = logging.DEBUG
    elif verbose == 1:
        console_level = logging.INFO
    setup_logging(ctx.config, console_level=console_level, quiet=quiet or json_output)


@main.command(name="import")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(path_type=Path),
)
@pass_context
def import_cmd(ctx: Context, files: tuple[Path, ...]) -> None:
    """Import GPX files into the library.

    Files already in the library (same file name) are skipped. Files that
    fail to parse are reported and the remaining files are still imported.
    """
    library = ctx.library()

    try:
        result = library.import_files(
            files,
            log_callback=ctx.log if not ctx.json_output else None,
        )
    except Exception as e:
        ctx.fail(f"Import failed: {e}")

    if ctx.json_output:
        ctx.success(result)
    else:
        ctx.log(
            f"\nImported {result['imported']} track(s) "
            f"({result['skipped']} skipped, {result['failed']} failed)"
        )
        for error in result["errors"]:
            ctx.log(f"  {error['file']}: {error['error']}", 1)


@main.command(name="list")
@click.option("--keyword", "-k", default="", help="Case-insensitive name substring")
@click.option(
    "--after",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Only tracks starting on or after this date (YYYY-MM-DD)",
)
@click.option(
    "--before",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Only tracks starting on or before this date (YYYY-MM-DD, inclusive)",
)
@click.option(
    "--bounds",
    callback=_parse_bounds,
    help="Only tracks starting or ending inside SOUTH,WEST,NORTH,EAST",
)
@pass_context
def list_cmd(
    ctx: Context,
    keyword: str,
    after: Any | None,
    before: Any | None,
    bounds: Bounds | None,
) -> None:
    """List tracks, newest first."""
    from gpxlens.views.report import format_track_table

    library = ctx.library()
    track_filter = TrackFilter(
        keyword=keyword,
        start_date=after.date() if after else None,
        end_date=before.date() if before else None,
        use_bounds=bounds is not None,
        bounds=bounds,
    )

    try:
        tracks = library.list_tracks(track_filter)
    except Exception as e:
        ctx.fail(f"Listing failed: {e}")

    if ctx.json_output:
        ctx.success({"count": len(tracks), "tracks": [t.to_dict() for t in tracks]})
    else:
        ctx.log(format_track_table(tracks))


@main.command()
@click.argument("track_id")
@pass_context
def stats(ctx: Context, track_id: str) -> None:
    """Show distance and elevation statistics of a track."""
    from gpxlens.services.series import compute_stats
    from gpxlens.views.report import format_stats

    library = ctx.library()
    try:
        track = library.hydrate(track_id)
    except NotFoundError as e:
        ctx.fail(str(e), exit_code=2)

    result = compute_stats(track.points)
    if ctx.json_output:
        ctx.success({"track": track.metadata().to_dict(), "stats": result.to_dict()})
    else:
        ctx.log(format_stats(track, result, track.points))


@main.command()
@click.argument("track_ids", nargs=-1, required=True)
@mode_option
@click.option("--merge", "merge_flag", is_flag=True, help="Merge tracks into one series")
@pass_context
def series(ctx: Context, track_ids: tuple[str, ...], mode: str | None, merge_flag: bool) -> None:
    """Print the x/y series of one or more tracks as TSV.

    Several ids (or --merge) produce one chronologically merged series.
    """
    from gpxlens.services.series import compute_series
    from gpxlens.views.report import format_series_tsv, merged_xy

    library = ctx.library()
    series_mode = _resolve_mode(ctx, mode)

    try:
        if merge_flag or len(track_ids) > 1:
            result = library.merge(track_ids, series_mode)
            xs, ys = merged_xy(result.points)
        else:
            track = library.hydrate(track_ids[0])
            xs = [p.distance for p in track.points]
            ys = compute_series(track.points, series_mode)
    except NotFoundError as e:
        ctx.fail(str(e), exit_code=2)

    if ctx.json_output:
        ctx.success({"mode": series_mode.value, "x": xs, "y": ys})
    else:
        click.echo(format_series_tsv(xs, ys))


@main.command()
@click.argument("track_ids", nargs=-1, required=True)
@mode_option
@pass_context
def merge(ctx: Context, track_ids: tuple[str, ...], mode: str | None) -> None:
    """Merge tracks chronologically and show totals."""
    from gpxlens.views.report import format_merge_summary

    library = ctx.library()
    series_mode = _resolve_mode(ctx, mode)

    try:
        result = library.merge(track_ids, series_mode)
    except NotFoundError as e:
        ctx.fail(str(e), exit_code=2)

    if ctx.json_output:
        ctx.success({"mode": series_mode.value, **result.to_dict()})
    else:
        ctx.log(format_merge_summary(result))


@main.command()
@click.argument("track_ids", nargs=-1, required=True)
@click.option("--at", "at_km", type=float, required=True, help="Distance along the series (km)")
@mode_option
@pass_context
def query(ctx: Context, track_ids: tuple[str, ...], at_km: float, mode: str | None) -> None:
    """Interpolate position and value at a distance along a track.

    With several ids the distance is taken along their merged series.
    """
    from gpxlens.services.interpolate import interpolate_at
    from gpxlens.services.series import compute_series
    from gpxlens.views.report import format_interpolated

    library = ctx.library()
    series_mode = _resolve_mode(ctx, mode)

    try:
        if len(track_ids) > 1 or series_mode is not SeriesMode.ELEVATION:
            merged = library.merge(track_ids, series_mode)
            point = interpolate_at(merged.points, at_km)
        else:
            track = library.hydrate(track_ids[0])
            point = interpolate_at(track.points, at_km, color=track.color, label=track.name)
    except NotFoundError as e:
        ctx.fail(str(e), exit_code=2)

    if ctx.json_output:
        ctx.success({"mode": series_mode.value, "point": point.to_dict() if point else None})
    else:
        ctx.log(format_interpolated(point))
    if point is None:
        sys.exit(1)


@main.command()
@click.argument("track_id")
@click.option("--name", help="New display name")
@click.option("--color", help="New color (#rrggbb or hsl(h, s%, l%))")
@click.option("--reset-name", is_flag=True, help="Restore the name found in the file")
@pass_context
def edit(
    ctx: Context,
    track_id: str,
    name: str | None,
    color: str | None,
    reset_name: bool,
) -> None:
    """Edit a track's name or color."""
    library = ctx.library()

    try:
        if reset_name:
            library.reset_name(track_id)
        track = library.edit(track_id, name=name, color=color)
    except NotFoundError as e:
        ctx.fail(str(e), exit_code=2)
    except ValueError as e:
        ctx.fail(str(e), exit_code=2)

    # Colors written before validation may not be HSL
    try:
        color_hex = hsl_to_hex(track.color)
    except ValueError:
        color_hex = None

    if ctx.json_output:
        ctx.success({"track": track.to_dict(), "color_hex": color_hex})
    else:
        ctx.log(f"Updated {track.id}: {track.name} ({track.color}, {color_hex or '-'})")


@main.command()
@click.argument("track_ids", nargs=-1, required=True)
@pass_context
def delete(ctx: Context, track_ids: tuple[str, ...]) -> None:
    """Delete tracks from the library."""
    library = ctx.library()

    try:
        removed = library.delete(track_ids)
    except Exception as e:
        ctx.fail(f"Delete failed: {e}")

    if ctx.json_output:
        ctx.success({"deleted": removed})
    else:
        ctx.log(f"Deleted {removed} track(s)")


@main.command()
@click.option("--yes", is_flag=True, help="Confirm deleting every track")
@pass_context
def clear(ctx: Context, yes: bool) -> None:
    """Delete every track in the library."""
    if not yes:
        ctx.fail("Refusing to clear the library without --yes", exit_code=2)

    library = ctx.library()
    removed = library.clear()

    if ctx.json_output:
        ctx.success({"deleted": removed})
    else:
        ctx.log(f"Deleted {removed} track(s)")


@main.command()
@pass_context
def check(ctx: Context) -> None:
    """Check that stored tracks are complete and readable."""
    library = ctx.library()
    result = library.check()

    if ctx.json_output:
        ctx.success(result)
    else:
        for issue in result["issues"]:
            ctx.log(f"  [{issue['track_id']}] {issue['issue']}")
        ctx.log(f"Checked {result['tracks_checked']} track(s), {result['issues_found']} issue(s)")

    if result["issues_found"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
