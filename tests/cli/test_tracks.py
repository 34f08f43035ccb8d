"""CLI integration tests for track library commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gpxlens import __version__
from gpxlens.cli import main
from gpxlens.lib.paths import get_points_path, get_track_dir


def _json(result) -> dict:
    assert result.exit_code == 0, f"Command failed: {result.output}"
    try:
        return json.loads(result.output)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON output: {e}\nOutput: {result.output}")


class TestMain:
    """Tests for the top-level command group."""

    @pytest.mark.ai_generated
    def test_version(self, cli_runner) -> None:
        """Verify --version prints the package version."""
        result = cli_runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    @pytest.mark.ai_generated
    def test_invalid_config_exits_2(self, cli_runner, cli_env: dict[str, str], tmp_path: Path) -> None:
        """Verify a bad config file is a usage error."""
        config_path = tmp_path / "bad.toml"
        config_path.write_text("[display]\nmax_selected = 0\n")

        result = cli_runner.invoke(main, ["--config", str(config_path), "list"], env=cli_env)

        assert result.exit_code == 2
        assert "max_selected" in result.output


class TestImport:
    """Tests for gpxlens import."""

    @pytest.mark.ai_generated
    def test_import_reports_counts(
        self, cli_runner, cli_env: dict[str, str], tmp_path: Path, gpx_factory, rows_factory
    ) -> None:
        """Verify good files import and bad files are reported."""
        good = tmp_path / "hike.gpx"
        good.write_text(gpx_factory(rows_factory(3), name="Hike"))
        bad = tmp_path / "broken.gpx"
        bad.write_text("<gpx><trk><trkseg><trkpt lat='x' lon='1'/></trkseg></trk></gpx>")

        result = cli_runner.invoke(main, ["import", str(good), str(bad)], env=cli_env)

        assert result.exit_code == 0, f"Command failed: {result.output}"
        assert "Imported 1 track(s) (0 skipped, 1 failed)" in result.output

    @pytest.mark.ai_generated
    def test_import_json(
        self, cli_runner, cli_env: dict[str, str], tmp_path: Path, gpx_factory, rows_factory
    ) -> None:
        """Verify --json reports the import result."""
        path = tmp_path / "hike.gpx"
        path.write_text(gpx_factory(rows_factory(3), name="Hike"))

        data = _json(cli_runner.invoke(main, ["--json", "import", str(path)], env=cli_env))

        assert data["status"] == "success"
        assert data["imported"] == 1
        assert len(data["track_ids"]) == 1

    @pytest.mark.ai_generated
    def test_import_skips_existing(self, cli_runner, cli_env: dict[str, str], tmp_path: Path) -> None:
        """Verify files already in the library are skipped."""
        path = tmp_path / "alps.gpx"
        path.write_text("not even read")

        data = _json(cli_runner.invoke(main, ["--json", "import", str(path)], env=cli_env))

        assert data["imported"] == 0
        assert data["skipped"] == 1


class TestList:
    """Tests for gpxlens list."""

    @pytest.mark.ai_generated
    def test_list_table(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify the table shows every track."""
        result = cli_runner.invoke(main, ["list"], env=cli_env)

        assert result.exit_code == 0, f"Command failed: {result.output}"
        for name in ("Alps Traverse", "Coastal Ride", "Night Walk"):
            assert name in result.output
        assert "3 track(s)" in result.output

    @pytest.mark.ai_generated
    def test_list_json_newest_first(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify JSON listing order and fields."""
        data = _json(cli_runner.invoke(main, ["--json", "list"], env=cli_env))

        assert data["count"] == 3
        assert [t["name"] for t in data["tracks"]] == ["Alps Traverse", "Coastal Ride", "Night Walk"]
        assert all(t["color"].startswith("hsl(") for t in data["tracks"])
        assert data["tracks"][2]["time"] is None

    @pytest.mark.ai_generated
    def test_list_keyword(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify keyword filtering is case-insensitive."""
        data = _json(cli_runner.invoke(main, ["--json", "list", "--keyword", "alps"], env=cli_env))

        assert [t["name"] for t in data["tracks"]] == ["Alps Traverse"]

    @pytest.mark.ai_generated
    def test_list_dates(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify date bounds are inclusive and drop untimed tracks."""
        data = _json(
            cli_runner.invoke(
                main, ["--json", "list", "--after", "2024-05-01", "--before", "2024-05-01"], env=cli_env
            )
        )

        assert [t["name"] for t in data["tracks"]] == ["Coastal Ride"]

    @pytest.mark.ai_generated
    def test_list_bounds(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify bounding-box filtering."""
        data = _json(cli_runner.invoke(main, ["--json", "list", "--bounds", "43,-2,44,-1"], env=cli_env))

        assert [t["name"] for t in data["tracks"]] == ["Coastal Ride"]

    @pytest.mark.ai_generated
    def test_list_bad_bounds(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify malformed bounds are a usage error."""
        result = cli_runner.invoke(main, ["list", "--bounds", "1,2,3"], env=cli_env)

        assert result.exit_code == 2

    @pytest.mark.ai_generated
    def test_list_empty_library(self, cli_runner, tmp_path: Path) -> None:
        """Verify an empty library lists nothing."""
        env = {"GPXLENS_CONFIG": str(tmp_path / "none.toml"), "GPXLENS_DATA_DIR": str(tmp_path / "empty")}

        result = cli_runner.invoke(main, ["list"], env=env)

        assert result.exit_code == 0
        assert "No tracks found." in result.output


class TestStats:
    """Tests for gpxlens stats."""

    @pytest.mark.ai_generated
    def test_stats_text(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify statistics are printed."""
        result = cli_runner.invoke(main, ["stats", track_ids["Alps Traverse"]], env=cli_env)

        assert result.exit_code == 0, f"Command failed: {result.output}"
        assert "Elevation gain:  40 m" in result.output
        assert "Max elevation:   1,040 m" in result.output

    @pytest.mark.ai_generated
    def test_stats_json(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify JSON statistics."""
        data = _json(cli_runner.invoke(main, ["--json", "stats", track_ids["Alps Traverse"]], env=cli_env))

        stats = data["stats"]
        assert stats["elevation_gain_m"] == pytest.approx(40.0)
        assert stats["max_ele_m"] == pytest.approx(1040.0)
        assert stats["min_ele_m"] == pytest.approx(1000.0)
        assert stats["total_distance_km"] == pytest.approx(0.4448, abs=1e-3)
        assert data["track"]["name"] == "Alps Traverse"

    @pytest.mark.ai_generated
    def test_stats_without_elevation(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify missing elevation is shown as N/A."""
        result = cli_runner.invoke(main, ["stats", track_ids["Night Walk"]], env=cli_env)

        assert result.exit_code == 0, f"Command failed: {result.output}"
        assert "Max elevation:   N/A" in result.output
        assert "Departure:       N/A" in result.output

    @pytest.mark.ai_generated
    def test_stats_unknown_track(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify unknown ids exit with code 2."""
        result = cli_runner.invoke(main, ["stats", "nope"], env=cli_env)

        assert result.exit_code == 2
        assert "Track not found: nope" in result.output


class TestSeriesMergeQuery:
    """Tests for series, merge and query."""

    @pytest.mark.ai_generated
    def test_series_tsv(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify a single-track series prints one row per point."""
        result = cli_runner.invoke(main, ["series", track_ids["Alps Traverse"], "--mode", "delta"], env=cli_env)

        assert result.exit_code == 0, f"Command failed: {result.output}"
        lines = result.output.strip().splitlines()
        assert lines[0] == "x_km\ty"
        assert len(lines) == 6
        assert lines[1] == "0.00000\t0.000"
        assert lines[-1].endswith("\t40.000")

    @pytest.mark.ai_generated
    def test_series_merged_json(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify several ids produce one merged gain series."""
        data = _json(
            cli_runner.invoke(
                main,
                ["--json", "series", track_ids["Alps Traverse"], track_ids["Coastal Ride"], "-m", "gain"],
                env=cli_env,
            )
        )

        assert data["mode"] == "gain"
        assert len(data["x"]) == 9
        assert data["x"] == sorted(data["x"])
        # Coastal Ride (earlier, flat) comes first
        assert data["y"][:4] == [0.0, 0.0, 0.0, 0.0]
        assert data["y"][-1] == pytest.approx(40.0)

    @pytest.mark.ai_generated
    def test_merge_summary(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify merge totals and chronological segments."""
        data = _json(
            cli_runner.invoke(
                main,
                ["--json", "merge", track_ids["Alps Traverse"], track_ids["Night Walk"], track_ids["Coastal Ride"]],
                env=cli_env,
            )
        )

        assert [s["name"] for s in data["segments"]] == ["Coastal Ride", "Alps Traverse", "Night Walk"]
        assert data["total_gain_m"] == pytest.approx(40.0)
        assert data["point_count"] == 12

    @pytest.mark.ai_generated
    def test_merge_text(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify the text summary."""
        result = cli_runner.invoke(
            main, ["merge", track_ids["Alps Traverse"], track_ids["Coastal Ride"]], env=cli_env
        )

        assert result.exit_code == 0, f"Command failed: {result.output}"
        assert "Merged 2 track(s), 9 points" in result.output

    @pytest.mark.ai_generated
    def test_merge_unknown_track(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify an unknown id fails the merge."""
        result = cli_runner.invoke(main, ["merge", track_ids["Alps Traverse"], "nope"], env=cli_env)

        assert result.exit_code == 2

    @pytest.mark.ai_generated
    def test_query_single_track(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify interpolation along one track."""
        data = _json(
            cli_runner.invoke(main, ["--json", "query", track_ids["Alps Traverse"], "--at", "0.2"], env=cli_env)
        )

        point = data["point"]
        assert point["y"] == pytest.approx(1018.0, abs=0.5)
        assert 46.001 < point["lat"] < 46.002
        assert point["label"] == "Alps Traverse"

    @pytest.mark.ai_generated
    def test_query_outside_range(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify a position past the end exits with code 1."""
        result = cli_runner.invoke(main, ["query", track_ids["Alps Traverse"], "--at", "50"], env=cli_env)

        assert result.exit_code == 1
        assert "outside the series" in result.output

    @pytest.mark.ai_generated
    def test_query_merged_uses_real_coordinates(
        self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]
    ) -> None:
        """Verify merged queries report source positions."""
        data = _json(
            cli_runner.invoke(
                main,
                ["--json", "query", track_ids["Coastal Ride"], track_ids["Alps Traverse"], "--at", "0.5", "-m", "gain"],
                env=cli_env,
            )
        )

        point = data["point"]
        assert point["label"] == "Alps Traverse"
        assert 46.0 <= point["lat"] <= 46.004
        assert point["lng"] == pytest.approx(7.0)


class TestEditDelete:
    """Tests for edit, delete, clear and check."""

    @pytest.mark.ai_generated
    def test_edit_name_and_color(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify rename and hex color conversion."""
        track_id = track_ids["Coastal Ride"]
        data = _json(
            cli_runner.invoke(
                main, ["--json", "edit", track_id, "--name", "Beach", "--color", "#00ff00"], env=cli_env
            )
        )

        assert data["track"]["name"] == "Beach"
        assert data["track"]["original_name"] == "Coastal Ride"
        assert data["track"]["color"] == "hsl(120, 100%, 50%)"
        assert data["color_hex"] == "#00ff00"

    @pytest.mark.ai_generated
    def test_edit_text_shows_hex(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify the text output shows both color forms."""
        result = cli_runner.invoke(
            main, ["edit", track_ids["Coastal Ride"], "--color", "hsl(240, 100%, 50%)"], env=cli_env
        )

        assert result.exit_code == 0, f"Command failed: {result.output}"
        assert "(hsl(240, 100%, 50%), #0000ff)" in result.output

    @pytest.mark.ai_generated
    def test_edit_reset_name(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify --reset-name restores the file name."""
        track_id = track_ids["Coastal Ride"]
        cli_runner.invoke(main, ["edit", track_id, "--name", "Beach"], env=cli_env)

        data = _json(cli_runner.invoke(main, ["--json", "edit", track_id, "--reset-name"], env=cli_env))

        assert data["track"]["name"] == "Coastal Ride"

    @pytest.mark.ai_generated
    def test_edit_bad_color(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify an unparsable color is a usage error."""
        result = cli_runner.invoke(main, ["edit", track_ids["Coastal Ride"], "--color", "red"], env=cli_env)

        assert result.exit_code == 2

    @pytest.mark.ai_generated
    def test_delete(self, cli_runner, cli_env: dict[str, str], track_ids: dict[str, str]) -> None:
        """Verify deleting removes tracks from the listing."""
        data = _json(
            cli_runner.invoke(main, ["--json", "delete", track_ids["Night Walk"], "nope"], env=cli_env)
        )
        assert data["deleted"] == 1

        listed = _json(cli_runner.invoke(main, ["--json", "list"], env=cli_env))
        assert listed["count"] == 2

    @pytest.mark.ai_generated
    def test_clear_requires_yes(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify clear refuses without confirmation."""
        result = cli_runner.invoke(main, ["clear"], env=cli_env)

        assert result.exit_code == 2

    @pytest.mark.ai_generated
    def test_clear(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify clear empties the library."""
        result = cli_runner.invoke(main, ["clear", "--yes"], env=cli_env)

        assert result.exit_code == 0, f"Command failed: {result.output}"
        assert "Deleted 3 track(s)" in result.output

    @pytest.mark.ai_generated
    def test_check_clean(self, cli_runner, cli_env: dict[str, str]) -> None:
        """Verify a healthy library passes."""
        data = _json(cli_runner.invoke(main, ["--json", "check"], env=cli_env))

        assert data["tracks_checked"] == 3
        assert data["issues_found"] == 0

    @pytest.mark.ai_generated
    def test_check_reports_missing_points(
        self, cli_runner, cli_env: dict[str, str], cli_data_dir: Path, track_ids: dict[str, str]
    ) -> None:
        """Verify problems are reported with exit code 1."""
        get_points_path(get_track_dir(cli_data_dir, track_ids["Alps Traverse"])).unlink()

        result = cli_runner.invoke(main, ["check"], env=cli_env)

        assert result.exit_code == 1
        assert "missing_points" in result.output
