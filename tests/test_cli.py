"""Integration tests for polytherm CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from polytherm.cli import app
from polytherm.io.series import series_to_dict
from polytherm.model import TimeSeries
from polytherm.ui.state import load_snapshot


runner = CliRunner()


def _write_geojson(path: Path, *features) -> Path:
    path.write_text(json.dumps({"type": "FeatureCollection", "features": list(features)}), encoding="utf-8")
    return path


def _area(name, lng, lat, **props):
    d = 0.01
    ring = [[lng, lat], [lng + d, lat], [lng + d, lat + d], [lng, lat + d], [lng, lat]]
    return {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [ring]},
        "properties": {"name": name, **props},
    }


@pytest.fixture
def series_file(tmp_path: Path) -> Path:
    p = tmp_path / "series.json"
    series = TimeSeries.from_values([float(i) for i in range(48)])
    p.write_text(json.dumps(series_to_dict(series)), encoding="utf-8")
    return p


class TestCLI:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "colorize" in result.stdout

    def test_config_help(self):
        result = runner.invoke(app, ["config", "--help"])
        assert result.exit_code == 0

    def test_eval(self):
        result = runner.invoke(app, ["eval", "15", ">= 10 and < 25"])
        assert result.exit_code == 0
        assert result.stdout.strip().endswith("true")

        result = runner.invoke(app, ["eval", "30", ">= 10 and < 25"])
        assert result.stdout.strip().endswith("false")

    def test_eval_warns_on_unusable_condition(self):
        result = runner.invoke(app, ["eval", "5", "banana"])
        assert result.exit_code == 0
        assert "can never match" in result.stdout
        assert result.stdout.strip().endswith("false")

    def test_resolve_with_rules(self):
        result = runner.invoke(app, ["resolve", "15", "-r", "<10=#3b82f6", "-r", ">=10=#ef4444"])
        assert result.exit_code == 0
        assert "#ef4444" in result.stdout

    def test_resolve_defaults_to_configured_rules(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["resolve", "5"])
        assert result.exit_code == 0
        assert "#3b82f6" in result.stdout

    def test_resolve_rejects_bad_rule(self):
        result = runner.invoke(app, ["resolve", "5", "-r", "<10=#blue"])
        assert result.exit_code == 1
        assert "Invalid rule" in result.stdout

    def test_colorize_with_series_file(self, tmp_path: Path, series_file: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        geo = _write_geojson(
            tmp_path / "areas.geojson",
            _area("Cold", 13.40, 52.52),
            _area("Custom", 2.35, 48.85, colorRules=[{"condition": "> 100", "color": "#000000"}]),
        )
        out = tmp_path / "colored.geojson"
        state_path = tmp_path / "state.json"
        trace = tmp_path / "trace.jsonl"

        result = runner.invoke(
            app,
            [
                "colorize", str(geo),
                "--series", str(series_file),
                "--start", "20", "--end", "30",
                "--output", str(out),
                "--state", str(state_path),
                "--trace", str(trace),
            ],
        )
        assert result.exit_code == 0, result.stdout

        features = json.loads(out.read_text(encoding="utf-8"))["features"]
        by_name = {f["properties"]["name"]: f["properties"] for f in features}
        assert by_name["Cold"]["value"] == 25.0
        assert by_name["Cold"]["fill"] == "#ef4444"
        assert by_name["Custom"]["fill"] == "#6b7280"

        snap = load_snapshot(state_path)
        assert snap["timeRange"] == [20, 30]
        assert len(snap["polygons"]) == 2

        lines = trace.read_text(encoding="utf-8").splitlines()
        assert sum(1 for line in lines if '"polygon_result"' in line) == 2

    def test_colorize_resumes_saved_state(self, tmp_path: Path, series_file: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        state_path = tmp_path / "state.json"
        first = _write_geojson(tmp_path / "first.geojson", _area("First", 13.40, 52.52))
        second = _write_geojson(tmp_path / "second.geojson", _area("Second", 2.35, 48.85))

        result = runner.invoke(
            app,
            ["colorize", str(first), "--series", str(series_file), "-s", "3", "--state", str(state_path)],
        )
        assert result.exit_code == 0, result.stdout

        # No --start: the saved time range applies to old and new polygons alike.
        result = runner.invoke(
            app, ["colorize", str(second), "--series", str(series_file), "--state", str(state_path)]
        )
        assert result.exit_code == 0, result.stdout
        assert "Time window: 3" in result.stdout

        snap = load_snapshot(state_path)
        assert snap["timeRange"] == [3, 3]
        names = [p["name"] for p in snap["polygons"]]
        assert names == ["First", "Second"]
        assert all(p["currentValue"] == 3.0 for p in snap["polygons"])
        assert all(p["color"] == "#3b82f6" for p in snap["polygons"])

    def test_colorize_rejects_corrupt_polygon_in_state(self, tmp_path: Path, series_file: Path):
        state_path = tmp_path / "state.json"
        state_path.write_text(json.dumps({"polygons": [{"name": "no id"}]}), encoding="utf-8")
        geo = _write_geojson(tmp_path / "a.geojson", _area("A", 0.0, 0.0))
        result = runner.invoke(
            app, ["colorize", str(geo), "--series", str(series_file), "--state", str(state_path)]
        )
        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_colorize_single_hour_clamped(self, tmp_path: Path, series_file: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        geo = _write_geojson(tmp_path / "a.geojson", _area("A", 0.0, 0.0))
        out = tmp_path / "o.geojson"
        result = runner.invoke(app, ["colorize", str(geo), "--series", str(series_file), "-s", "999", "-o", str(out)])
        assert result.exit_code == 0, result.stdout
        props = json.loads(out.read_text(encoding="utf-8"))["features"][0]["properties"]
        assert props["value"] == 47.0

    def test_colorize_synthetic_is_seeded(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        geo = _write_geojson(tmp_path / "a.geojson", _area("A", 13.40, 52.52))
        outs = []
        for i in range(2):
            out = tmp_path / f"o{i}.geojson"
            result = runner.invoke(app, ["colorize", str(geo), "--seed", "42", "-s", "10", "-o", str(out)])
            assert result.exit_code == 0, result.stdout
            outs.append(json.loads(out.read_text(encoding="utf-8"))["features"][0]["properties"]["value"])
        assert outs[0] == outs[1]

    def test_colorize_rejects_bad_geojson(self, tmp_path: Path):
        bad = tmp_path / "bad.geojson"
        bad.write_text("{nope", encoding="utf-8")
        result = runner.invoke(app, ["colorize", str(bad)])
        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_colorize_missing_file(self):
        result = runner.invoke(app, ["colorize", "nonexistent_file.geojson"])
        assert result.exit_code != 0

    def test_check_clean_and_dirty(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        clean = _write_geojson(tmp_path / "clean.geojson", _area("A", 0.0, 0.0))
        result = runner.invoke(app, ["check", str(clean)])
        assert result.exit_code == 0
        assert "no problems" in result.stdout

        dirty = _write_geojson(
            tmp_path / "dirty.geojson",
            _area("B", 0.0, 0.0, colorRules=[{"condition": "warm", "color": "#ff0000"}]),
        )
        result = runner.invoke(app, ["check", str(dirty)])
        assert result.exit_code == 1
        assert "can never match" in result.stdout

    def test_config_export_and_validate(self, tmp_path: Path):
        out = tmp_path / "polytherm_config.yaml"
        result = runner.invoke(app, ["config", "export", str(out)])
        assert result.exit_code == 0
        assert out.exists()

        result = runner.invoke(app, ["config", "validate", str(out)])
        assert result.exit_code == 0
        assert "valid" in result.stdout

        broken = tmp_path / "broken.yaml"
        broken.write_text("default_zoom: 0\n", encoding="utf-8")
        result = runner.invoke(app, ["config", "validate", str(broken)])
        assert result.exit_code == 1

    def test_config_show(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Default rules" in result.stdout
