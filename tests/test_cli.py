"""Tests for the minidsl CLI commands."""

import json
import tomllib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from minidsl._cli.main import app

runner = CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty directory so no pyproject.toml is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write(directory: Path, name: str, source: str) -> Path:
    path = directory / name
    path.write_text(source, encoding="utf-8")
    return path


class TestCheck:
    def test_valid_graph(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "1 >> 2\n2 >> 3\n")
        result = runner.invoke(app, ["check", str(path), "--dialect", "graph"])
        assert result.exit_code == 0, result.output
        assert "edge_directed" in result.output
        assert "is valid" in result.output

    def test_invalid_graph(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "1 >> 2\nx\n")
        result = runner.invoke(app, ["check", str(path), "--dialect", "graph"])
        assert result.exit_code == 1
        assert "Unrecognized graph statement" in result.output

    def test_mixed_directions(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "1 >> 2\n2 - 3\n")
        result = runner.invoke(app, ["check", str(path), "-d", "graph"])
        assert result.exit_code == 1
        assert "mixes" in result.output

    def test_model_cycle(self, workdir: Path) -> None:
        path = write(workdir, "m.py", "x: normal(y, 1)\ny: normal(x, 1)\n")
        result = runner.invoke(app, ["check", str(path), "--dialect", "model"])
        assert result.exit_code == 1
        assert "Cyclic dependency" in result.output

    def test_valid_model(self, workdir: Path) -> None:
        path = write(workdir, "m.py", "x: normal(0, 1)\nfor i in range(n):\n    y[i]: normal(x, 1)\n")
        result = runner.invoke(app, ["check", str(path), "--dialect", "model"])
        assert result.exit_code == 0, result.output
        assert "dynamic_loop" in result.output

    def test_missing_file(self, workdir: Path) -> None:
        result = runner.invoke(app, ["check", str(workdir / "nope.py"), "--dialect", "graph"])
        assert result.exit_code == 2


class TestGraph:
    def test_summary(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "10 >> 20\n20 >> 30\n10 >> 40\n")
        result = runner.invoke(app, ["graph", str(path)])
        assert result.exit_code == 0, result.output
        assert "Nodes: 4" in result.output
        assert "Roots: 10" in result.output
        assert "Leaves: 30, 40" in result.output

    def test_export_json(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "5 >> 6\n6 >> 5\n")
        out = workdir / "out.json"
        result = runner.invoke(app, ["graph", str(path), "--no-relabel", "-o", str(out)])
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["edges"] == [[5, 6], [6, 5]]
        assert data["relabeled"] is False

    def test_exported_recipe_loads_back(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "10 >> 20\n20 >> 30\n10 >> 40\n")
        out = workdir / "recipe.json"
        assert runner.invoke(app, ["graph", str(path), "-o", str(out)]).exit_code == 0
        result = runner.invoke(app, ["graph", str(out)])
        assert result.exit_code == 0, result.output
        assert "Nodes: 4" in result.output
        assert "Roots: 10" in result.output

    def test_invalid_recipe_document(self, workdir: Path) -> None:
        path = write(workdir, "recipe.json", "{}")
        result = runner.invoke(app, ["graph", str(path)])
        assert result.exit_code == 1
        assert "Invalid recipe document" in result.output

    def test_config_sets_defaults(self, workdir: Path) -> None:
        write(workdir, "pyproject.toml", "[tool.minidsl]\ndedupe = true\nrelabel = false\n")
        path = write(workdir, "edges.py", "1 >> 2\n1 >> 2\n")
        out = workdir / "out.toml"
        result = runner.invoke(app, ["graph", str(path), "-o", str(out)])
        assert result.exit_code == 0, result.output
        with out.open("rb") as f:
            assert tomllib.load(f)["edges"] == [[1, 2]]

    def test_flags_override_config(self, workdir: Path) -> None:
        write(workdir, "pyproject.toml", "[tool.minidsl]\ndedupe = true\n")
        path = write(workdir, "edges.py", "1 >> 2\n1 >> 2\n")
        out = workdir / "out.json"
        result = runner.invoke(app, ["graph", str(path), "--no-dedupe", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert len(json.loads(out.read_text(encoding="utf-8"))["edges"]) == 2

    def test_invalid_config(self, workdir: Path) -> None:
        write(workdir, "pyproject.toml", "[tool.minidsl]\ndedupe = 'maybe'\n")
        path = write(workdir, "edges.py", "1 >> 2\n")
        result = runner.invoke(app, ["graph", str(path)])
        assert result.exit_code == 1
        assert "expected boolean" in result.output

    def test_forced_direction(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "1 >> 2\n")
        result = runner.invoke(app, ["graph", str(path), "--undirected"])
        assert result.exit_code == 1

    def test_unsupported_export_format(self, workdir: Path) -> None:
        path = write(workdir, "edges.py", "1 >> 2\n")
        result = runner.invoke(app, ["graph", str(path), "-o", str(workdir / "out.yaml")])
        assert result.exit_code == 1
        assert "Unsupported export format" in result.output


class TestModel:
    SOURCE = "for i in range(n):\n    y[i]: normal(x, 1)\nx: normal(0, 1)\n"

    def test_plan(self, workdir: Path) -> None:
        path = write(workdir, "walk.py", self.SOURCE)
        result = runner.invoke(app, ["model", str(path)])
        assert result.exit_code == 0, result.output
        assert "x ~ normal(0, 1)" in result.output
        assert "Parameters: n" in result.output

    def test_emit(self, workdir: Path) -> None:
        path = write(workdir, "walk.py", self.SOURCE)
        result = runner.invoke(app, ["model", str(path), "--emit"])
        assert result.exit_code == 0, result.output
        assert "def walk(sampler, n):" in result.output
        assert 'trace[f"y[{i}]"] = sampler.sample("normal", trace["x"], 1)' in result.output

    def test_sample(self, workdir: Path) -> None:
        path = write(workdir, "walk.py", self.SOURCE)
        result = runner.invoke(app, ["model", str(path), "--sample", "--seed", "1", "--bound", "n=2"])
        assert result.exit_code == 0, result.output
        assert "y[1]" in result.output

    def test_sample_without_bound(self, workdir: Path) -> None:
        path = write(workdir, "walk.py", self.SOURCE)
        result = runner.invoke(app, ["model", str(path), "--sample"])
        assert result.exit_code == 1
        assert "Missing" in result.output

    def test_arithmetic_error_while_sampling(self, workdir: Path) -> None:
        path = write(workdir, "m.py", "x: constant(0)\ny: normal(1 / x, 1)\n")
        result = runner.invoke(app, ["model", str(path), "--sample"])
        assert result.exit_code == 1
        assert "Cannot evaluate" in result.output

    def test_malformed_bound(self, workdir: Path) -> None:
        path = write(workdir, "walk.py", self.SOURCE)
        result = runner.invoke(app, ["model", str(path), "--bound", "n"])
        assert result.exit_code == 2

    def test_export_with_sample(self, workdir: Path) -> None:
        path = write(workdir, "walk.py", self.SOURCE)
        out = workdir / "plan.toml"
        result = runner.invoke(app, ["model", str(path), "--sample", "-b", "n=3", "-o", str(out)])
        assert result.exit_code == 0, result.output
        with out.open("rb") as f:
            data = tomllib.load(f)
        assert data["parameters"] == ["n"]
        assert list(data["sample"]) == ["x", "y[0]", "y[1]", "y[2]"]

    def test_seed_from_config_is_reproducible(self, workdir: Path) -> None:
        write(workdir, "pyproject.toml", "[tool.minidsl]\nseed = 5\n")
        path = write(workdir, "m.py", "x: normal(0, 1)\n")
        first = runner.invoke(app, ["model", str(path), "--sample", "-o", str(workdir / "a.json")])
        second = runner.invoke(app, ["model", str(path), "--sample", "-o", str(workdir / "b.json")])
        assert first.exit_code == second.exit_code == 0
        a = json.loads((workdir / "a.json").read_text(encoding="utf-8"))
        b = json.loads((workdir / "b.json").read_text(encoding="utf-8"))
        assert a["sample"] == b["sample"]

    def test_unbound_reference(self, workdir: Path) -> None:
        path = write(workdir, "m.py", "y: normal(x, 1)\n")
        result = runner.invoke(app, ["model", str(path)])
        assert result.exit_code == 1
        assert "Unbound reference 'x'" in result.output


class TestGrammar:
    def test_both_dialects(self) -> None:
        result = runner.invoke(app, ["grammar"])
        assert result.exit_code == 0, result.output
        assert "edge_directed" in result.output
        assert "dynamic_loop" in result.output

    def test_single_dialect(self) -> None:
        result = runner.invoke(app, ["grammar", "--dialect", "graph"])
        assert result.exit_code == 0, result.output
        assert "edge_undirected" in result.output
        assert "binding" not in result.output
