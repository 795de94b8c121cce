"""Tests for the trace CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from tracectl.cli import cli


def _run(runner: CliRunner, *args: str) -> dict[str, Any]:
    """Invoke with --json against model.json and return the parsed payload."""
    result = runner.invoke(cli, ["--json", "-d", "model.json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.mark.usefixtures("_isolated_root", "dataset_file")
class TestSeedCommand:
    def test_seed(self, cli_runner: CliRunner) -> None:
        data = _run(cli_runner, "trace", "seed", "actor")
        assert data["ok"] is True
        assert data["op"] == "seed"
        assert data["data"]["added_nodes"] == ["proc", "goal"]

    def test_seed_options(self, cli_runner: CliRunner) -> None:
        data = _run(
            cli_runner,
            "trace",
            "seed",
            "proc",
            "--direction",
            "incoming",
            "--rel-types",
            "Serving, Assignment",
            "--depth",
            "2",
        )
        assert data["data"]["depth"] == 2
        assert set(data["data"]["added_nodes"]) == {"actor", "svc"}

    def test_seed_stop_layer(self, cli_runner: CliRunner) -> None:
        data = _run(
            cli_runner, "trace", "seed", "proc", "--depth", "3", "--stop-layer", "Application"
        )
        assert "svc" in data["data"]["added_nodes"]
        assert "app" not in data["data"]["added_nodes"]

    def test_session_stored_on_disk(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        _run(cli_runner, "trace", "seed", "actor", "-s", "review")
        assert (tmp_path / ".tracectl" / "tracectl.db").is_file()

    def test_unknown_seed_fails(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "-d", "model.json", "trace", "seed", "nope"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_quiet_lists_added_nodes(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "-d", "model.json", "trace", "seed", "actor"])
        assert result.exit_code == 0
        assert result.output.split() == ["proc", "goal"]

    def test_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-d", "model.json", "trace", "seed", "actor"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "3 nodes" in result.output

    def test_verbose_shows_telemetry(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "-d", "model.json", "trace", "seed", "actor"])
        assert result.exit_code == 0
        assert "TraceService.seed" in result.output


@pytest.mark.usefixtures("_isolated_root", "dataset_file")
class TestSessionEditing:
    def test_expand_collapse_round(self, cli_runner: CliRunner) -> None:
        _run(cli_runner, "trace", "seed", "actor")
        expanded = _run(cli_runner, "trace", "expand", "proc")
        assert expanded["data"]["added_nodes"] == ["svc"]

        collapsed = _run(cli_runner, "trace", "collapse", "proc")
        assert collapsed["data"]["removed"] == ["svc"]

    def test_expand_filter_options(self, cli_runner: CliRunner) -> None:
        _run(cli_runner, "trace", "seed", "actor")
        data = _run(cli_runner, "trace", "expand", "proc", "--layers", "Motivation")
        assert data["data"]["added_nodes"] == []

    def test_expand_missing_node(self, cli_runner: CliRunner) -> None:
        _run(cli_runner, "trace", "seed", "actor")
        result = cli_runner.invoke(cli, ["--json", "-d", "model.json", "trace", "expand", "db"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "NOT_FOUND"

    def test_expand_without_session(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "-d", "model.json", "trace", "expand", "actor", "-s", "none"]
        )
        assert result.exit_code == 1
        assert "SESSION_NOT_FOUND" in result.output

    def test_pin_and_hide(self, cli_runner: CliRunner) -> None:
        _run(cli_runner, "trace", "seed", "actor")
        assert _run(cli_runner, "trace", "pin", "goal")["data"]["pinned"] is True
        assert _run(cli_runner, "trace", "hide", "goal")["data"]["visible_node_count"] == 2
        assert _run(cli_runner, "trace", "hide", "goal", "--show")["data"]["hidden"] is False

    def test_show(self, cli_runner: CliRunner) -> None:
        _run(cli_runner, "trace", "seed", "actor")
        data = _run(cli_runner, "trace", "show")
        assert [n["id"] for n in data["data"]["nodes"]] == ["actor", "goal", "proc"]
        result = cli_runner.invoke(cli, ["-d", "model.json", "trace", "show"])
        assert "Customer" in result.output

    def test_layout(self, cli_runner: CliRunner) -> None:
        _run(cli_runner, "trace", "seed", "actor")
        data = _run(cli_runner, "trace", "layout", "--no-wrap", "--max-rich-nodes", "10")
        assert len(data["data"]["nodes"]) == 3
        assert all("pathData" in e for e in data["data"]["edges"])


@pytest.mark.usefixtures("_isolated_root", "dataset_file")
class TestInspectCommands:
    def test_facets(self, cli_runner: CliRunner) -> None:
        data = _run(cli_runner, "trace", "facets")
        assert [f["id"] for f in data["data"]["facets"]] == ["type", "layer"]

    def test_node_facets(self, cli_runner: CliRunner) -> None:
        data = _run(cli_runner, "trace", "facets", "--node", "db")
        assert data["data"]["values"]["layer"] == "Technology"

    def test_node_tooltip(self, cli_runner: CliRunner) -> None:
        data = _run(cli_runner, "trace", "tooltip", "--node", "svc")
        assert data["data"]["title"] == "Order Service"

    def test_edge_tooltip(self, cli_runner: CliRunner) -> None:
        _run(cli_runner, "trace", "seed", "actor")
        data = _run(cli_runner, "trace", "tooltip", "--edge", "r1:actor->proc")
        assert data["data"]["lines"][1] == "From: Customer"

    def test_tooltip_needs_exactly_one_target(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-d", "model.json", "trace", "tooltip"])
        assert result.exit_code == 2
        assert "exactly one" in result.output


@pytest.mark.usefixtures("_isolated_root")
class TestDatasetErrors:
    def test_no_dataset(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "trace", "show"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "NO_DATASET"

    def test_invalid_dataset(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "bad.yaml").write_text("- just\n- a list\n", encoding="utf-8")
        result = cli_runner.invoke(cli, ["--json", "-d", "bad.yaml", "trace", "facets"])
        assert result.exit_code == 1
        error = json.loads(result.output)["error"]
        assert error["code"] == "DATASET_INVALID"
        assert error["detail"]["path"].endswith("bad.yaml")

    def test_dataset_from_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "model.yaml").write_text(
            "kind: generic\nelements:\n  - {id: A, name: Alpha}\n", encoding="utf-8"
        )
        (tmp_path / "tracectl.toml").write_text(
            '[dataset]\npath = "model.yaml"\n', encoding="utf-8"
        )
        result = cli_runner.invoke(cli, ["--json", "trace", "seed", "A"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["node_count"] == 1
