"""Tests for the session CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from tracectl.cli import cli

_BASE = ["--json", "-d", "model.json"]


def _seed(runner: CliRunner, name: str) -> None:
    result = runner.invoke(cli, [*_BASE, "trace", "seed", "actor", "-s", name])
    assert result.exit_code == 0, result.output


@pytest.mark.usefixtures("_isolated_root", "dataset_file")
class TestSessionCommands:
    def test_list(self, cli_runner: CliRunner) -> None:
        _seed(cli_runner, "zeta")
        _seed(cli_runner, "alpha")
        result = cli_runner.invoke(cli, [*_BASE, "session", "list"])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data["model_id"] == "shop"
        assert [i["name"] for i in data["items"]] == ["alpha", "zeta"]

    def test_list_quiet(self, cli_runner: CliRunner) -> None:
        _seed(cli_runner, "review")
        result = cli_runner.invoke(cli, ["-q", "-d", "model.json", "session", "list"])
        assert result.output.strip() == "review"

    def test_show(self, cli_runner: CliRunner) -> None:
        _seed(cli_runner, "review")
        result = cli_runner.invoke(cli, [*_BASE, "session", "show", "review"])
        data = json.loads(result.output)["data"]
        assert data["seed_id"] == "actor"
        assert data["nodes"] == 3
        assert "pending_by_node_id" not in data["state"]

    def test_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [*_BASE, "session", "show", "nope"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "SESSION_NOT_FOUND"

    def test_delete_confirmed(self, cli_runner: CliRunner) -> None:
        _seed(cli_runner, "review")
        result = cli_runner.invoke(
            cli, ["-d", "model.json", "session", "delete", "review"], input="y\n"
        )
        assert result.exit_code == 0
        listing = cli_runner.invoke(cli, [*_BASE, "session", "list"])
        assert json.loads(listing.output)["data"]["count"] == 0

    def test_delete_aborted(self, cli_runner: CliRunner) -> None:
        _seed(cli_runner, "review")
        result = cli_runner.invoke(
            cli, ["-d", "model.json", "session", "delete", "review"], input="n\n"
        )
        assert result.exit_code == 1
        listing = cli_runner.invoke(cli, [*_BASE, "session", "list"])
        assert json.loads(listing.output)["data"]["count"] == 1

    def test_delete_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [*_BASE, "session", "delete", "nope", "-y"])
        assert result.exit_code == 1
        assert "SESSION_NOT_FOUND" in result.output
