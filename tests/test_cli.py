"""Tests for help, version and --examples output."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from tracectl import __version__
from tracectl.cli import cli
from tracectl.commands._base import format_examples


class TestHelp:
    def test_root_help_lists_groups(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "trace" in result.output
        assert "session" in result.output

    def test_bare_invocation_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    @pytest.mark.parametrize(
        "command",
        ["seed", "expand", "collapse", "pin", "hide", "show", "layout", "facets", "tooltip"],
    )
    def test_trace_subcommand_help(self, cli_runner: CliRunner, command: str) -> None:
        result = cli_runner.invoke(cli, ["trace", command, "--help"])
        assert result.exit_code == 0
        assert "--examples" in result.output


class TestExamples:
    def test_group_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["trace", "--examples"])
        assert result.exit_code == 0
        assert "Examples for" in result.output
        assert "  tracectl trace show" in result.output

    def test_command_examples_skip_dataset(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["session", "delete", "--examples"])
        assert result.exit_code == 0
        assert "tracectl session delete review -y" in result.output

    def test_format_examples(self) -> None:
        assert format_examples(["a", "b"]) == "  a\n  b"
        assert format_examples("raw\ntext") == "raw\ntext"
