"""Unit tests for buildaccel_cli.main module."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from buildaccel_cli import __version__, output
from buildaccel_cli.main import LAZY_COMMANDS, cli


class TestCLIHelp:
    """Tests for CLI help output."""

    @pytest.mark.requirement("BA-FR-009")
    def test_help_shows_all_commands(self, cli_runner: CliRunner) -> None:
        """--help lists every lazily loaded command."""
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for name in ("validate", "plan", "artifacts", "build", "publish"):
            assert name in result.output

    def test_help_shows_global_options(self, cli_runner: CliRunner) -> None:
        """Global options are documented."""
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "--no-color" in result.output
        assert "--verbose" in result.output
        assert "--log-json" in result.output
        assert "--version" in result.output

    def test_help_shows_description(self, cli_runner: CliRunner) -> None:
        """The group docstring is shown."""
        result = cli_runner.invoke(cli, ["--help"])
        assert "Build Accelerator" in result.output

    @pytest.mark.parametrize("command", sorted(LAZY_COMMANDS))
    def test_subcommand_help(self, cli_runner: CliRunner, command: str) -> None:
        """Every subcommand has help with the --file option."""
        result = cli_runner.invoke(cli, [command, "--help"])
        assert result.exit_code == 0
        assert "--file" in result.output


class TestCLIVersion:
    """Tests for CLI version output."""

    @pytest.mark.requirement("BA-FR-009")
    def test_version_output(self, cli_runner: CliRunner) -> None:
        """--version prints the program name and version."""
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "buildaccel" in result.output
        assert __version__ in result.output


class TestLazyGroup:
    """Tests for lazy command resolution."""

    def test_unknown_command(self, cli_runner: CliRunner) -> None:
        """Unknown commands are usage errors."""
        result = cli_runner.invoke(cli, ["compile"])
        assert result.exit_code == 2

    def test_commands_are_sorted(self) -> None:
        """list_commands is sorted."""
        import click

        ctx = click.Context(cli)
        assert cli.list_commands(ctx) == sorted(LAZY_COMMANDS)  # type: ignore[attr-defined]

    def test_runs_command_through_group(
        self,
        cli_runner: CliRunner,
        workspace_yaml: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Global options are accepted before the command."""
        monkeypatch.setattr(output, "console", output.console)
        result = cli_runner.invoke(
            cli, ["--no-color", "--verbose", "validate", "--file", str(workspace_yaml)]
        )
        assert result.exit_code == 0
        assert "Workspace valid" in result.output
