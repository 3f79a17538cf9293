"""Unit tests for the artifacts command."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

from click.testing import CliRunner

from buildaccel_cli.commands.artifacts import artifacts


class TestArtifactsCommand:
    """Tests for the artifacts command."""

    def test_empty_store(self, cli_runner: CliRunner, workspace_yaml: Path) -> None:
        """An empty or missing store is reported."""
        result = cli_runner.invoke(artifacts, ["--file", str(workspace_yaml)])

        assert result.exit_code == 0
        assert "No artifacts in" in result.output

    def test_table(
        self,
        cli_runner: CliRunner,
        workspace_yaml: Path,
        store_artifacts: Callable[..., Path],
    ) -> None:
        """Artifacts are listed with module, variant and version."""
        store_artifacts("network-debug-1.2.0.aar", "home-debug-0.3.0-SNAPSHOT.aar")
        result = cli_runner.invoke(artifacts, ["--file", str(workspace_yaml)])

        assert result.exit_code == 0
        assert "network" in result.output
        assert "SNAPSHOT" in result.output

    def test_module_filter_json(
        self,
        cli_runner: CliRunner,
        workspace_yaml: Path,
        store_artifacts: Callable[..., Path],
    ) -> None:
        """--module restricts the listing to one module name."""
        store_artifacts(
            "network-debug-1.2.0.aar",
            "network-release-1.2.0.aar",
            "model-debug-1.0.0.aar",
        )
        result = cli_runner.invoke(
            artifacts,
            ["--file", str(workspace_yaml), "--module", "network", "--format", "json"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["root"].endswith("artifacts")
        assert [(a["variant"], a["version"]) for a in data["artifacts"]] == [
            ("debug", "1.2.0"),
            ("release", "1.2.0"),
        ]

    def test_ignores_foreign_files(
        self,
        cli_runner: CliRunner,
        workspace_yaml: Path,
        store_artifacts: Callable[..., Path],
    ) -> None:
        """Files without the store naming convention are not listed."""
        root = store_artifacts("network-debug-1.2.0.aar")
        (root / "README.txt").write_text("not an artifact")
        (root / "network-debug.aar").write_bytes(b"x")
        result = cli_runner.invoke(
            artifacts, ["--file", str(workspace_yaml), "--format", "json"]
        )

        data = json.loads(result.stdout)
        assert [a["module"] for a in data["artifacts"]] == ["network"]
