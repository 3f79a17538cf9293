"""Shared test fixtures for buildaccel-cli tests.

Provides CliRunner fixtures, a copy of the fixture workspace in a temporary
directory and helpers for artifact store contents.
"""

from __future__ import annotations

import logging
import shutil
import sys
from collections.abc import Generator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog
import yaml
from click.testing import CliRunner

if TYPE_CHECKING:
    from collections.abc import Callable

# File name constants
WORKSPACE_YAML_FILENAME = "workspace.yaml"
PROPERTIES_FILENAME = "accelerator.properties"


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> Generator[None, None, None]:
    """Send structlog output to stderr so command output stays parseable.

    Commands invoked through the root group reconfigure logging onto the
    runner's stderr; the root handlers are restored afterwards.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner.

    Returns:
        CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Create a Click test runner with an isolated filesystem.

    Yields:
        CliRunner instance with isolated filesystem.
    """
    with cli_runner.isolated_filesystem():
        yield cli_runner


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def workspace_yaml(fixtures_dir: Path, tmp_path: Path) -> Path:
    """Copy the fixture workspace and its properties into tmp_path.

    Returns:
        Path to workspace.yaml in tmp_path.
    """
    shutil.copy(fixtures_dir / PROPERTIES_FILENAME, tmp_path / PROPERTIES_FILENAME)
    target = tmp_path / WORKSPACE_YAML_FILENAME
    shutil.copy(fixtures_dir / WORKSPACE_YAML_FILENAME, target)
    return target


@pytest.fixture
def invalid_workspace_yaml(fixtures_dir: Path) -> Path:
    """Return the path to a workspace.yaml that fails validation."""
    return fixtures_dir / "invalid_workspace.yaml"


@pytest.fixture
def write_properties(workspace_yaml: Path) -> Callable[[str], Path]:
    """Factory fixture replacing accelerator.properties next to workspace.yaml."""

    def _write(content: str) -> Path:
        path = workspace_yaml.parent / PROPERTIES_FILENAME
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def store_artifacts(workspace_yaml: Path) -> Callable[..., Path]:
    """Factory fixture writing files into the fixture workspace's artifact store."""

    def _write(*names: str) -> Path:
        root = workspace_yaml.parent / ".buildaccel" / "artifacts"
        root.mkdir(parents=True, exist_ok=True)
        for name in names:
            (root / name).write_bytes(b"artifact")
        return root

    return _write


@pytest.fixture
def set_assemble(workspace_yaml: Path) -> Callable[[dict[str, str]], Path]:
    """Factory fixture giving fixture workspace modules an assemble command."""

    def _set(commands: dict[str, str]) -> Path:
        data = yaml.safe_load(workspace_yaml.read_text())
        for module in data["modules"]:
            if module["path"] in commands:
                module["assemble"] = commands[module["path"]]
        workspace_yaml.write_text(yaml.safe_dump(data, sort_keys=False))
        return workspace_yaml

    return _set
