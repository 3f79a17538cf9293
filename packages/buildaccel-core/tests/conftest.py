"""Shared pytest fixtures for buildaccel-core tests.

This module provides common fixtures used across unit and integration
tests: a sample workspace resembling a modular Android application, build
context factories and artifact store helpers.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest
import structlog
import yaml

from buildaccel_core.context import BuildContext
from buildaccel_core.schemas import AcceleratorProperties, WorkspaceSpec
from buildaccel_core.workspace import ModuleRegistry, classify


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture.

    This fixture ensures structlog outputs to stdout so that capsys
    can capture the output in tests.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture
def sample_workspace() -> dict[str, Any]:
    """Return a workspace.yaml structure for a small modular application.

    :app has hk/sg flavors; every library has debug/release build types.
    """
    return {
        "name": "demo",
        "store": {"root": ".buildaccel/artifacts", "extensions": ["aar"]},
        "modules": [
            {
                "path": ":app",
                "kind": "application",
                "flavors": ["hk", "sg"],
                "dependencies": [
                    ":feature:home",
                    ":feature:payments",
                    ":infra:network",
                    "com.google.code.gson:gson:2.10.1",
                ],
            },
            {"path": ":feature:home", "dependencies": [":infra:network", ":ui:proton"]},
            {"path": ":feature:payments", "dependencies": [":infra:network", ":infra:analytics"]},
            {"path": ":infra:network"},
            {"path": ":infra:analytics"},
            {"path": ":ui:proton"},
        ],
        "publishing": {
            "release_repository": "repo/releases",
            "snapshot_repository": "repo/snapshots",
            "modules": [
                {"name": "home", "group_id": "com.demo", "artifact_id": "home", "version": "1.0.0"},
                {
                    "name": "payments",
                    "group_id": "com.demo",
                    "artifact_id": "payments",
                    "version": "1.0.0",
                },
                {
                    "name": "network",
                    "group_id": "com.demo.infra",
                    "artifact_id": "network",
                    "version": "1.0.0",
                },
                {
                    "name": "analytics",
                    "group_id": "com.demo.infra",
                    "artifact_id": "analytics",
                    "version": "1.1.0-SNAPSHOT",
                },
                {"name": "proton", "group_id": "com.demo.ui", "artifact_id": "proton", "version": "2.0.0"},
            ],
        },
    }


@pytest.fixture
def workspace_spec(sample_workspace: dict[str, Any]) -> WorkspaceSpec:
    """Validated WorkspaceSpec of the sample workspace."""
    return WorkspaceSpec.model_validate(sample_workspace)


@pytest.fixture
def registry(workspace_spec: WorkspaceSpec) -> ModuleRegistry:
    """Module registry of the sample workspace."""
    return ModuleRegistry.from_spec(workspace_spec)


@pytest.fixture
def make_context(
    workspace_spec: WorkspaceSpec,
    tmp_path: Path,
) -> Callable[..., BuildContext]:
    """Factory fixture creating a BuildContext rooted at tmp_path.

    Keyword arguments are passed to AcceleratorProperties; enabled=True is
    the default. Pass spec= to use another WorkspaceSpec.
    """

    def _create(spec: WorkspaceSpec | None = None, **properties: Any) -> BuildContext:
        spec = spec or workspace_spec
        properties.setdefault("enabled", True)
        props = AcceleratorProperties(**properties)
        registry = ModuleRegistry.from_spec(spec)
        return BuildContext(
            root=tmp_path,
            spec=spec,
            properties=props,
            registry=registry,
            classification=classify(registry, props),
        )

    return _create


@pytest.fixture
def write_artifacts(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture writing artifact files into the sample store root.

    Returns:
        Function taking filenames and returning the store root.
    """
    root = tmp_path / ".buildaccel" / "artifacts"

    def _write(names: Iterable[str]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for name in names:
            (root / name).write_bytes(b"artifact:" + name.encode())
        return root

    return _write


@pytest.fixture
def stable_artifacts(write_artifacts: Callable[..., Path]) -> Path:
    """Artifacts for every library at its declared version, both variants."""
    return write_artifacts(
        [
            "home-debug-1.0.0.aar",
            "home-release-1.0.0.aar",
            "payments-debug-1.0.0.aar",
            "payments-release-1.0.0.aar",
            "network-debug-1.0.0.aar",
            "network-release-1.0.0.aar",
            "analytics-debug-1.1.0-SNAPSHOT.aar",
            "analytics-release-1.1.0-SNAPSHOT.aar",
            "proton-debug-2.0.0.aar",
            "proton-release-2.0.0.aar",
        ]
    )


@pytest.fixture
def write_workspace(
    sample_workspace: dict[str, Any],
    tmp_path: Path,
) -> Callable[..., Path]:
    """Factory fixture writing workspace.yaml and accelerator.properties.

    Returns:
        Function taking the properties text (None for no file) and
        returning the workspace.yaml path.
    """

    def _write(properties: str | None = "buildingAccelerator.enable=true\n") -> Path:
        workspace_file = tmp_path / "workspace.yaml"
        workspace_file.write_text(yaml.safe_dump(sample_workspace, sort_keys=False))
        if properties is not None:
            (tmp_path / "accelerator.properties").write_text(properties)
        return workspace_file

    return _write
