"""Unit tests for WorkspaceSpec."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from buildaccel_core.schemas import WorkspaceSpec


class TestWorkspaceSpec:
    """Tests for WorkspaceSpec validation."""

    def test_sample_workspace_is_valid(self, sample_workspace: dict[str, Any]) -> None:
        """The sample workspace validates."""
        spec = WorkspaceSpec.model_validate(sample_workspace)
        assert spec.name == "demo"
        assert len(spec.modules) == 6
        assert spec.store.root == ".buildaccel/artifacts"

    def test_minimal_workspace(self) -> None:
        """Only the name is required."""
        spec = WorkspaceSpec(name="empty")
        assert spec.modules == []
        assert spec.store.extensions == ["aar", "jar", "apk"]

    def test_rejects_duplicate_paths(self, sample_workspace: dict[str, Any]) -> None:
        """Module paths are unique."""
        data = copy.deepcopy(sample_workspace)
        data["modules"].append({"path": ":infra:network"})
        with pytest.raises(ValidationError, match="Duplicate module paths"):
            WorkspaceSpec.model_validate(data)

    def test_rejects_name_collision(self, sample_workspace: dict[str, Any]) -> None:
        """Two modules may not derive the same name."""
        data = copy.deepcopy(sample_workspace)
        data["modules"].append({"path": ":legacy:network"})
        with pytest.raises(ValidationError, match="share the name 'network'"):
            WorkspaceSpec.model_validate(data)

    def test_rejects_undeclared_dependency(self, sample_workspace: dict[str, Any]) -> None:
        """Module dependencies must name declared modules."""
        data = copy.deepcopy(sample_workspace)
        data["modules"][3]["dependencies"] = [":infra:missing"]
        with pytest.raises(ValidationError, match="undeclared module ':infra:missing'"):
            WorkspaceSpec.model_validate(data)

    def test_rejects_self_dependency(self, sample_workspace: dict[str, Any]) -> None:
        """A module cannot depend on itself."""
        data = copy.deepcopy(sample_workspace)
        data["modules"][3]["dependencies"] = [":infra:network"]
        with pytest.raises(ValidationError, match="depends on itself"):
            WorkspaceSpec.model_validate(data)

    def test_rejects_unknown_fields(self, sample_workspace: dict[str, Any]) -> None:
        """Unknown top-level keys are errors."""
        data = copy.deepcopy(sample_workspace)
        data["plugins"] = []
        with pytest.raises(ValidationError):
            WorkspaceSpec.model_validate(data)


class TestWorkspaceSpecYaml:
    """Tests for WorkspaceSpec.from_yaml."""

    def test_from_yaml(self, sample_workspace: dict[str, Any], tmp_path: Path) -> None:
        """A YAML file round-trips into the same spec."""
        path = tmp_path / "workspace.yaml"
        path.write_text(yaml.safe_dump(sample_workspace))
        assert WorkspaceSpec.from_yaml(path) == WorkspaceSpec.model_validate(sample_workspace)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            WorkspaceSpec.from_yaml(tmp_path / "workspace.yaml")

    def test_empty_file_fails_validation(self, tmp_path: Path) -> None:
        """An empty file lacks the required name."""
        path = tmp_path / "workspace.yaml"
        path.write_text("")
        with pytest.raises(ValidationError):
            WorkspaceSpec.from_yaml(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Syntax errors surface as yaml errors."""
        path = tmp_path / "workspace.yaml"
        path.write_text("name: demo\n  modules: [\n")
        with pytest.raises(yaml.YAMLError):
            WorkspaceSpec.from_yaml(path)
