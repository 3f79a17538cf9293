"""Workspace model: module registry and Active/Stable classification."""

from __future__ import annotations

from buildaccel_core.workspace.classifier import WorkspaceClassification, classify
from buildaccel_core.workspace.registry import Module, ModuleRegistry, parent_paths

__all__ = [
    "Module",
    "ModuleRegistry",
    "parent_paths",
    "WorkspaceClassification",
    "classify",
]
