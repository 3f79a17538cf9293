"""Schema definitions for buildaccel.

This module exports the Pydantic models describing a workspace:

Root Models:
- WorkspaceSpec: Root schema for workspace.yaml
- AcceleratorProperties: Validated accelerator.properties

Module Models:
- ModuleDeclaration: One declared module
- ModuleKind: Application, Library or Unbuildable
- BuildVariant: One flavor/build-type combination
- DependencyDeclaration: A declared dependency

Publishing Models:
- ModuleSetting: Per-module coordinates and version
- PublishingConfig: Repositories and module settings
"""

from __future__ import annotations

from buildaccel_core.schemas.module import (
    BuildVariant,
    DependencyDeclaration,
    ModuleDeclaration,
    ModuleKind,
    compose_variants,
    to_module_name,
)
from buildaccel_core.schemas.properties import (
    DEFAULT_SKIP_PARENT_PATHS,
    AcceleratorProperties,
    ClassificationPolicy,
)
from buildaccel_core.schemas.publishing import ModuleSetting, PublishingConfig
from buildaccel_core.schemas.workspace_spec import (
    WORKSPACE_FILE_NAME,
    ArtifactStoreConfig,
    WorkspaceSpec,
)

__all__ = [
    # Root models
    "WorkspaceSpec",
    "WORKSPACE_FILE_NAME",
    "ArtifactStoreConfig",
    "AcceleratorProperties",
    "ClassificationPolicy",
    "DEFAULT_SKIP_PARENT_PATHS",
    # Module models
    "ModuleDeclaration",
    "ModuleKind",
    "BuildVariant",
    "DependencyDeclaration",
    "compose_variants",
    "to_module_name",
    # Publishing
    "ModuleSetting",
    "PublishingConfig",
]
