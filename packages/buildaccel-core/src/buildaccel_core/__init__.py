"""buildaccel-core: Artifact substitution engine for multi-module builds.

This package provides:
- WorkspaceSpec / AcceleratorProperties: workspace.yaml and
  accelerator.properties models
- ModuleRegistry and classify(): Active/Stable partition of the workspace
- ArtifactStore: snapshot of previously published artifacts
- DependencyRewriter: source -> artifact dependency substitution
- Publisher: publication of freshly built artifacts
- BuildPlanner / StepExecutor: two-phase planning and execution
"""

from __future__ import annotations

__version__ = "0.1.0"

# Configuration loading
from buildaccel_core.config import load_accelerator_properties

# Build context
from buildaccel_core.context import BuildContext

# Error types
from buildaccel_core.errors import (
    BuildAccelError,
    ConfigurationError,
    ModuleNotFoundInWorkspaceError,
    PlanFrozenError,
    StepExecutionError,
)

# Execution phase
from buildaccel_core.execution import (
    BuildResult,
    StepActions,
    StepExecutor,
    StepOutcome,
    TimingReport,
    TimingsRecorder,
)

# Build graph
from buildaccel_core.graph import (
    DependencyRewriter,
    DraftBuildGraph,
    FrozenBuildGraph,
    RewriteDecision,
    SkipReason,
)

# Planning
from buildaccel_core.planner import BuildGoal, BuildPlan, BuildPlanner

# Publishing
from buildaccel_core.publishing import Publisher, RepositoryKind, select_repository

# Schema models
from buildaccel_core.schemas import (
    AcceleratorProperties,
    ModuleSetting,
    PublishingConfig,
    WorkspaceSpec,
)

# Artifact store
from buildaccel_core.store import ArtifactSnapshot, ArtifactStore

# Workspace model
from buildaccel_core.workspace import Module, ModuleRegistry, WorkspaceClassification, classify

__all__ = [
    "__version__",
    # Configuration
    "load_accelerator_properties",
    "BuildContext",
    # Errors
    "BuildAccelError",
    "ConfigurationError",
    "ModuleNotFoundInWorkspaceError",
    "PlanFrozenError",
    "StepExecutionError",
    # Execution
    "BuildResult",
    "StepActions",
    "StepExecutor",
    "StepOutcome",
    "TimingReport",
    "TimingsRecorder",
    # Graph
    "DependencyRewriter",
    "DraftBuildGraph",
    "FrozenBuildGraph",
    "RewriteDecision",
    "SkipReason",
    # Planning
    "BuildGoal",
    "BuildPlan",
    "BuildPlanner",
    # Publishing
    "Publisher",
    "RepositoryKind",
    "select_repository",
    # Schemas
    "AcceleratorProperties",
    "ModuleSetting",
    "PublishingConfig",
    "WorkspaceSpec",
    # Store
    "ArtifactSnapshot",
    "ArtifactStore",
    # Workspace
    "Module",
    "ModuleRegistry",
    "WorkspaceClassification",
    "classify",
]
