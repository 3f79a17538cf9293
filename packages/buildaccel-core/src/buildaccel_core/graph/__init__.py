"""Build graph: dependency edges, steps, draft/frozen graphs and the rewriter."""

from __future__ import annotations

from buildaccel_core.graph.build_graph import DraftBuildGraph, FrozenBuildGraph
from buildaccel_core.graph.models import (
    ArtifactDependency,
    BuildStep,
    DependencyEdge,
    ExternalDependency,
    ModuleDependency,
    StepKind,
    assemble_step_id,
    publish_step_id,
    publish_step_prefix,
    split_configuration,
    variant_configuration,
)
from buildaccel_core.graph.rewriter import (
    DependencyRewriter,
    RewriteDecision,
    SkipReason,
    uncovered_variants,
)

__all__ = [
    "DraftBuildGraph",
    "FrozenBuildGraph",
    "ArtifactDependency",
    "BuildStep",
    "DependencyEdge",
    "ExternalDependency",
    "ModuleDependency",
    "StepKind",
    "assemble_step_id",
    "publish_step_id",
    "publish_step_prefix",
    "split_configuration",
    "variant_configuration",
    "DependencyRewriter",
    "RewriteDecision",
    "SkipReason",
    "uncovered_variants",
]
