"""Dependency rewriter.

Replaces source-level dependencies on Stable modules with variant-scoped
artifact dependencies. A dependency is rewritten only when every
precondition holds:

1. the target is a Stable library,
2. the target has a ModuleSetting that allows artifact use,
3. every consumer variant the dependency reaches is covered by exactly one
   required variant,
4. the artifact snapshot holds every required variant at the declared version.

A dependency in a variant-scoped configuration ("releaseImplementation")
only reaches the consumer variants in that scope, and its artifact edges
keep that scope.

When any precondition fails the source edge stays and the reason is
logged. All required variants are rewritten together, never a subset, and
the source edge is removed in the same step so both forms never coexist.
"""

from __future__ import annotations

from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field

from buildaccel_core.context import BuildContext
from buildaccel_core.graph.build_graph import DraftBuildGraph
from buildaccel_core.graph.models import (
    ArtifactDependency,
    ModuleDependency,
    split_configuration,
    variant_configuration,
)
from buildaccel_core.schemas.module import DEFAULT_CONFIGURATION, ModuleKind
from buildaccel_core.store.artifact_store import ArtifactSnapshot
from buildaccel_core.workspace.registry import Module

logger = structlog.get_logger(__name__)


class SkipReason(str, Enum):
    """Why a source dependency was left in place.

    Attributes:
        ACCELERATOR_DISABLED: The accelerator is switched off.
        NOT_STABLE: The target is Active (or not classified).
        NOT_A_LIBRARY: Only libraries can be consumed as artifacts.
        NO_MODULE_SETTING: The target has no publishing metadata.
        USE_ARTIFACT_DISABLED: The target's setting opts out of substitution.
        VARIANT_MISMATCH: Consumer and target variants do not line up.
        ARTIFACTS_MISSING: Some required variant has no artifact.
    """

    ACCELERATOR_DISABLED = "accelerator disabled"
    NOT_STABLE = "module not stable"
    NOT_A_LIBRARY = "module is not a library"
    NO_MODULE_SETTING = "no module setting"
    USE_ARTIFACT_DISABLED = "artifact use disabled"
    VARIANT_MISMATCH = "variant mismatch"
    ARTIFACTS_MISSING = "artifacts missing"


class RewriteDecision(BaseModel):
    """Outcome of evaluating one consumer -> target source dependency.

    Attributes:
        consumer: Consumer module path.
        target: Target module path.
        substituted: Whether the edge was replaced by artifact edges.
        reason: Failed precondition when not substituted.
        detail: Human-readable explanation.
        variants: Required variants of the target.
        coordinates: Artifact coordinates added, one per variant.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    consumer: str = Field(..., description="Consumer module path")
    target: str = Field(..., description="Target module path")
    substituted: bool = Field(..., description="Whether the edge was rewritten")
    reason: SkipReason | None = Field(default=None, description="Failed precondition")
    detail: str = Field(default="", description="Explanation")
    variants: tuple[str, ...] = Field(default=(), description="Required variants")
    coordinates: tuple[str, ...] = Field(default=(), description="Artifact coordinates")


def uncovered_variants(
    consumer: Module,
    required: tuple[str, ...],
    scope: str | None = None,
) -> list[str]:
    """Consumer variants not covered by exactly one required variant.

    A required variant covers a consumer variant when it names the variant
    itself, its build type or its flavor. Without a scope, required variants
    that cover nothing are reported as well, prefixed with "+". With a
    scope only the consumer variants that scope reaches are checked.

    Args:
        consumer: Consuming module.
        required: Required variant names of the target.
        scope: Variant prefix of the dependency's configuration, if any.

    Returns:
        Offending variant names; empty when the sets line up exactly.
    """
    problems: list[str] = []
    used: set[str] = set()
    variants = consumer.variants_in(scope)

    for variant in variants:
        covering = [r for r in required if variant.matches_configuration(r)]
        if len(covering) != 1:
            problems.append(variant.name)
        used.update(covering)

    if scope is None:
        problems.extend(f"+{r}" for r in required if r not in used)
    elif not variants:
        problems.append(f"{scope} reaches no variant")
    return problems


class DependencyRewriter:
    """Rewrites module dependencies against one artifact snapshot.

    The rewriter is created after the snapshot is taken and is used for
    every consumer of the build, so all modules see the same artifact
    availability.

    Example:
        >>> rewriter = DependencyRewriter(context, snapshot)
        >>> decisions = rewriter.rewrite(registry.get(":app"), draft_graph)
    """

    def __init__(self, context: BuildContext, snapshot: ArtifactSnapshot) -> None:
        self.context = context
        self.snapshot = snapshot
        self._exclusions = context.active_exclusions()
        self._log = logger.bind(component="dependency_rewriter")

    def evaluate(
        self,
        consumer: Module,
        target: Module,
        configuration: str = DEFAULT_CONFIGURATION,
    ) -> RewriteDecision:
        """Check every precondition for substituting one dependency.

        A configuration scoped to a variant ("releaseImplementation") only
        needs the required variants that reach the consumer variants in
        that scope.

        Args:
            consumer: Consuming module.
            target: Module the consumer depends on.
            configuration: Configuration of the source dependency.

        Returns:
            RewriteDecision with substituted=True when eligible. No graph
            change is made here.
        """

        def refuse(reason: SkipReason, detail: str) -> RewriteDecision:
            return RewriteDecision(
                consumer=consumer.path,
                target=target.path,
                substituted=False,
                reason=reason,
                detail=detail,
            )

        if not self.context.enabled:
            return refuse(SkipReason.ACCELERATOR_DISABLED, "accelerator is disabled")

        if not self.context.classification.is_stable(target.path):
            return refuse(SkipReason.NOT_STABLE, f"{target.path} is in the active workspace")

        if target.kind != ModuleKind.LIBRARY:
            return refuse(SkipReason.NOT_A_LIBRARY, f"{target.path} is {target.kind.value}")

        setting = self.context.module_setting(target)
        if setting is None:
            return refuse(
                SkipReason.NO_MODULE_SETTING,
                f"no module setting named '{target.name}'",
            )

        if not setting.use_artifact:
            return refuse(
                SkipReason.USE_ARTIFACT_DISABLED,
                f"module setting '{setting.name}' sets use_artifact: false",
            )

        scope, _ = split_configuration(configuration, consumer.configuration_scopes)
        required = self.context.required_variants(target)
        mismatched = uncovered_variants(consumer, required, scope)
        if not required or mismatched:
            reached = [v.name for v in consumer.variants_in(scope)]
            return refuse(
                SkipReason.VARIANT_MISMATCH,
                f"required variants {list(required)} do not match "
                f"{consumer.path} variants {reached} in {configuration} "
                f"(offending: {', '.join(mismatched) or 'none declared'})",
            )

        if scope is not None:
            in_scope = consumer.variants_in(scope)
            required = tuple(
                r for r in required if any(v.matches_configuration(r) for v in in_scope)
            )

        missing = self.snapshot.missing_variants(target.name, required, setting.version)
        if missing or not self.snapshot.all_variants_present(
            target.name, required, setting.version
        ):
            return refuse(
                SkipReason.ARTIFACTS_MISSING,
                f"artifacts missing for variant(s) {', '.join(missing)} "
                f"at version {setting.version}",
            )

        return RewriteDecision(
            consumer=consumer.path,
            target=target.path,
            substituted=True,
            detail=f"replaced by {len(required)} artifact(s) at version {setting.version}",
            variants=required,
            coordinates=tuple(setting.coordinate(v) for v in required),
        )

    def rewrite(self, consumer: Module, graph: DraftBuildGraph) -> list[RewriteDecision]:
        """Rewrite the source dependencies of one consumer.

        Only module-to-module edges are considered; external and artifact
        edges are left alone, which makes a second call a no-op.

        Args:
            consumer: Consuming module.
            graph: Draft graph of the configuration phase.

        Returns:
            One decision per evaluated source dependency.
        """
        decisions: list[RewriteDecision] = []

        for edge in graph.module_dependencies(consumer.path):
            target = self.context.registry.find(edge.target)
            if target is None:
                self._log.warning(
                    "dependency_target_unknown",
                    consumer=consumer.path,
                    target=edge.target,
                )
                continue

            decision = self.evaluate(consumer, target, edge.configuration)
            decisions.append(decision)

            if not decision.substituted:
                self._log.info(
                    "dependency_kept_as_source",
                    consumer=consumer.path,
                    target=target.path,
                    reason=decision.reason.value if decision.reason else None,
                    detail=decision.detail,
                )
                continue

            self._substitute(consumer, edge, decision, graph)

        return decisions

    def _substitute(
        self,
        consumer: Module,
        edge: ModuleDependency,
        decision: RewriteDecision,
        graph: DraftBuildGraph,
    ) -> None:
        scope, base = split_configuration(edge.configuration, consumer.configuration_scopes)
        in_scope = consumer.variants_in(scope)

        for variant, coordinate in zip(decision.variants, decision.coordinates, strict=True):
            if scope is None:
                configurations = [variant_configuration(variant, edge.configuration)]
            else:
                # Narrow "hkImplementation" to "hkDebugImplementation" when the
                # artifact variant only reaches part of the scope
                reached = [v for v in in_scope if v.matches_configuration(variant)]
                if len(reached) == len(in_scope):
                    configurations = [edge.configuration]
                else:
                    configurations = [variant_configuration(v.name, base) for v in reached]

            for configuration in configurations:
                artifact_edge = ArtifactDependency(
                    consumer=edge.consumer,
                    coordinate=coordinate,
                    variant=variant,
                    configuration=configuration,
                    replaces=edge.target,
                    excludes=self._exclusions,
                )
                graph.add_edge(artifact_edge)
                self._log.info(
                    "dependency_rewritten",
                    consumer=edge.consumer,
                    configuration=configuration,
                    coordinate=coordinate,
                )

        graph.remove_edge(edge)
