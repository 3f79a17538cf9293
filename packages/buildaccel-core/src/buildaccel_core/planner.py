"""Two-phase build planner.

plan() runs the configuration phase of one build invocation and returns a
BuildPlan holding a frozen graph. Phases, in order:

1. configure: module edges, external edges and assemble steps; publications
   for the publish goal
2. snapshot: scan the artifact store, exactly once
3. rewrite: substitute Stable module dependencies against that snapshot
4. order: assemble -> assemble step edges for the remaining source edges
5. wire: publish steps wait for their assemble step
6. freeze

A disabled accelerator produces a pass-through plan: no snapshot, no
rewriting and no publications.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

from buildaccel_core.config import PROPERTIES_FILE_NAME, load_accelerator_properties
from buildaccel_core.context import BuildContext
from buildaccel_core.graph.build_graph import DraftBuildGraph, FrozenBuildGraph
from buildaccel_core.graph.models import (
    BuildStep,
    ExternalDependency,
    ModuleDependency,
    StepKind,
    assemble_step_id,
    split_configuration,
)
from buildaccel_core.graph.rewriter import DependencyRewriter, RewriteDecision
from buildaccel_core.observability import span
from buildaccel_core.publishing.publisher import PublicationDescriptor, Publisher
from buildaccel_core.schemas.module import BuildVariant
from buildaccel_core.schemas.properties import AcceleratorProperties
from buildaccel_core.schemas.workspace_spec import WorkspaceSpec
from buildaccel_core.store.artifact_store import ArtifactSnapshot, ArtifactStore
from buildaccel_core.workspace.classifier import classify
from buildaccel_core.workspace.registry import Module, ModuleRegistry

logger = structlog.get_logger(__name__)


class BuildGoal(str, Enum):
    """What a build invocation is for.

    Attributes:
        BUILD: Assemble Active modules (or the requested modules).
        PUBLISH: Assemble and publish Stable modules that have a ModuleSetting.
    """

    BUILD = "build"
    PUBLISH = "publish"


class BuildPlan(BaseModel):
    """Result of the configuration phase; the only input the executor accepts.

    Attributes:
        context: Build context of the invocation.
        goal: Build goal.
        decisions: Every rewrite decision, in consumer order.
        publications: Publications registered for the publish goal.
        graph: Frozen dependency and step graph.
        requested: Step identities to run, dependencies first.
        snapshot: Artifact snapshot the rewriter used.
        artifact_backed: Modules consumed only as artifacts; their assemble
            steps are disabled.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    context: BuildContext = Field(..., description="Build context")
    goal: BuildGoal = Field(..., description="Build goal")
    decisions: tuple[RewriteDecision, ...] = Field(default=(), description="Rewrite decisions")
    publications: tuple[PublicationDescriptor, ...] = Field(default=(), description="Publications")
    graph: FrozenBuildGraph = Field(..., description="Frozen build graph")
    requested: tuple[str, ...] = Field(default=(), description="Requested step closure")
    snapshot: ArtifactSnapshot = Field(..., description="Artifact snapshot")
    artifact_backed: frozenset[str] = Field(default=frozenset(), description="Artifact-backed modules")

    @property
    def substitutions(self) -> list[RewriteDecision]:
        """Decisions that replaced a source dependency."""
        return [d for d in self.decisions if d.substituted]

    @property
    def kept_as_source(self) -> list[RewriteDecision]:
        """Decisions that left a source dependency in place."""
        return [d for d in self.decisions if not d.substituted]

    def steps_to_run(self) -> list[BuildStep]:
        """Requested steps in execution order."""
        return [self.graph.step(step_id) for step_id in self.requested]


def match_target_variant(consumer: BuildVariant, target: Module) -> BuildVariant | None:
    """Pick the variant of a source dependency that a consumer variant builds against.

    An exact name match wins; otherwise a flavorless target variant with the
    same build type ("hkDebug" -> "debug").
    """
    exact = target.get_variant(consumer.name)
    if exact is not None:
        return exact
    for variant in target.variants:
        if variant.flavor is None and variant.build_type == consumer.build_type:
            return variant
    return None


class BuildPlanner:
    """Builds a BuildPlan for one invocation.

    Args:
        context: Immutable build context.
        store: Artifact store to snapshot. Defaults to the store declared
            in the workspace.

    Example:
        >>> planner = BuildPlanner.from_paths(Path("workspace.yaml"))
        >>> plan = planner.plan(BuildGoal.BUILD)
        >>> [d.target for d in plan.substitutions]
        [':infra:network']
    """

    def __init__(self, context: BuildContext, store: ArtifactStore | None = None) -> None:
        self.context = context
        self.store = store or ArtifactStore(
            context.store_root,
            extensions=context.spec.store.extensions,
        )
        self._log = logger.bind(component="build_planner")

    @classmethod
    def from_spec(
        cls,
        spec: WorkspaceSpec,
        properties: AcceleratorProperties,
        root: Path,
    ) -> BuildPlanner:
        """Create a planner from already loaded configuration."""
        registry = ModuleRegistry.from_spec(spec)
        context = BuildContext(
            root=root,
            spec=spec,
            properties=properties,
            registry=registry,
            classification=classify(registry, properties),
        )
        return cls(context)

    @classmethod
    def from_paths(
        cls,
        workspace_file: Path,
        properties_file: Path | None = None,
    ) -> BuildPlanner:
        """Load workspace.yaml and accelerator.properties and create a planner.

        Args:
            workspace_file: Path to workspace.yaml. Its directory is the
                workspace root.
            properties_file: Path to accelerator.properties. Defaults to the
                file next to workspace.yaml.

        Raises:
            FileNotFoundError: If workspace.yaml doesn't exist.
            yaml.YAMLError: If workspace.yaml is invalid YAML.
            pydantic.ValidationError: If workspace.yaml fails validation.
        """
        workspace_file = Path(workspace_file)
        spec = WorkspaceSpec.from_yaml(workspace_file)
        root = workspace_file.resolve().parent
        properties = load_accelerator_properties(properties_file or root / PROPERTIES_FILE_NAME)
        return cls.from_spec(spec, properties, root)

    def plan(
        self,
        goal: BuildGoal = BuildGoal.BUILD,
        targets: Iterable[str] | None = None,
        variants: Iterable[str] | None = None,
    ) -> BuildPlan:
        """Run the configuration phase and freeze the result.

        Args:
            goal: Build goal.
            targets: Module paths to build or publish. Defaults to the Active
                modules for BUILD and the publishable Stable modules for
                PUBLISH.
            variants: Restrict the requested steps to these variants.

        Returns:
            Immutable BuildPlan.

        Raises:
            ModuleNotFoundInWorkspaceError: If a target is unknown.
            ConfigurationError: If the step graph has a cycle.
        """
        context = self.context
        registry = context.registry
        target_modules = [registry.get(path) for path in targets] if targets else None
        variant_filter = set(variants) if variants else None
        modules = registry.buildable()

        draft = DraftBuildGraph()
        publisher = Publisher(context, draft, self.store)

        with span("plan_configure", attributes={"goal": goal.value, "modules": len(modules)}):
            for module in modules:
                self._configure_module(module, draft)
            publish_modules = self._publish_modules(goal, target_modules)
            for module in publish_modules:
                for variant in publisher.published_variants(module):
                    publisher.prepare_publication(module, variant)

        decisions: list[RewriteDecision] = []
        if context.enabled:
            with span("plan_snapshot", attributes={"store": str(self.store.root)}):
                snapshot = self.store.scan()
            with span("plan_rewrite"):
                rewriter = DependencyRewriter(context, snapshot)
                for consumer in modules:
                    decisions.extend(rewriter.rewrite(consumer, draft))
        else:
            snapshot = ArtifactSnapshot(self.store.root)
            self._log.info("accelerator_disabled_pass_through", goal=goal.value)

        with span("plan_order"):
            for consumer in modules:
                self._order_source_dependencies(consumer, draft)

        with span("plan_wire_publications"):
            for descriptor in publisher.publications:
                publisher.wire_assemble_dependency(registry.get(descriptor.module), descriptor.variant)

        published = {d.module for d in publisher.publications}
        artifact_backed = self._artifact_backed(decisions, draft, published)
        for path in sorted(artifact_backed):
            for step in draft.steps_of(path, "assemble"):
                draft.disable_step(step.id)

        with span("plan_freeze"):
            graph = draft.freeze()

        roots = self._requested_roots(goal, target_modules, variant_filter, publisher, graph)
        plan = BuildPlan(
            context=context,
            goal=goal,
            decisions=tuple(decisions),
            publications=tuple(publisher.publications),
            graph=graph,
            requested=graph.closure(roots),
            snapshot=snapshot,
            artifact_backed=frozenset(artifact_backed),
        )

        self._log.info(
            "build_planned",
            goal=goal.value,
            substituted=len(plan.substitutions),
            kept_as_source=len(plan.kept_as_source),
            publications=len(plan.publications),
            steps=len(plan.requested),
        )
        return plan

    def _configure_module(self, module: Module, draft: DraftBuildGraph) -> None:
        for dependency in module.dependencies:
            if dependency.is_module:
                draft.add_edge(
                    ModuleDependency(
                        consumer=module.path,
                        target=dependency.target,
                        configuration=dependency.configuration,
                    )
                )
            else:
                draft.add_edge(
                    ExternalDependency(
                        consumer=module.path,
                        coordinate=dependency.target,
                        configuration=dependency.configuration,
                    )
                )

        for variant in module.variants:
            draft.add_step(
                BuildStep(
                    id=assemble_step_id(module.path, variant.name),
                    module=module.path,
                    kind=StepKind.ASSEMBLE,
                    variant=variant.name,
                )
            )

    def _publish_modules(self, goal: BuildGoal, target_modules: list[Module] | None) -> list[Module]:
        if goal != BuildGoal.PUBLISH or not self.context.enabled:
            return []
        if target_modules is not None:
            return [m for m in target_modules if m.is_buildable]
        return [
            m
            for m in self.context.registry.buildable()
            if self.context.classification.is_stable(m.path)
            and self.context.module_setting(m) is not None
        ]

    def _order_source_dependencies(self, consumer: Module, draft: DraftBuildGraph) -> None:
        for edge in draft.module_dependencies(consumer.path):
            target = self.context.registry.find(edge.target)
            if target is None or not target.is_buildable:
                continue
            scope, _ = split_configuration(edge.configuration, consumer.configuration_scopes)
            for variant in consumer.variants_in(scope):
                matched = match_target_variant(variant, target)
                if matched is None:
                    self._log.warning(
                        "source_variant_unmatched",
                        consumer=consumer.path,
                        target=target.path,
                        variant=variant.name,
                    )
                    continue
                draft.add_step_dependency(
                    assemble_step_id(consumer.path, variant.name),
                    assemble_step_id(target.path, matched.name),
                )

    def _artifact_backed(
        self,
        decisions: list[RewriteDecision],
        draft: DraftBuildGraph,
        published: set[str],
    ) -> set[str]:
        substituted = {d.target for d in decisions if d.substituted}
        still_source = {
            edge.target
            for module in self.context.registry.buildable()
            for edge in draft.module_dependencies(module.path)
        }
        return {
            path
            for path in substituted - still_source - published
            if not self.context.classification.is_active(path)
        }

    def _requested_roots(
        self,
        goal: BuildGoal,
        target_modules: list[Module] | None,
        variant_filter: set[str] | None,
        publisher: Publisher,
        graph: FrozenBuildGraph,
    ) -> list[str]:
        if goal == BuildGoal.PUBLISH:
            return [
                step.id
                for step in graph.steps.values()
                if step.kind == StepKind.PUBLISH
                and (variant_filter is None or step.variant in variant_filter)
                and publisher.find_publication(step.module, step.variant) is not None
            ]

        if target_modules is None:
            target_modules = [
                m
                for m in self.context.registry.buildable()
                if self.context.classification.is_active(m.path)
            ]

        return [
            assemble_step_id(module.path, variant)
            for module in target_modules
            for variant in module.variant_names
            if variant_filter is None or variant in variant_filter
        ]
