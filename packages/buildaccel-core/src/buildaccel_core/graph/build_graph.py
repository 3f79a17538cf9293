"""Draft and frozen build graphs.

The configuration phase works on a DraftBuildGraph: edges are added and
removed by the rewriter, steps by the planner and the publisher. freeze()
ends the configuration phase and returns a FrozenBuildGraph, the only
graph type the executor accepts. The draft refuses any change afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from graphlib import CycleError, TopologicalSorter
from types import MappingProxyType

import structlog

from buildaccel_core.errors import ConfigurationError, PlanFrozenError
from buildaccel_core.graph.models import (
    ArtifactDependency,
    BuildStep,
    DependencyEdge,
    ModuleDependency,
)

logger = structlog.get_logger(__name__)


class DraftBuildGraph:
    """Mutable dependency and step graph of the configuration phase.

    Example:
        >>> graph = DraftBuildGraph()
        >>> graph.add_edge(ModuleDependency(consumer=":app", target=":lib"))
        True
        >>> frozen = graph.freeze()
    """

    def __init__(self) -> None:
        self._edges: dict[str, list[DependencyEdge]] = {}
        self._steps: dict[str, BuildStep] = {}
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        """Whether freeze() has been called."""
        return self._frozen

    def _check_mutable(self, operation: str) -> None:
        if self._frozen:
            raise PlanFrozenError(operation)

    # Edges

    def add_edge(self, edge: DependencyEdge) -> bool:
        """Add an edge unless an equal edge exists.

        Returns:
            True if the edge was added.
        """
        self._check_mutable("add_edge")
        edges = self._edges.setdefault(edge.consumer, [])
        if edge in edges:
            return False
        edges.append(edge)
        return True

    def remove_edge(self, edge: DependencyEdge) -> bool:
        """Remove an edge if present.

        Returns:
            True if the edge was removed.
        """
        self._check_mutable("remove_edge")
        edges = self._edges.get(edge.consumer, [])
        if edge not in edges:
            return False
        edges.remove(edge)
        return True

    def edges_of(self, consumer: str) -> list[DependencyEdge]:
        """Copy of the edges declared by a consumer."""
        return list(self._edges.get(consumer, []))

    def module_dependencies(self, consumer: str) -> list[ModuleDependency]:
        """Source-level edges of a consumer."""
        return [e for e in self._edges.get(consumer, []) if isinstance(e, ModuleDependency)]

    def artifact_dependencies(self, consumer: str) -> list[ArtifactDependency]:
        """Artifact edges of a consumer."""
        return [e for e in self._edges.get(consumer, []) if isinstance(e, ArtifactDependency)]

    # Steps

    def add_step(self, step: BuildStep) -> BuildStep:
        """Register a step, reusing an existing step with the same identity.

        Returns:
            The registered step.
        """
        self._check_mutable("add_step")
        return self._steps.setdefault(step.id, step)

    def find_step(self, step_id: str) -> BuildStep | None:
        """Look up a step by identity."""
        return self._steps.get(step_id)

    def remove_step(self, step_id: str) -> BuildStep | None:
        """Remove a step and every reference to it."""
        self._check_mutable("remove_step")
        removed = self._steps.pop(step_id, None)
        if removed is None:
            return None
        for other_id, other in list(self._steps.items()):
            if step_id in other.depends_on:
                self._steps[other_id] = other.model_copy(
                    update={"depends_on": other.depends_on - {step_id}}
                )
        return removed

    def add_step_dependency(self, step_id: str, depends_on: str) -> None:
        """Make one step wait for another.

        Raises:
            KeyError: If either step is unknown.
        """
        self._check_mutable("add_step_dependency")
        step = self._steps[step_id]
        if depends_on not in self._steps:
            raise KeyError(depends_on)
        if depends_on not in step.depends_on:
            self._steps[step_id] = step.model_copy(
                update={"depends_on": step.depends_on | {depends_on}}
            )

    def disable_step(self, step_id: str) -> None:
        """Keep a step in the graph but mark it as not to be executed.

        Raises:
            KeyError: If the step is unknown.
        """
        self._check_mutable("disable_step")
        self._steps[step_id] = self._steps[step_id].model_copy(update={"enabled": False})

    def steps(self) -> list[BuildStep]:
        """Every registered step in registration order."""
        return list(self._steps.values())

    def steps_of(self, module_path: str, action_prefix: str = "") -> list[BuildStep]:
        """Steps of one module whose action starts with a prefix."""
        return [
            s
            for s in self._steps.values()
            if s.module == module_path and s.action.startswith(action_prefix)
        ]

    def freeze(self) -> FrozenBuildGraph:
        """End the configuration phase.

        Returns:
            FrozenBuildGraph with the final edges and steps.

        Raises:
            ConfigurationError: If step dependencies form a cycle.
        """
        self._check_mutable("freeze")
        frozen = FrozenBuildGraph(self._edges, self._steps)
        self._frozen = True
        logger.debug(
            "build_graph_frozen",
            consumers=len(self._edges),
            steps=len(self._steps),
        )
        return frozen


class FrozenBuildGraph:
    """Read-only dependency and step graph of the execution phase."""

    def __init__(
        self,
        edges: Mapping[str, Iterable[DependencyEdge]],
        steps: Mapping[str, BuildStep],
    ) -> None:
        self._edges: Mapping[str, tuple[DependencyEdge, ...]] = MappingProxyType(
            {consumer: tuple(items) for consumer, items in edges.items()}
        )
        self._steps: Mapping[str, BuildStep] = MappingProxyType(dict(steps))
        self._order = self._topological_order()

    def _topological_order(self) -> tuple[str, ...]:
        sorter: TopologicalSorter[str] = TopologicalSorter()
        for step in self._steps.values():
            sorter.add(step.id, *sorted(step.depends_on))
        try:
            return tuple(s for s in sorter.static_order() if s in self._steps)
        except CycleError as e:
            cycle = " -> ".join(e.args[1]) if len(e.args) > 1 else "unknown"
            raise ConfigurationError(
                "Build steps form a dependency cycle",
                internal_details=cycle,
            ) from e

    @property
    def edges(self) -> Mapping[str, tuple[DependencyEdge, ...]]:
        """Read-only mapping of consumer path to edges."""
        return self._edges

    @property
    def steps(self) -> Mapping[str, BuildStep]:
        """Read-only mapping of step identity to step."""
        return self._steps

    @property
    def order(self) -> tuple[str, ...]:
        """Every step identity, dependencies first."""
        return self._order

    def edges_of(self, consumer: str) -> tuple[DependencyEdge, ...]:
        """Edges declared by a consumer."""
        return self._edges.get(consumer, ())

    def step(self, step_id: str) -> BuildStep:
        """Look up a step.

        Raises:
            KeyError: If the step is unknown.
        """
        return self._steps[step_id]

    def closure(self, roots: Iterable[str]) -> tuple[str, ...]:
        """Roots plus everything they depend on, dependencies first.

        Args:
            roots: Step identities to run. Unknown identities are ignored.

        Returns:
            Step identities in execution order.
        """
        needed: set[str] = set()
        stack = [r for r in roots if r in self._steps]
        while stack:
            step_id = stack.pop()
            if step_id in needed or step_id not in self._steps:
                continue
            needed.add(step_id)
            stack.extend(self._steps[step_id].depends_on - needed)
        return tuple(step_id for step_id in self._order if step_id in needed)
