"""Workspace classifier.

Partitions modules into Active (built from source) and Stable (eligible
for artifact substitution) from the accelerator properties. The result is
computed once per build invocation and never changes afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from buildaccel_core.schemas.properties import AcceleratorProperties, ClassificationPolicy
from buildaccel_core.workspace.registry import Module

logger = structlog.get_logger(__name__)


class WorkspaceClassification(BaseModel):
    """Active/Stable partition of the workspace.

    Attributes:
        active: Paths of modules built from source.
        stable: Paths of modules eligible for artifact substitution.
        skipped: Grouping paths excluded from classification.
        unknown: Workspace list entries that name no module.
        policy: Policy applied to modules the workspace list does not mention.
        enabled: False when the accelerator is inert.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    active: frozenset[str] = Field(default=frozenset(), description="Active module paths")
    stable: frozenset[str] = Field(default=frozenset(), description="Stable module paths")
    skipped: frozenset[str] = Field(default=frozenset(), description="Skipped grouping paths")
    unknown: tuple[str, ...] = Field(default=(), description="Unknown workspace entries")
    policy: ClassificationPolicy = Field(
        default=ClassificationPolicy.STABLE,
        description="Policy for unlisted modules",
    )
    enabled: bool = Field(default=True, description="Accelerator enabled")

    def is_active(self, path: str) -> bool:
        """Whether the module is built from source."""
        return path in self.active

    def is_stable(self, path: str) -> bool:
        """Whether the module may be replaced by artifacts."""
        return path in self.stable


def classify(
    modules: Iterable[Module],
    properties: AcceleratorProperties,
) -> WorkspaceClassification:
    """Partition modules into Active and Stable.

    Modules named by the workspace list are Active. Modules it does not name
    follow the configured default policy, which also applies to every module
    when the list is absent. Grouping paths and Unbuildable modules are in
    neither partition. A disabled accelerator classifies every buildable
    module as Active, which is the same as a plain source build.

    Args:
        modules: Every module of the workspace.
        properties: Validated accelerator properties.

    Returns:
        Immutable WorkspaceClassification.

    Example:
        >>> props = AcceleratorProperties(enabled=True, workspace=(":feature:home",))
        >>> result = classify(registry, props)
        >>> result.is_active(":feature:home")
        True
    """
    log = logger.bind(component="workspace_classifier")
    skip_paths = properties.skip_parent_paths

    active: set[str] = set()
    stable: set[str] = set()
    skipped: set[str] = set()
    known: set[str] = set()

    listed = set(properties.workspace) if properties.workspace is not None else set()
    default_active = properties.default_classification == ClassificationPolicy.ACTIVE

    for module in modules:
        known.add(module.path)
        if module.path in skip_paths or not module.is_buildable:
            skipped.add(module.path)
            continue

        if not properties.enabled or module.path in listed or default_active:
            active.add(module.path)
        else:
            stable.add(module.path)

    unknown = tuple(path for path in (properties.workspace or ()) if path not in known)
    for path in unknown:
        log.warning("workspace_entry_unknown", path=path)
    for path in sorted(listed & skipped):
        log.warning("workspace_entry_not_buildable", path=path)

    result = WorkspaceClassification(
        active=frozenset(active),
        stable=frozenset(stable),
        skipped=frozenset(skipped),
        unknown=unknown,
        policy=properties.default_classification,
        enabled=properties.enabled,
    )

    log.info(
        "workspace_classified",
        enabled=properties.enabled,
        policy=properties.default_classification.value,
        workspace_list="unset" if properties.workspace is None else ",".join(properties.workspace),
        active=sorted(result.active),
        stable=sorted(result.stable),
    )
    return result
