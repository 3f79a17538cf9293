"""Accelerator properties model.

The accelerator is switched on and scoped by a small properties file
(accelerator.properties, Java properties syntax). This module defines the
validated form of those properties.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Property keys
ENABLE_KEY = "buildingAccelerator.enable"
WORKSPACE_KEY = "buildingAccelerator.workspace"
SKIP_PARENTS_KEY = "buildingAccelerator.skipParents"
DEFAULT_CLASSIFICATION_KEY = "buildingAccelerator.defaultClassification"

# Grouping paths that only exist for directory nesting
DEFAULT_SKIP_PARENT_PATHS = (":feature", ":infra", ":ui")


class ClassificationPolicy(str, Enum):
    """Classification of modules that the workspace list does not mention.

    Attributes:
        STABLE: Unlisted modules are Stable and may be artifact-backed.
        ACTIVE: Unlisted modules are Active and always built from source.
    """

    STABLE = "stable"
    ACTIVE = "active"


class AcceleratorProperties(BaseModel):
    """Validated accelerator properties.

    Attributes:
        enabled: Master switch. False makes the accelerator inert.
        workspace: Module paths under active development, or None when the
            property is absent (the default policy then applies to all).
        skip_parents: Extra grouping paths to exclude from classification.
        default_classification: Policy for modules not in the workspace list.
        source: Where the properties were read from, for diagnostics.

    Example:
        >>> props = AcceleratorProperties(enabled=True, workspace=(":feature:home",))
        >>> props.skip_parent_paths
        frozenset({':feature', ':infra', ':ui'})
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=False, description="Enable the accelerator")
    workspace: tuple[str, ...] | None = Field(
        default=None,
        description="Active module paths (None = property absent)",
    )
    skip_parents: tuple[str, ...] = Field(
        default=(),
        description="Extra grouping paths to skip",
    )
    default_classification: ClassificationPolicy = Field(
        default=ClassificationPolicy.STABLE,
        description="Classification of unlisted modules",
    )
    source: str | None = Field(default=None, description="Properties source")

    @property
    def skip_parent_paths(self) -> frozenset[str]:
        """Built-in grouping paths plus configured extras."""
        return frozenset(DEFAULT_SKIP_PARENT_PATHS) | frozenset(self.skip_parents)

    @classmethod
    def disabled(cls, source: str | None = None) -> AcceleratorProperties:
        """Properties for an inert accelerator (plain source build)."""
        return cls(enabled=False, source=source)
