"""Dependency edge and build step models.

Edges:
- ModuleDependency: source-level edge to another workspace module
- ArtifactDependency: variant-scoped edge to a published artifact coordinate
- ExternalDependency: edge to a third-party coordinate (never rewritten)

Steps:
- BuildStep: one executable unit (assemble or publish one module variant)
"""

from __future__ import annotations

from collections.abc import Collection
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from buildaccel_core.schemas.module import capitalize_first

# Prefix shared by every publish step of one variant
PUBLISH_STEP_PREFIX = "publish{Variant}PublicationTo"


class ModuleDependency(BaseModel):
    """Source-level dependency on a workspace module."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["module"] = "module"
    consumer: str = Field(..., description="Consumer module path")
    target: str = Field(..., description="Target module path")
    configuration: str = Field(default="implementation", description="Configuration name")


class ArtifactDependency(BaseModel):
    """Dependency on a published artifact, scoped to one variant configuration.

    Attributes:
        consumer: Consumer module path.
        coordinate: group:artifact-variant:version.
        variant: Variant this edge is scoped to.
        configuration: Variant configuration name ("debugImplementation").
        replaces: Path of the module whose source edge this replaces.
        excludes: group:artifact-variant pairs that must not be pulled transitively.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["artifact"] = "artifact"
    consumer: str = Field(..., description="Consumer module path")
    coordinate: str = Field(..., description="Artifact coordinate")
    variant: str = Field(..., description="Scoped variant")
    configuration: str = Field(..., description="Variant configuration name")
    replaces: str = Field(..., description="Replaced module path")
    excludes: frozenset[str] = Field(default=frozenset(), description="Excluded coordinates")


class ExternalDependency(BaseModel):
    """Dependency on a third-party coordinate."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["external"] = "external"
    consumer: str = Field(..., description="Consumer module path")
    coordinate: str = Field(..., description="External coordinate")
    configuration: str = Field(default="implementation", description="Configuration name")


DependencyEdge = Annotated[
    ModuleDependency | ArtifactDependency | ExternalDependency,
    Field(discriminator="kind"),
]


def variant_configuration(variant: str, configuration: str = "implementation") -> str:
    """Name of a variant-scoped configuration ("debug" -> "debugImplementation")."""
    return f"{variant}{capitalize_first(configuration)}"


def split_configuration(configuration: str, scopes: Collection[str]) -> tuple[str | None, str]:
    """Split a variant-scoped configuration into its variant and base name.

    The longest prefix naming one of ``scopes`` wins. Configurations without
    such a prefix are unscoped and reach every variant.

    Example:
        >>> split_configuration("hkDebugApi", {"hk", "debug", "hkDebug"})
        ('hkDebug', 'api')
        >>> split_configuration("implementation", {"debug"})
        (None, 'implementation')
    """
    cuts = [i for i, char in enumerate(configuration) if char.isupper()]
    for cut in reversed(cuts):
        if configuration[:cut] in scopes:
            base = configuration[cut:]
            return configuration[:cut], base[:1].lower() + base[1:]
    return None, configuration


class StepKind(str, Enum):
    """Kind of build step.

    Attributes:
        ASSEMBLE: Compile and package one module variant.
        PUBLISH: Copy one variant's output into a store or repository.
    """

    ASSEMBLE = "assemble"
    PUBLISH = "publish"


class BuildStep(BaseModel):
    """One executable unit of the build graph.

    Attributes:
        id: Step identity ("<module path>:<action>").
        module: Owning module path.
        kind: Step kind.
        variant: Variant the step works on.
        depends_on: Identities of steps that must finish first.
        repository: Publishing destination, for publish steps.
        enabled: Disabled steps stay in the graph but are not executed.

    Example:
        >>> step = BuildStep(
        ...     id=":feature:home:assembleDebug",
        ...     module=":feature:home",
        ...     kind=StepKind.ASSEMBLE,
        ...     variant="debug",
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Step identity")
    module: str = Field(..., description="Owning module path")
    kind: StepKind = Field(..., description="Step kind")
    variant: str = Field(..., description="Variant name")
    depends_on: frozenset[str] = Field(default=frozenset(), description="Step dependencies")
    repository: str | None = Field(default=None, description="Publishing destination")
    enabled: bool = Field(default=True, description="Whether the step runs")

    @property
    def action(self) -> str:
        """Action part of the identity ("assembleDebug")."""
        return self.id[len(self.module) + 1 :]


def assemble_step_id(module_path: str, variant: str) -> str:
    """Identity of the assemble step (":lib" + "debug" -> ":lib:assembleDebug")."""
    return f"{module_path}:assemble{capitalize_first(variant)}"


def publish_step_prefix(variant: str) -> str:
    """Action prefix shared by the publish steps of one variant."""
    return PUBLISH_STEP_PREFIX.format(Variant=capitalize_first(variant))


def publish_step_id(module_path: str, variant: str, destination: str) -> str:
    """Identity of a publish step, e.g. ":lib:publishDebugPublicationToLocalStore"."""
    return f"{module_path}:{publish_step_prefix(variant)}{destination}"
