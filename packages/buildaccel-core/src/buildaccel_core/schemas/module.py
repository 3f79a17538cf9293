"""Module declaration models for workspace.yaml.

This module defines how a buildable unit is declared:
- ModuleKind: Application, Library or Unbuildable (grouping node)
- BuildVariant: One flavor/build-type combination
- DependencyDeclaration: A source-level or external dependency
- ModuleDeclaration: One module entry in workspace.yaml

The kind of a module is taken from its declaration once. Nothing downstream
inspects a module to find out what it is.
"""

from __future__ import annotations

import itertools
import re
import shlex
import string
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Module paths look like ":feature:home"
MODULE_PATH_PATTERN = r"^(:[a-zA-Z0-9_][a-zA-Z0-9_-]*)+$"

# Build types and flavors become part of artifact filenames, so no "-"
VARIANT_AXIS_PATTERN = r"^[a-z][a-zA-Z0-9]*$"

# Separator inside module directory names (":feature:new-payments")
NAME_SEPARATOR = "-"

DEFAULT_BUILD_TYPES = ("debug", "release")

DEFAULT_CONFIGURATION = "implementation"

# Placeholders accepted by command and output templates
ASSEMBLE_PLACEHOLDERS = frozenset({"path", "name", "dir", "variant", "Variant"})
OUTPUT_PLACEHOLDERS = frozenset({"dir", "name", "variant", "ext"})


def check_template(template: str, allowed: frozenset[str]) -> None:
    """Reject templates that str.format cannot fill from the allowed names.

    Literal braces must be doubled ("${{HOME}}").

    Args:
        template: Template string.
        allowed: Placeholder names the template may use.

    Raises:
        ValueError: On malformed braces or an unknown placeholder.
    """
    try:
        fields = [field for _, field, _, _ in string.Formatter().parse(template)]
    except ValueError as e:
        raise ValueError(f"Malformed template '{template}': {e}") from None

    for field in fields:
        if field is not None and field not in allowed:
            raise ValueError(
                f"Unknown placeholder '{{{field}}}' in '{template}'. "
                f"Allowed: {', '.join(sorted(allowed))} (write literal braces as '{{{{' and '}}}}')"
            )


class ModuleKind(str, Enum):
    """Kind of a workspace module.

    Attributes:
        APPLICATION: Final application; consumes libraries, never substituted.
        LIBRARY: Reusable library; may be published and substituted.
        UNBUILDABLE: Organizational grouping node, never built.
    """

    APPLICATION = "application"
    LIBRARY = "library"
    UNBUILDABLE = "unbuildable"


def to_module_name(path: str) -> str:
    """Derive the camel-case module name from a module path.

    The last path segment is split on "-", each part is lower-cased and
    capitalized, and the first letter of the result is lower-cased.

    Args:
        path: Module path, e.g. ":feature:new-payments".

    Returns:
        Module name, e.g. "newPayments".

    Example:
        >>> to_module_name(":infra:network")
        'network'
        >>> to_module_name(":feature:New-Payments")
        'newPayments'
    """
    segment = path.rstrip(":").rsplit(":", 1)[-1]
    camel = "".join(part.lower().capitalize() for part in segment.split(NAME_SEPARATOR) if part)
    return camel[:1].lower() + camel[1:]


def capitalize_first(value: str) -> str:
    """Upper-case only the first character ("hkDebug" -> "HkDebug")."""
    return value[:1].upper() + value[1:]


class BuildVariant(BaseModel):
    """One build variant of a module.

    Attributes:
        name: Variant name ("debug", "hkRelease").
        build_type: Build type axis value ("debug", "release").
        flavor: Product flavor axis value, if the module has flavors.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Variant name")
    build_type: str = Field(..., min_length=1, description="Build type")
    flavor: str | None = Field(default=None, description="Product flavor")

    @property
    def capitalized(self) -> str:
        """Variant name with its first letter upper-cased, for step names."""
        return capitalize_first(self.name)

    def matches_configuration(self, configuration_variant: str) -> bool:
        """Check whether a variant-scoped configuration applies to this variant.

        Follows source-set semantics: a "debug" configuration applies to
        "hkDebug" and "sgDebug", a "hk" configuration applies to "hkDebug"
        and "hkRelease", and a full variant name applies to itself.

        Args:
            configuration_variant: Variant part of a scoped configuration.

        Returns:
            True if dependencies in that configuration reach this variant.
        """
        return configuration_variant in (self.name, self.build_type, self.flavor)


def compose_variants(flavors: list[str], build_types: list[str]) -> tuple[BuildVariant, ...]:
    """Compose the variants of a module from its flavors and build types.

    Args:
        flavors: Product flavors (may be empty).
        build_types: Build types.

    Returns:
        One variant per flavor/build-type combination, flavors varying slowest.

    Example:
        >>> [v.name for v in compose_variants(["hk", "sg"], ["debug", "release"])]
        ['hkDebug', 'hkRelease', 'sgDebug', 'sgRelease']
    """
    if not flavors:
        return tuple(BuildVariant(name=bt, build_type=bt) for bt in build_types)

    return tuple(
        BuildVariant(name=f"{flavor}{capitalize_first(bt)}", build_type=bt, flavor=flavor)
        for flavor, bt in itertools.product(flavors, build_types)
    )


class DependencyDeclaration(BaseModel):
    """A dependency declared by a module.

    The target is either a module path (":infra:network") or an external
    coordinate ("com.google.code.gson:gson:2.10.1").

    Attributes:
        target: Module path or external coordinate.
        configuration: Dependency configuration name.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: str = Field(..., min_length=1, description="Module path or coordinate")
    configuration: str = Field(
        default=DEFAULT_CONFIGURATION,
        min_length=1,
        description="Dependency configuration name",
    )

    @property
    def is_module(self) -> bool:
        """Whether the target is a workspace module rather than a coordinate."""
        return self.target.startswith(":")

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        """Module paths must be well formed; coordinates need group:artifact:version."""
        if v.startswith(":"):
            if not re.match(MODULE_PATH_PATTERN, v):
                raise ValueError(f"Invalid module path '{v}'")
        elif len(v.split(":")) < 3:
            raise ValueError(
                f"Invalid dependency '{v}'. Expected a module path (':lib') "
                "or a 'group:artifact:version' coordinate"
            )
        return v


class ModuleDeclaration(BaseModel):
    """One module entry in workspace.yaml.

    Attributes:
        path: Module path (":feature:home").
        kind: Module kind.
        build_types: Build types of the module.
        flavors: Product flavors of the module.
        dependencies: Declared dependencies.
        assemble: Optional command template run by the assemble step.
            Placeholders: {path}, {name}, {dir}, {variant}, {Variant}.
        output: Optional output path template, relative to the workspace
            root. Placeholders: {dir}, {name}, {variant}, {ext}.

    Example:
        >>> ModuleDeclaration(
        ...     path=":feature:home",
        ...     kind="library",
        ...     dependencies=[":infra:network"],
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., pattern=MODULE_PATH_PATTERN, description="Module path")
    kind: ModuleKind = Field(default=ModuleKind.LIBRARY, description="Module kind")
    build_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BUILD_TYPES),
        description="Build types",
    )
    flavors: list[str] = Field(default_factory=list, description="Product flavors")
    dependencies: list[DependencyDeclaration] = Field(
        default_factory=list,
        description="Declared dependencies",
    )
    assemble: str | None = Field(default=None, description="Assemble command template")
    output: str | None = Field(default=None, description="Output path template")

    @field_validator("dependencies", mode="before")
    @classmethod
    def coerce_dependencies(cls, v: Any) -> Any:
        """Allow plain strings as shorthand for implementation dependencies."""
        if not isinstance(v, list):
            return v
        return [{"target": item} if isinstance(item, str) else item for item in v]

    @field_validator("build_types", "flavors")
    @classmethod
    def validate_axis_names(cls, v: list[str]) -> list[str]:
        """Variant axis values must be camel-case identifiers without '-'."""
        for name in v:
            if not re.match(VARIANT_AXIS_PATTERN, name):
                raise ValueError(
                    f"Invalid variant axis value '{name}'. "
                    f"Values must match pattern: {VARIANT_AXIS_PATTERN}"
                )
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate variant axis values: {v}")
        return v

    @field_validator("assemble")
    @classmethod
    def validate_assemble(cls, v: str | None) -> str | None:
        """Command templates must fill cleanly and split into arguments."""
        if v is None:
            return v
        check_template(v, ASSEMBLE_PLACEHOLDERS)
        try:
            shlex.split(v)
        except ValueError as e:
            raise ValueError(f"Assemble command '{v}' cannot be split: {e}") from None
        return v

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: str | None) -> str | None:
        if v is not None:
            check_template(v, OUTPUT_PLACEHOLDERS)
        return v

    @model_validator(mode="after")
    def validate_buildable(self) -> ModuleDeclaration:
        """Buildable modules need at least one build type; grouping nodes need none."""
        if self.kind != ModuleKind.UNBUILDABLE and not self.build_types:
            raise ValueError(f"Module '{self.path}' must declare at least one build type")
        if self.kind == ModuleKind.UNBUILDABLE and self.dependencies:
            raise ValueError(f"Unbuildable module '{self.path}' cannot declare dependencies")
        return self

    @property
    def name(self) -> str:
        """Camel-case module name derived from the path."""
        return to_module_name(self.path)

    def variants(self) -> tuple[BuildVariant, ...]:
        """Variants of this module; grouping nodes have none."""
        if self.kind == ModuleKind.UNBUILDABLE:
            return ()
        return compose_variants(self.flavors, self.build_types)
