"""Module registry for a workspace.

The registry turns WorkspaceSpec declarations into immutable Module
objects, once per build invocation. Grouping paths implied by nesting
(":feature" for ":feature:home") are registered as Unbuildable modules so
every path in the workspace has exactly one Module.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buildaccel_core.errors import ModuleNotFoundInWorkspaceError
from buildaccel_core.schemas.module import (
    ASSEMBLE_PLACEHOLDERS,
    OUTPUT_PLACEHOLDERS,
    BuildVariant,
    DependencyDeclaration,
    ModuleDeclaration,
    ModuleKind,
    check_template,
    to_module_name,
)
from buildaccel_core.schemas.workspace_spec import WorkspaceSpec

# Output location used when a module declares no output template
DEFAULT_OUTPUT_TEMPLATE = "{dir}/build/outputs/{ext}/{name}-{variant}.{ext}"


class Module(BaseModel):
    """An immutable buildable unit of the workspace.

    Attributes:
        path: Unique module path (":feature:home").
        name: Camel-case module name ("home").
        kind: Module kind, decided from the declaration.
        variants: Build variants in declaration order.
        dependencies: Declared dependencies.
        assemble: Assemble command template, if any.
        output: Output path template, if any.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., description="Module path")
    name: str = Field(..., description="Module name")
    kind: ModuleKind = Field(..., description="Module kind")
    variants: tuple[BuildVariant, ...] = Field(default=(), description="Build variants")
    dependencies: tuple[DependencyDeclaration, ...] = Field(
        default=(),
        description="Declared dependencies",
    )
    assemble: str | None = Field(default=None, description="Assemble command template")
    output: str | None = Field(default=None, description="Output path template")

    @field_validator("assemble")
    @classmethod
    def validate_assemble(cls, v: str | None) -> str | None:
        if v is not None:
            check_template(v, ASSEMBLE_PLACEHOLDERS)
        return v

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: str | None) -> str | None:
        if v is not None:
            check_template(v, OUTPUT_PLACEHOLDERS)
        return v

    @property
    def is_buildable(self) -> bool:
        """Whether the module produces build outputs."""
        return self.kind != ModuleKind.UNBUILDABLE

    @property
    def directory(self) -> str:
        """Relative directory of the module (":feature:home" -> "feature/home")."""
        return self.path.strip(":").replace(":", "/")

    @property
    def variant_names(self) -> tuple[str, ...]:
        """Names of the module's variants."""
        return tuple(variant.name for variant in self.variants)

    @property
    def configuration_scopes(self) -> frozenset[str]:
        """Prefixes of variant-scoped configurations: names, build types and flavors."""
        return frozenset(
            axis
            for variant in self.variants
            for axis in (variant.name, variant.build_type, variant.flavor)
            if axis
        )

    def variants_in(self, scope: str | None) -> tuple[BuildVariant, ...]:
        """Variants reached by a configuration scoped to ``scope``; all when unscoped."""
        if scope is None:
            return self.variants
        return tuple(v for v in self.variants if v.matches_configuration(scope))

    def get_variant(self, name: str) -> BuildVariant | None:
        """Find a variant by name."""
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None

    def output_path(self, root: Path, variant: str, extension: str) -> Path:
        """Location of the build output for one variant.

        Args:
            root: Workspace root directory.
            variant: Variant name.
            extension: Artifact file extension.

        Returns:
            Absolute path of the expected output file. It may not exist yet.
        """
        template = self.output or DEFAULT_OUTPUT_TEMPLATE
        relative = template.format(
            dir=self.directory,
            name=self.name,
            variant=variant,
            ext=extension,
        )
        return root / relative

    @classmethod
    def from_declaration(cls, declaration: ModuleDeclaration) -> Module:
        """Create a Module from its workspace.yaml declaration."""
        return cls(
            path=declaration.path,
            name=declaration.name,
            kind=declaration.kind,
            variants=declaration.variants(),
            dependencies=tuple(declaration.dependencies),
            assemble=declaration.assemble,
            output=declaration.output,
        )

    @classmethod
    def grouping(cls, path: str) -> Module:
        """Create an implicit Unbuildable grouping module."""
        return cls(path=path, name=to_module_name(path), kind=ModuleKind.UNBUILDABLE)


def parent_paths(path: str) -> list[str]:
    """All ancestor paths of a module path, outermost first.

    Example:
        >>> parent_paths(":feature:home:ui")
        [':feature', ':feature:home']
    """
    segments = path.strip(":").split(":")
    return [":" + ":".join(segments[:i]) for i in range(1, len(segments))]


class ModuleRegistry:
    """Immutable registry of every module in the workspace.

    Example:
        >>> registry = ModuleRegistry.from_spec(spec)
        >>> registry.get(":feature:home").kind
        <ModuleKind.LIBRARY: 'library'>
    """

    def __init__(self, modules: list[Module]) -> None:
        self._modules: dict[str, Module] = {}
        for module in modules:
            self._modules.setdefault(module.path, module)

        for module in list(self._modules.values()):
            for parent in parent_paths(module.path):
                self._modules.setdefault(parent, Module.grouping(parent))

        self._by_name = {m.name: m for m in self._modules.values() if m.is_buildable}

    @classmethod
    def from_spec(cls, spec: WorkspaceSpec) -> ModuleRegistry:
        """Build the registry from a validated WorkspaceSpec."""
        return cls([Module.from_declaration(d) for d in spec.modules])

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, path: object) -> bool:
        return path in self._modules

    @property
    def paths(self) -> list[str]:
        """Every registered path in registration order."""
        return list(self._modules)

    def buildable(self) -> list[Module]:
        """Modules that produce build outputs."""
        return [m for m in self._modules.values() if m.is_buildable]

    def find(self, path: str) -> Module | None:
        """Look up a module by path, returning None if unknown."""
        return self._modules.get(path)

    def get(self, path: str) -> Module:
        """Look up a module by path.

        Raises:
            ModuleNotFoundInWorkspaceError: If the path is unknown.
        """
        module = self._modules.get(path)
        if module is None:
            raise ModuleNotFoundInWorkspaceError(path, self.paths)
        return module

    def by_name(self, name: str) -> Module | None:
        """Look up a buildable module by its camel-case name."""
        return self._by_name.get(name)

    def dependents_of(self, path: str) -> list[Module]:
        """Modules that declare a source dependency on the given path."""
        return [
            m
            for m in self._modules.values()
            if any(d.is_module and d.target == path for d in m.dependencies)
        ]
