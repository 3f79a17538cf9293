"""Publishing configuration models.

This module defines per-module publishing metadata and the repositories
artifacts are published to:
- ModuleSetting: group/artifact coordinates, version and variants of a module
- PublishingConfig: repositories plus the list of ModuleSettings

A module without a ModuleSetting is never substituted and never published.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Maven-style coordinate parts: no ":" and no whitespace
COORDINATE_PART_PATTERN = r"^[A-Za-z0-9_.-]+$"

# Module names are camel-case (see schemas.module.to_module_name)
MODULE_NAME_PATTERN = r"^[a-z][a-zA-Z0-9]*$"

DEFAULT_ARTIFACT_EXTENSION = "aar"


class ModuleSetting(BaseModel):
    """Publishing metadata for one module.

    Attributes:
        name: Camel-case module name this setting applies to.
        group_id: Group coordinate.
        artifact_id: Artifact coordinate (the variant is appended to it).
        version: Version string. Versions ending in SNAPSHOT are pre-releases.
        use_artifact: Whether the module may be consumed as an artifact when
            it is Stable. False keeps it source-built but still publishable.
        build_variants: Explicit variants to publish and require. Empty means
            every variant of the module.

    Example:
        >>> setting = ModuleSetting(
        ...     name="network",
        ...     group_id="cn.behring",
        ...     artifact_id="network",
        ...     version="1.0.0",
        ... )
        >>> setting.coordinate("debug")
        'cn.behring:network-debug:1.0.0'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., pattern=MODULE_NAME_PATTERN, description="Module name")
    group_id: str = Field(..., pattern=COORDINATE_PART_PATTERN, description="Group coordinate")
    artifact_id: str = Field(
        ...,
        pattern=COORDINATE_PART_PATTERN,
        description="Artifact coordinate",
    )
    version: str = Field(..., min_length=1, pattern=r"^\S+$", description="Version string")
    use_artifact: bool = Field(default=True, description="Consume as artifact when Stable")
    build_variants: list[str] = Field(
        default_factory=list,
        description="Variants to publish (empty = all)",
    )

    @field_validator("build_variants")
    @classmethod
    def validate_variants(cls, v: list[str]) -> list[str]:
        """Variant names must be unique and free of '-'."""
        for name in v:
            if not name or "-" in name:
                raise ValueError(f"Invalid variant name '{name}'")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate build variants: {v}")
        return v

    def artifact_id_for(self, variant: str) -> str:
        """Artifact coordinate of one variant ("home" -> "home-debug")."""
        return f"{self.artifact_id}-{variant}"

    def coordinate(self, variant: str) -> str:
        """Full coordinate of one variant, group:artifact-variant:version."""
        return f"{self.group_id}:{self.artifact_id_for(variant)}:{self.version}"


class PublishingConfig(BaseModel):
    """Publishing section of workspace.yaml.

    Attributes:
        release_repository: Filesystem repository for release versions.
        snapshot_repository: Filesystem repository for SNAPSHOT versions.
        artifact_extension: File extension of published artifacts.
        modules: Per-module publishing metadata.

    Example:
        >>> config = PublishingConfig(
        ...     release_repository="file:///srv/repo/releases",
        ...     snapshot_repository="file:///srv/repo/snapshots",
        ...     modules=[setting],
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    release_repository: str | None = Field(
        default=None,
        description="Release repository path or file:// URI",
    )
    snapshot_repository: str | None = Field(
        default=None,
        description="Snapshot repository path or file:// URI",
    )
    artifact_extension: str = Field(
        default=DEFAULT_ARTIFACT_EXTENSION,
        pattern=r"^[a-z0-9]+$",
        description="Artifact file extension",
    )
    modules: list[ModuleSetting] = Field(
        default_factory=list,
        description="Per-module publishing metadata",
    )

    @field_validator("release_repository", "snapshot_repository")
    @classmethod
    def validate_repository(cls, v: str | None) -> str | None:
        """Only filesystem repositories are supported."""
        if v is None:
            return v
        if "://" in v and not v.startswith("file://"):
            raise ValueError(
                f"Unsupported repository '{v}'. Use a filesystem path or a file:// URI"
            )
        return v

    @field_validator("modules")
    @classmethod
    def validate_unique_names(cls, v: list[ModuleSetting]) -> list[ModuleSetting]:
        """Each module may have at most one setting."""
        names = [setting.name for setting in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate module settings: {', '.join(duplicates)}")
        return v

    def get_module_setting(self, name: str) -> ModuleSetting | None:
        """Find the setting for a module name.

        Args:
            name: Camel-case module name.

        Returns:
            The ModuleSetting, or None if the module has no publishing metadata.
        """
        for setting in self.modules:
            if setting.name == name:
                return setting
        return None
