"""Build context shared by every phase of one build invocation.

The context is constructed once, before the configuration phase, and is
passed explicitly to the rewriter, the publisher and the executor. It
holds nothing that changes during the build.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from pydantic import BaseModel, ConfigDict, Field

from buildaccel_core.schemas.properties import AcceleratorProperties
from buildaccel_core.schemas.publishing import ModuleSetting
from buildaccel_core.schemas.workspace_spec import WorkspaceSpec
from buildaccel_core.workspace.classifier import WorkspaceClassification
from buildaccel_core.workspace.registry import Module, ModuleRegistry


def resolve_location(location: str, root: Path) -> Path:
    """Turn a filesystem path or file:// URI into an absolute path.

    Relative paths are resolved against the workspace root.

    Example:
        >>> resolve_location("file:///srv/repo", Path("/ws"))
        PosixPath('/srv/repo')
        >>> resolve_location("build/repo", Path("/ws"))
        PosixPath('/ws/build/repo')
    """
    if location.startswith("file://"):
        return Path(url2pathname(urlparse(location).path))
    path = Path(location).expanduser()
    return path if path.is_absolute() else root / path


class BuildContext(BaseModel):
    """Immutable inputs of one build invocation.

    Attributes:
        root: Workspace root directory.
        spec: Validated workspace declaration.
        properties: Accelerator properties.
        registry: Module registry.
        classification: Active/Stable partition.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    root: Path = Field(..., description="Workspace root directory")
    spec: WorkspaceSpec = Field(..., description="Workspace declaration")
    properties: AcceleratorProperties = Field(..., description="Accelerator properties")
    registry: ModuleRegistry = Field(..., description="Module registry")
    classification: WorkspaceClassification = Field(..., description="Workspace partition")

    @property
    def enabled(self) -> bool:
        """Whether the accelerator takes part in this build."""
        return self.properties.enabled

    @property
    def artifact_extension(self) -> str:
        """Extension of published artifacts."""
        return self.spec.publishing.artifact_extension

    @property
    def store_root(self) -> Path:
        """Absolute artifact store root."""
        return resolve_location(self.spec.store.root, self.root)

    def module_setting(self, module: Module) -> ModuleSetting | None:
        """Publishing metadata of a module, if declared."""
        return self.spec.publishing.get_module_setting(module.name)

    def required_variants(self, module: Module) -> tuple[str, ...]:
        """Variants that must all exist before the module can be substituted.

        Explicit ModuleSetting variants win; otherwise every module variant.
        """
        setting = self.module_setting(module)
        if setting is not None and setting.build_variants:
            return tuple(setting.build_variants)
        return module.variant_names

    def active_exclusions(self) -> frozenset[str]:
        """group:artifact-variant pairs of Active modules with publishing metadata.

        One pair per required variant, matching the coordinates the module
        publishes. Artifact edges exclude these so a transitive artifact never
        brings in a second copy of a module that is being built from source.
        """
        exclusions: set[str] = set()
        for path in self.classification.active:
            module = self.registry.find(path)
            if module is None:
                continue
            setting = self.module_setting(module)
            if setting is not None:
                exclusions.update(
                    f"{setting.group_id}:{setting.artifact_id_for(variant)}"
                    for variant in self.required_variants(module)
                )
        return frozenset(exclusions)
