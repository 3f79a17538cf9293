"""Publisher for module variant outputs.

During the configuration phase the Publisher registers one publication per
module variant and the publish steps that copy its output into the local
artifact store and into the release or snapshot repository. During the
execution phase publish() performs the copy.

Files are written under a ".part" name and renamed into place, so a scan
running concurrently never sees a partially written artifact.
"""

from __future__ import annotations

import os
import shutil
from enum import Enum
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

from buildaccel_core.context import BuildContext, resolve_location
from buildaccel_core.graph.build_graph import DraftBuildGraph
from buildaccel_core.graph.models import (
    BuildStep,
    StepKind,
    assemble_step_id,
    publish_step_id,
    publish_step_prefix,
)
from buildaccel_core.store.artifact_store import PARTIAL_SUFFIX, ArtifactStore, artifact_filename
from buildaccel_core.workspace.registry import Module

logger = structlog.get_logger(__name__)

# Case-sensitive, as in Maven
SNAPSHOT_MARKER = "SNAPSHOT"


class RepositoryKind(str, Enum):
    """Publishing destination.

    The value doubles as the step name suffix
    (publishDebugPublicationTo<value>).
    """

    LOCAL_STORE = "LocalStore"
    RELEASE = "ReleaseRepository"
    SNAPSHOT = "SnapshotRepository"


def is_snapshot_version(version: str) -> bool:
    """Whether a version is a pre-release ("1.0.0-SNAPSHOT")."""
    return version.endswith(SNAPSHOT_MARKER)


def select_repository(version: str) -> RepositoryKind:
    """Pick the remote-style repository for a version.

    Example:
        >>> select_repository("1.2.0-SNAPSHOT")
        <RepositoryKind.SNAPSHOT: 'SnapshotRepository'>
        >>> select_repository("1.2.0")
        <RepositoryKind.RELEASE: 'ReleaseRepository'>
    """
    return RepositoryKind.SNAPSHOT if is_snapshot_version(version) else RepositoryKind.RELEASE


class PublicationDescriptor(BaseModel):
    """One module variant packaged for publishing.

    Attributes:
        module: Module path.
        module_name: Camel-case module name, used in artifact filenames.
        variant: Variant name.
        group_id: Group coordinate.
        artifact_id: Variant artifact coordinate ("home-debug").
        version: Version string.
        extension: Artifact file extension.
        payload: Expected build output location. It need not exist yet.
        destinations: Destinations the publication is copied to.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    module: str = Field(..., description="Module path")
    module_name: str = Field(..., description="Module name")
    variant: str = Field(..., description="Variant name")
    group_id: str = Field(..., description="Group coordinate")
    artifact_id: str = Field(..., description="Variant artifact coordinate")
    version: str = Field(..., description="Version string")
    extension: str = Field(..., description="Artifact file extension")
    payload: Path = Field(..., description="Build output location")
    destinations: tuple[RepositoryKind, ...] = Field(default=(), description="Destinations")

    @property
    def coordinate(self) -> str:
        """group:artifact-variant:version."""
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    @property
    def filename(self) -> str:
        """Artifact filename shared with the artifact store scanner."""
        return artifact_filename(self.module_name, self.variant, self.version, self.extension)

    def resolve_payload(self) -> Path | None:
        """The build output, or None if it has not been produced."""
        return self.payload if self.payload.is_file() else None


class Publisher:
    """Registers publications and publish steps, and performs publishing.

    Args:
        context: Build context of this invocation.
        graph: Draft graph for registration. Only required during the
            configuration phase.
        store: Local artifact store receiving every publication.

    Example:
        >>> publisher = Publisher(context, draft, store)
        >>> publisher.prepare_module(registry.get(":infra:network"))
        >>> publisher.publish(descriptor, RepositoryKind.LOCAL_STORE)
    """

    def __init__(
        self,
        context: BuildContext,
        graph: DraftBuildGraph | None,
        store: ArtifactStore,
    ) -> None:
        self.context = context
        self.graph = graph
        self.store = store
        self._publications: dict[tuple[str, str], PublicationDescriptor] = {}
        self._log = logger.bind(component="publisher")

    @property
    def publications(self) -> list[PublicationDescriptor]:
        """Every registered publication in registration order."""
        return list(self._publications.values())

    def find_publication(self, module: str, variant: str) -> PublicationDescriptor | None:
        """Look up a registered publication."""
        return self._publications.get((module, variant))

    def repository_path(self, kind: RepositoryKind) -> Path | None:
        """Filesystem location of a destination, or None when unset."""
        if kind == RepositoryKind.LOCAL_STORE:
            return self.store.root
        publishing = self.context.spec.publishing
        location = (
            publishing.snapshot_repository
            if kind == RepositoryKind.SNAPSHOT
            else publishing.release_repository
        )
        if location is None:
            return None
        return resolve_location(location, self.context.root)

    def _require_graph(self) -> DraftBuildGraph:
        if self.graph is None:
            raise RuntimeError("Publisher was created without a draft graph")
        return self.graph

    def prepare_publication(self, module: Module, variant: str) -> PublicationDescriptor | None:
        """Register the publication and publish steps of one module variant.

        Calling it again for the same module and variant returns the
        existing descriptor.

        Args:
            module: Module to publish.
            variant: Variant name.

        Returns:
            The descriptor, or None if the module has no ModuleSetting.
        """
        existing = self._publications.get((module.path, variant))
        if existing is not None:
            self._log.debug("publication_reused", module=module.path, variant=variant)
            return existing

        setting = self.context.module_setting(module)
        if setting is None:
            self._log.info("publication_skipped_no_setting", module=module.path)
            return None

        destinations = [RepositoryKind.LOCAL_STORE]
        remote = select_repository(setting.version)
        if self.repository_path(remote) is None:
            self._log.warning(
                "repository_not_configured",
                module=module.path,
                repository=remote.value,
            )
        else:
            destinations.append(remote)

        extension = self.context.artifact_extension
        descriptor = PublicationDescriptor(
            module=module.path,
            module_name=module.name,
            variant=variant,
            group_id=setting.group_id,
            artifact_id=setting.artifact_id_for(variant),
            version=setting.version,
            extension=extension,
            payload=module.output_path(self.context.root, variant, extension),
            destinations=tuple(destinations),
        )
        self._publications[(module.path, variant)] = descriptor

        graph = self._require_graph()
        for kind in descriptor.destinations:
            graph.add_step(
                BuildStep(
                    id=publish_step_id(module.path, variant, kind.value),
                    module=module.path,
                    kind=StepKind.PUBLISH,
                    variant=variant,
                    repository=kind.value,
                )
            )

        self._log.debug(
            "publication_prepared",
            module=module.path,
            coordinate=descriptor.coordinate,
            destinations=[d.value for d in descriptor.destinations],
        )
        return descriptor

    def wire_assemble_dependency(self, module: Module, variant: str) -> int:
        """Make the publish steps of a variant wait for its assemble step.

        Publish steps are matched by their action prefix, so every
        destination of the variant is covered. When the variant has no
        assemble step, its publish steps are removed.

        Returns:
            Number of publish steps wired.
        """
        graph = self._require_graph()
        publish_steps = graph.steps_of(module.path, publish_step_prefix(variant))
        assemble_id = assemble_step_id(module.path, variant)

        if graph.find_step(assemble_id) is None:
            for step in publish_steps:
                graph.remove_step(step.id)
            if publish_steps:
                self._publications.pop((module.path, variant), None)
                self._log.warning(
                    "publish_steps_removed_no_assemble",
                    module=module.path,
                    variant=variant,
                    steps=[s.id for s in publish_steps],
                )
            return 0

        for step in publish_steps:
            graph.add_step_dependency(step.id, assemble_id)
        return len(publish_steps)

    def published_variants(self, module: Module) -> tuple[str, ...]:
        """Variants published for a module: explicit setting variants, else all."""
        return self.context.required_variants(module)

    def prepare_module(self, module: Module) -> list[PublicationDescriptor]:
        """Prepare and wire every published variant of a module."""
        descriptors: list[PublicationDescriptor] = []
        for variant in self.published_variants(module):
            descriptor = self.prepare_publication(module, variant)
            if descriptor is None:
                continue
            self.wire_assemble_dependency(module, variant)
            if self.find_publication(module.path, variant) is not None:
                descriptors.append(descriptor)
        return descriptors

    def destination_path(self, descriptor: PublicationDescriptor, kind: RepositoryKind) -> Path | None:
        """Final file location of a publication in one destination.

        The local store is flat; repositories use the group as a directory
        prefix, like a Maven layout.
        """
        root = self.repository_path(kind)
        if root is None:
            return None
        if kind == RepositoryKind.LOCAL_STORE:
            return self.store.path_for(
                descriptor.module_name,
                descriptor.variant,
                descriptor.version,
                descriptor.extension,
            )
        return root.joinpath(*descriptor.group_id.split("."), descriptor.filename)

    def publish(self, descriptor: PublicationDescriptor, kind: RepositoryKind) -> Path | None:
        """Copy a publication's build output into one destination.

        Args:
            descriptor: Publication to copy.
            kind: Destination.

        Returns:
            The written file, or None if the output is missing or the
            destination is not configured.
        """
        payload = descriptor.resolve_payload()
        if payload is None:
            self._log.warning(
                "publication_skipped_missing_output",
                module=descriptor.module,
                variant=descriptor.variant,
                expected=str(descriptor.payload),
            )
            return None

        target = self.destination_path(descriptor, kind)
        if target is None:
            self._log.warning(
                "publication_skipped_no_repository",
                module=descriptor.module,
                repository=kind.value,
            )
            return None

        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        shutil.copyfile(payload, partial)
        os.replace(partial, target)

        self._log.info(
            "artifact_published",
            module=descriptor.module,
            coordinate=descriptor.coordinate,
            repository=kind.value,
            path=str(target),
        )
        return target
