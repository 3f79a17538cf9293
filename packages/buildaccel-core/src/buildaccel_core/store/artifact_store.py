"""Local artifact store.

Artifacts are plain files named "<module>-<variant>-<version>.<ext>" under
a store root. That filename is the only contract between the Publisher
(producer) and the scanner (consumer), so both sides go through
artifact_filename() and parse_artifact_filename() in this module.

A scan produces an ArtifactSnapshot. Every query during a build runs
against that one snapshot and never touches the filesystem again.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)

SEPARATOR = "-"

# Suffix of files still being written; renamed atomically when complete
PARTIAL_SUFFIX = ".part"


class Artifact(BaseModel):
    """One immutable build output in the store.

    Attributes:
        module: Camel-case module name.
        variant: Variant name.
        version: Version string (may itself contain "-").
        path: Location of the file.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    module: str = Field(..., min_length=1, description="Module name")
    variant: str = Field(..., min_length=1, description="Variant name")
    version: str = Field(..., min_length=1, description="Version string")
    path: Path = Field(..., description="Artifact file location")


def artifact_filename(module: str, variant: str, version: str, extension: str) -> str:
    """Build the canonical artifact filename.

    Example:
        >>> artifact_filename("featureA", "debug", "1.0.0", "aar")
        'featureA-debug-1.0.0.aar'
    """
    return f"{module}{SEPARATOR}{variant}{SEPARATOR}{version}.{extension}"


def parse_artifact_filename(stem: str) -> tuple[str, str, str] | None:
    """Split an artifact filename stem into (module, variant, version).

    The stem is split into at most three parts so that a version containing
    the separator ("1.0.0-SNAPSHOT") stays intact.

    Args:
        stem: Filename without its extension.

    Returns:
        The three components, or None if the stem does not follow the
        convention.

    Example:
        >>> parse_artifact_filename("home-debug-1.0.0-SNAPSHOT")
        ('home', 'debug', '1.0.0-SNAPSHOT')
        >>> parse_artifact_filename("home-debug") is None
        True
    """
    parts = stem.split(SEPARATOR, 2)
    if len(parts) != 3 or not all(parts):
        return None
    module, variant, version = parts
    return module, variant, version


class ArtifactSnapshot:
    """Immutable view of the store contents at scan time.

    Example:
        >>> snapshot = ArtifactStore(Path("store")).scan()
        >>> [a.variant for a in snapshot.query("featureA")]
        ['debug', 'release']
    """

    def __init__(self, root: Path, artifacts: Iterable[Artifact] = ()) -> None:
        self.root = root
        self._artifacts: tuple[Artifact, ...] = tuple(
            sorted(artifacts, key=lambda a: (a.module, a.variant, a.version, str(a.path)))
        )

    def __iter__(self) -> Iterator[Artifact]:
        return iter(self._artifacts)

    def __len__(self) -> int:
        return len(self._artifacts)

    @property
    def artifacts(self) -> tuple[Artifact, ...]:
        """All artifacts in the snapshot."""
        return self._artifacts

    def query(self, module: str, variant: str | None = None) -> list[Artifact]:
        """Artifacts of one module, optionally restricted to one variant.

        Args:
            module: Exact module name.
            variant: Exact variant name, or None for every variant.

        Returns:
            Matching artifacts.
        """
        return [
            a
            for a in self._artifacts
            if a.module == module and (variant is None or a.variant == variant)
        ]

    def variants_present(self, module: str, version: str) -> frozenset[str]:
        """Variants of a module that exist at the given version."""
        return frozenset(a.variant for a in self.query(module) if a.version == version)

    def all_variants_present(
        self,
        module: str,
        required_variants: Iterable[str],
        version: str,
    ) -> bool:
        """Whether every required variant exists at the given version.

        A partial match counts as total absence, and an empty requirement is
        never satisfied.

        Args:
            module: Module name.
            required_variants: Variants that must all be present.
            version: Exact version string.

        Returns:
            True only if the required variants are all present.
        """
        required = frozenset(required_variants)
        if not required:
            return False
        present = self.variants_present(module, version)
        return required == (present & required)

    def missing_variants(
        self,
        module: str,
        required_variants: Iterable[str],
        version: str,
    ) -> list[str]:
        """Required variants with no artifact at the given version, sorted."""
        present = self.variants_present(module, version)
        return sorted(set(required_variants) - present)


class ArtifactStore:
    """Filesystem-backed artifact store.

    Attributes:
        root: Store root directory.
        extensions: File extensions considered artifacts.

    Example:
        >>> store = ArtifactStore(Path(".buildaccel/artifacts"), extensions=("aar",))
        >>> snapshot = store.scan()
    """

    def __init__(self, root: Path, extensions: Iterable[str] = ("aar",)) -> None:
        self.root = root
        self.extensions = frozenset(ext.lower().lstrip(".") for ext in extensions)
        self._log = logger.bind(component="artifact_store", root=str(root))

    def path_for(self, module: str, variant: str, version: str, extension: str) -> Path:
        """Canonical location of an artifact in this store."""
        return self.root / artifact_filename(module, variant, version, extension)

    def scan(self) -> ArtifactSnapshot:
        """Walk the store root once and parse every artifact filename.

        Hidden files, partially written files and files with other
        extensions are ignored. Filenames that do not follow the naming
        convention are skipped with a warning.

        Returns:
            ArtifactSnapshot of the store contents.
        """
        if not self.root.is_dir():
            self._log.info("artifact_store_missing")
            return ArtifactSnapshot(self.root)

        artifacts: list[Artifact] = []
        skipped = 0

        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or path.name.startswith("."):
                continue
            if path.name.endswith(PARTIAL_SUFFIX):
                continue
            if path.suffix.lower().lstrip(".") not in self.extensions:
                continue

            parsed = parse_artifact_filename(path.stem)
            if parsed is None:
                skipped += 1
                self._log.warning("artifact_filename_malformed", file=path.name)
                continue

            module, variant, version = parsed
            artifacts.append(Artifact(module=module, variant=variant, version=version, path=path))

        snapshot = ArtifactSnapshot(self.root, artifacts)
        self._log.info("artifact_store_scanned", artifacts=len(snapshot), skipped=skipped)
        return snapshot
