"""Local artifact store and its filename convention."""

from __future__ import annotations

from buildaccel_core.store.artifact_store import (
    PARTIAL_SUFFIX,
    Artifact,
    ArtifactSnapshot,
    ArtifactStore,
    artifact_filename,
    parse_artifact_filename,
)

__all__ = [
    "Artifact",
    "ArtifactSnapshot",
    "ArtifactStore",
    "PARTIAL_SUFFIX",
    "artifact_filename",
    "parse_artifact_filename",
]
