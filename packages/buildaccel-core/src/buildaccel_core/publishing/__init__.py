"""Publishing of module variant outputs."""

from __future__ import annotations

from buildaccel_core.publishing.publisher import (
    SNAPSHOT_MARKER,
    PublicationDescriptor,
    Publisher,
    RepositoryKind,
    is_snapshot_version,
    select_repository,
)

__all__ = [
    "SNAPSHOT_MARKER",
    "PublicationDescriptor",
    "Publisher",
    "RepositoryKind",
    "is_snapshot_version",
    "select_repository",
]
