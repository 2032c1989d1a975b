"""
Archive module for the CDC archive transform.

This module writes flattened change-event images to an object store
and deletes them again when the source record is removed.

Invariants:
    - One archive object per (source, schema, pk, sk)
    - Storage failures are reported as outcomes, never raised
"""

from .archiver import ArchiveAction, ArchiveOutcome, ArchiveState, ArchiveWriter
from .store import (
    ArchiveError,
    InMemoryObjectStore,
    ObjectStore,
    ObjectStoreError,
    ObjectStoreNotConnected,
    S3ObjectStore,
)

__all__ = [
    # Writer
    "ArchiveWriter",
    "ArchiveOutcome",
    "ArchiveState",
    "ArchiveAction",
    # Stores
    "ObjectStore",
    "S3ObjectStore",
    "InMemoryObjectStore",
    # Errors
    "ArchiveError",
    "ObjectStoreError",
    "ObjectStoreNotConnected",
]
