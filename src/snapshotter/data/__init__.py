"""Snapshot persistence layer.

Provides SQLite database management and the typed store used by the
pipeline (batched idempotent writes) and the read API.
"""

from snapshotter.data.database import SnapshotDatabase
from snapshotter.data.store import SnapshotStore

__all__ = [
    "SnapshotDatabase",
    "SnapshotStore",
]
