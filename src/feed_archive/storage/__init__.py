"""Persistence of the feed list, item archive and run metadata."""

from feed_archive.storage.snapshot import SnapshotError, SnapshotStore, create_snapshot_store

__all__ = [
    "SnapshotError",
    "SnapshotStore",
    "create_snapshot_store",
]
