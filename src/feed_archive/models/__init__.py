"""Data models for feed archive."""

from feed_archive.models.item import FeedDialect, Item
from feed_archive.models.metadata import RunMetadata

__all__ = [
    "FeedDialect",
    "Item",
    "RunMetadata",
]
