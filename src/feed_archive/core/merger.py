"""
Identity-based merge of parsed items into the running archive.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from feed_archive.logger import get_logger
from feed_archive.models import Item

logger = get_logger(__name__)


@dataclass
class MergeResult:
    """Outcome of folding one batch of items into the collection."""

    added: int = 0
    duplicates: int = 0

    @property
    def total(self) -> int:
        return self.added + self.duplicates


class ItemCollection:
    """Accumulator holding the archive and its identity index.

    The first item seen for an id is kept; later items with the same id are
    discarded, even when their content differs. Not thread-safe: callers that
    fan out work must merge from a single thread.
    """

    def __init__(self, prior_items: Optional[Iterable[Item]] = None):
        """Initialize the collection from a previously persisted archive.

        Args:
            prior_items: Items loaded at run start (None on first run)
        """
        self._items: list[Item] = []
        self._known_ids: set[str] = set()

        for item in prior_items or []:
            if item.id in self._known_ids:
                logger.debug(f"Duplicate id in prior archive dropped: {item.id}")
                continue
            self._items.append(item)
            self._known_ids.add(item.id)

        self.prior_count = len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._known_ids

    @property
    def items(self) -> list[Item]:
        """Snapshot of the items in insertion order."""
        return list(self._items)

    @property
    def new_count(self) -> int:
        """Items added since the collection was created."""
        return len(self._items) - self.prior_count

    def add(self, item: Item) -> bool:
        """Add an item unless its id is already known.

        Returns:
            True if the item was added
        """
        if item.id in self._known_ids:
            return False
        self._items.append(item)
        self._known_ids.add(item.id)
        return True

    def merge(self, items: Iterable[Item]) -> MergeResult:
        """Add a batch of items, in order.

        Args:
            items: Parsed items of one feed

        Returns:
            MergeResult with added and duplicate counts
        """
        result = MergeResult()
        for item in items:
            if self.add(item):
                result.added += 1
            else:
                result.duplicates += 1
        return result
