"""
JSON snapshot storage for the feed list, the item archive and run metadata.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from feed_archive.config import get_config
from feed_archive.logger import get_logger
from feed_archive.models import Item, RunMetadata

logger = get_logger(__name__)

PathLike = Union[str, Path]


class SnapshotError(Exception):
    """Raised when the persisted state cannot be read or written."""


class SnapshotStore:
    """Reads the persisted state at run start and writes it at run end.

    Missing files are not errors: an absent feed list is created empty and
    an absent archive is an empty first-run collection. Each artifact is
    written to a temporary file and moved into place, so readers never see
    a partial file.
    """

    def __init__(
        self,
        feeds_path: Optional[PathLike] = None,
        data_dir: Optional[PathLike] = None,
        items_file: Optional[str] = None,
        metadata_file: Optional[str] = None,
        indent: Optional[int] = None,
    ):
        """Initialize snapshot store.

        Args:
            feeds_path: Feed source list file
            data_dir: Directory holding the snapshot files
            items_file: Item archive file name
            metadata_file: Run metadata file name
            indent: JSON indentation
        """
        archive = get_config().archive

        self.feeds_path = Path(feeds_path or archive.feeds_file)
        self.data_dir = Path(data_dir or archive.data_dir)
        self.items_path = self.data_dir / (items_file or archive.items_file)
        self.metadata_path = self.data_dir / (metadata_file or archive.metadata_file)
        self.indent = indent if indent is not None else archive.indent

    def load_feeds(self) -> list[str]:
        """Read the feed source list.

        Creates an empty list file when none exists. Order is preserved;
        blank and non-string entries are dropped.

        Returns:
            Feed URLs in configured order
        """
        if not self.feeds_path.exists():
            logger.info(f"No feed list found at {self.feeds_path}, creating an empty one")
            self._write_json(self.feeds_path, [])
            return []

        data = self._read_json(self.feeds_path)
        if not isinstance(data, list):
            raise SnapshotError(f"Feed list {self.feeds_path} must be a JSON array")

        feeds = []
        for entry in data:
            if not isinstance(entry, str):
                logger.warning(f"Ignoring non-string feed entry: {entry!r}")
                continue
            url = entry.strip()
            if url:
                feeds.append(url)

        return feeds

    def load_items(self) -> list[Item]:
        """Read the prior item archive.

        Returns:
            Previously stored items, empty on first run

        Raises:
            SnapshotError: If the archive exists but cannot be read
        """
        if not self.items_path.exists():
            logger.info(f"No existing archive at {self.items_path}, starting empty")
            return []

        data = self._read_json(self.items_path)
        if not isinstance(data, list):
            raise SnapshotError(f"Archive {self.items_path} must be a JSON array")

        try:
            items = [Item.model_validate(record) for record in data]
        except ValidationError as e:
            raise SnapshotError(f"Archive {self.items_path} contains an invalid item: {e}") from e

        logger.debug(f"Loaded {len(items)} items from {self.items_path}")
        return items

    def load_metadata(self) -> Optional[RunMetadata]:
        """Read the metadata of the last run, if any."""
        if not self.metadata_path.exists():
            return None

        data = self._read_json(self.metadata_path)
        try:
            return RunMetadata.model_validate(data)
        except ValidationError as e:
            raise SnapshotError(f"Metadata {self.metadata_path} is invalid: {e}") from e

    def write(self, items: list[Item], metadata: RunMetadata) -> None:
        """Persist the merged archive and the run metadata.

        Args:
            items: Final item collection
            metadata: Metadata of the finished run

        Raises:
            SnapshotError: If either artifact cannot be written
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SnapshotError(f"Cannot create data directory {self.data_dir}: {e}") from e

        self._write_json(self.items_path, [item.to_dict() for item in items])
        self._write_json(self.metadata_path, metadata.to_dict())

        logger.debug(f"Wrote {len(items)} items to {self.items_path}")

    def _read_json(self, path: Path):
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Cannot read {path}: {e}") from e

    def _write_json(self, path: Path, data) -> None:
        """Write JSON atomically through a temporary sibling file."""
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=self.indent, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SnapshotError(f"Cannot write {path}: {e}") from e


def create_snapshot_store(
    feeds_path: Optional[PathLike] = None,
    data_dir: Optional[PathLike] = None,
) -> SnapshotStore:
    """Create a configured SnapshotStore instance.

    Args:
        feeds_path: Override feed list location
        data_dir: Override data directory

    Returns:
        Configured SnapshotStore instance
    """
    return SnapshotStore(feeds_path=feeds_path, data_dir=data_dir)
