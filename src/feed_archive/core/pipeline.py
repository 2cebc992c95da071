"""
Ingestion run orchestration.

Drives fetch -> parse -> merge over every configured feed, isolating per-feed
failures, then persists the merged archive and run metadata in a single
final write.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from feed_archive.config import get_config
from feed_archive.core.fetcher import FeedFetcher, FetchResult, FetchStats, create_fetcher
from feed_archive.core.merger import ItemCollection
from feed_archive.core.parser import FeedParser, create_parser
from feed_archive.logger import get_logger
from feed_archive.models import FeedDialect, Item, RunMetadata
from feed_archive.storage import SnapshotStore, create_snapshot_store

logger = get_logger(__name__)


@dataclass
class FeedOutcome:
    """Result of processing one feed during a run."""

    feed_url: str
    success: bool
    items_count: int = 0
    new_items: int = 0
    attempts: int = 1
    error: Optional[str] = None
    dialect: Optional[FeedDialect] = None
    skipped_entries: int = 0
    fetch_result: Optional[FetchResult] = field(default=None, repr=False)


@dataclass
class RunResult:
    """Result of a full ingestion run."""

    metadata: RunMetadata
    items: list[Item] = field(default_factory=list)
    outcomes: list[FeedOutcome] = field(default_factory=list)
    fetch_stats: FetchStats = field(default_factory=FetchStats)

    @property
    def failed_feeds(self) -> list[FeedOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def successful_feeds(self) -> list[FeedOutcome]:
        return [outcome for outcome in self.outcomes if outcome.success]


class IngestionPipeline:
    """Runs one ingestion pass over the configured feeds."""

    def __init__(
        self,
        fetcher: Optional[FeedFetcher] = None,
        parser: Optional[FeedParser] = None,
        store: Optional[SnapshotStore] = None,
        max_workers: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
    ):
        """Initialize ingestion pipeline.

        Args:
            fetcher: Feed fetcher (defaults to a configured one)
            parser: Feed parser (defaults to a configured one)
            store: Snapshot store used by ``run``
            max_workers: Concurrent fetch+parse workers, 1 for sequential
            max_retries: Retries for a failed fetch
            retry_delay_seconds: Base delay between retries
        """
        config = get_config().pipeline

        self.fetcher = fetcher or create_fetcher()
        self.parser = parser or create_parser()
        self.store = store or create_snapshot_store()
        self.max_workers = max_workers or config.max_workers
        self.max_retries = max_retries if max_retries is not None else config.max_retries
        self.retry_delay_seconds = (
            retry_delay_seconds if retry_delay_seconds is not None else config.retry_delay_seconds
        )

    def run(self) -> RunResult:
        """Load persisted state, ingest every feed and write the snapshot.

        Returns:
            RunResult of the completed run

        Raises:
            SnapshotError: If the prior archive is unreadable or the final write fails
        """
        feed_urls = self.store.load_feeds()
        prior_items = self.store.load_items()

        result = self.ingest(feed_urls, prior_items)

        self.store.write(result.items, result.metadata)
        logger.success(
            f"Complete: {result.metadata.total_items} total items "
            f"({result.metadata.new_items} new)"
        )
        self._log_fetch_summary(result.fetch_stats)
        return result

    def _log_fetch_summary(self, stats: FetchStats) -> None:
        logger.info(
            f"Fetched {stats.successful_fetches}/{stats.total_feeds} feeds "
            f"({stats.success_rate:.0%}, {stats.total_bytes} bytes, "
            f"avg {stats.avg_time_seconds:.2f}s)"
        )
        if stats.errors_by_type:
            summary = ", ".join(f"{kind}: {count}" for kind, count in sorted(stats.errors_by_type.items()))
            logger.warning(f"Fetch errors by type: {summary}")

    def ingest(self, feed_urls: list[str], prior_items: Iterable[Item] = ()) -> RunResult:
        """Merge the items of every feed into the prior archive, in memory.

        Feeds are merged in the given order whatever the worker count, so
        the first item seen for an id is always the same one.

        Args:
            feed_urls: Feed sources in configured order
            prior_items: Previously persisted items

        Returns:
            RunResult with the merged items and metadata
        """
        collection = ItemCollection(prior_items)
        outcomes: list[FeedOutcome] = []
        fetch_stats = FetchStats()

        logger.info(
            f"Ingesting {len(feed_urls)} feeds into an archive of {collection.prior_count} items"
        )

        for feed_url, items, outcome in self._collect_all(feed_urls):
            if outcome.fetch_result is not None:
                fetch_stats.add_result(outcome.fetch_result)

            if outcome.success:
                merged = collection.merge(items)
                outcome.new_items = merged.added
                skipped = f", {outcome.skipped_entries} skipped" if outcome.skipped_entries else ""
                logger.info(
                    f"✓ {feed_url} [{outcome.dialect.value}]: "
                    f"{outcome.items_count} items ({merged.added} new{skipped})"
                )
            else:
                logger.error(f"✗ {feed_url}: {outcome.error}")
            outcomes.append(outcome)

        metadata = RunMetadata(
            last_updated=datetime.now(timezone.utc),
            total_items=len(collection),
            new_items=collection.new_count,
            feed_count=len(feed_urls),
        )

        return RunResult(
            metadata=metadata,
            items=collection.items,
            outcomes=outcomes,
            fetch_stats=fetch_stats,
        )

    def _collect_all(self, feed_urls: list[str]):
        """Yield (url, items, outcome) per feed in the given order."""
        if self.max_workers <= 1 or len(feed_urls) <= 1:
            for feed_url in feed_urls:
                yield (feed_url, *self.collect(feed_url))
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for feed_url, (items, outcome) in zip(feed_urls, executor.map(self.collect, feed_urls)):
                yield feed_url, items, outcome

    def collect(self, feed_url: str) -> tuple[list[Item], FeedOutcome]:
        """Fetch and parse one feed without touching the archive.

        Any failure is contained in the returned outcome.

        Args:
            feed_url: Feed to process

        Returns:
            Tuple of (parsed items, outcome)
        """
        logger.debug(f"Fetching: {feed_url}")

        try:
            fetch_result, attempts = self._fetch_with_retries(feed_url)
            if not fetch_result.success:
                return [], FeedOutcome(
                    feed_url=feed_url,
                    success=False,
                    attempts=attempts,
                    error=fetch_result.error,
                    fetch_result=fetch_result,
                )

            parsed = self.parser.parse(fetch_result.content, feed_url, headers=fetch_result.headers)
        except Exception as e:
            logger.exception(f"Unexpected error processing {feed_url}: {e}")
            return [], FeedOutcome(
                feed_url=feed_url,
                success=False,
                error=f"Unexpected error: {type(e).__name__}: {str(e)}",
            )

        return parsed.items, FeedOutcome(
            feed_url=feed_url,
            success=True,
            items_count=parsed.items_count,
            attempts=attempts,
            dialect=parsed.dialect,
            skipped_entries=parsed.skipped_entries,
            fetch_result=fetch_result,
        )

    def _fetch_with_retries(self, feed_url: str) -> tuple[FetchResult, int]:
        """Fetch a feed, retrying failures other than client errors."""
        attempt = 0
        while True:
            attempt += 1
            result = self.fetcher.fetch(feed_url)
            if result.success or attempt > self.max_retries:
                return result, attempt

            # Don't retry client errors (4xx)
            if result.http_status is not None and 400 <= result.http_status < 500:
                return result, attempt

            logger.warning(
                f"Retrying {feed_url} (attempt {attempt + 1}/{self.max_retries + 1})"
            )
            time.sleep(self.retry_delay_seconds * attempt)


def create_pipeline(
    store: Optional[SnapshotStore] = None,
    max_workers: Optional[int] = None,
) -> IngestionPipeline:
    """Create a configured IngestionPipeline instance.

    Args:
        store: Optional snapshot store
        max_workers: Override worker count

    Returns:
        Configured IngestionPipeline instance
    """
    return IngestionPipeline(store=store, max_workers=max_workers)
