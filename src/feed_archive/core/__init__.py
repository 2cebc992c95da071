"""Core ingestion modules: fetch, parse, merge and run orchestration."""

from feed_archive.core.fetcher import FeedFetcher, FetchResult, FetchStats, create_fetcher
from feed_archive.core.merger import ItemCollection, MergeResult
from feed_archive.core.parser import FeedParser, ParsedFeed, create_parser, derive_item_id
from feed_archive.core.pipeline import (
    FeedOutcome,
    IngestionPipeline,
    RunResult,
    create_pipeline,
)

__all__ = [
    # Components
    "FeedFetcher",
    "FeedParser",
    "ItemCollection",
    "IngestionPipeline",
    # Factory functions
    "create_fetcher",
    "create_parser",
    "create_pipeline",
    # Result types
    "FetchResult",
    "FetchStats",
    "ParsedFeed",
    "MergeResult",
    "FeedOutcome",
    "RunResult",
    # Helpers
    "derive_item_id",
]
