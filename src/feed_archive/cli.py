"""
Command line entry point: run one ingestion pass.
"""

import argparse
import sys
from typing import Optional

import yaml
from pydantic import ValidationError

from feed_archive import __version__
from feed_archive.config import Config, LoggingConfig, load_config_from_yaml, set_config
from feed_archive.core.pipeline import IngestionPipeline
from feed_archive.logger import get_logger, setup_logger
from feed_archive.storage import SnapshotError, SnapshotStore

logger = get_logger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feed-archive",
        description="Fetch configured RSS/Atom feeds and merge new items into the archive",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--feeds", help="Feed list JSON file (default: feeds.json)")
    parser.add_argument("--data-dir", help="Directory for items.json and metadata.json")
    parser.add_argument("--workers", type=int, help="Concurrent feed workers (default: 1)")
    parser.add_argument("--retries", type=int, help="Retries for a failed fetch (default: 0)")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run an ingestion pass.

    Returns:
        Process exit code: 0 on success, 1 on a fatal error
    """
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_config_from_yaml(args.config) if args.config else Config()
        if args.log_level:
            config.logging = LoggingConfig(**{**config.logging.model_dump(), "level": args.log_level})
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    set_config(config)
    setup_logger(log_file=args.log_file)

    store = SnapshotStore(feeds_path=args.feeds, data_dir=args.data_dir)
    pipeline = IngestionPipeline(
        store=store,
        max_workers=args.workers,
        max_retries=args.retries,
    )

    try:
        result = pipeline.run()
    except SnapshotError as e:
        logger.critical(f"Run failed, archive not updated: {e}")
        return 1

    if result.failed_feeds:
        logger.warning(f"{len(result.failed_feeds)} of {len(result.outcomes)} feeds failed")

    return 0


if __name__ == "__main__":
    sys.exit(main())
