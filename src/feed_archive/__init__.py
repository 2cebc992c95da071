"""
Feed Archive - incremental RSS/Atom aggregation.

This package fetches a configured list of syndication feeds, normalizes their
entries and folds them into a single deduplicated JSON archive on every run.
"""

__version__ = "0.1.0"
