"""
Run log for feed archive.

An ingestion pass reports to stderr: one line per feed (✓/✗), the completion
summary and fetch error counts. Scheduled runs with no terminal attached can
also keep a rotating log file, enabled in config or with ``--log-file``.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

from feed_archive.config import get_config


def setup_logger(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    rotation: Optional[str] = None,
    retention: Optional[str] = None,
    format: Optional[str] = None,
) -> None:
    """Install the run log sinks, replacing any installed before.

    Arguments override the ``logging`` config section. Passing ``log_file``
    turns the file sink on even when ``file_enabled`` is false.

    Args:
        level: Minimum level, case-insensitive (e.g. "debug")
        log_file: File for the rotating sink
        rotation: When the file is rotated (e.g. "10 MB", "1 day")
        retention: How long rotated files are kept (e.g. "30 days")
        format: loguru format string shared by both sinks
    """
    log_config = get_config().logging

    level = (level or log_config.level).upper()
    format = format or log_config.format

    _logger.remove()

    if log_config.console_enabled:
        _logger.add(
            sys.stderr,
            format=format,
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    if log_config.file_enabled or log_file is not None:
        _add_file_sink(
            Path(log_file or log_config.file_path),
            format=format,
            level=level,
            rotation=rotation or log_config.rotation,
            retention=retention or log_config.retention,
        )


def _add_file_sink(path: Path, format: str, level: str, rotation: str, retention: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    # Feed workers log from their own threads
    _logger.add(
        str(path),
        format=format,
        level=level,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )


def get_logger(name: Optional[str] = None):
    """Logger bound to a module name, e.g. ``get_logger(__name__)``."""
    if name:
        return _logger.bind(name=name)
    return _logger


logger = _logger

__all__ = [
    "setup_logger",
    "get_logger",
    "logger",
]
