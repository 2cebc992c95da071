"""Unit tests for logger configuration."""

import io

from loguru import logger as _logger

from feed_archive.config import get_config
from feed_archive.logger import get_logger, setup_logger


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_adds_handlers(self):
        """Test that logging works after setup."""
        setup_logger()

        output = io.StringIO()
        handler_id = _logger.add(output, format="{message}")
        _logger.info("Test")
        _logger.remove(handler_id)

        assert "Test" in output.getvalue()

    def test_file_handler(self, tmp_path):
        """Test passing a log file writes to it."""
        log_file = tmp_path / "logs" / "run.log"

        setup_logger(level="DEBUG", log_file=str(log_file), rotation="1 MB", retention="1 day")
        _logger.debug("Written to file")

        # Removing handlers flushes the queued file sink
        _logger.remove()

        content = log_file.read_text(encoding="utf-8")
        assert "Written to file" in content
        assert "DEBUG" in content

    def test_level_filters(self, tmp_path):
        """Test messages below the level are dropped."""
        log_file = tmp_path / "run.log"

        setup_logger(level="warning", log_file=str(log_file))
        _logger.info("Hidden")
        _logger.warning("Shown")
        _logger.remove()

        content = log_file.read_text(encoding="utf-8")
        assert "Hidden" not in content
        assert "Shown" in content

    def test_console_disabled(self, tmp_path):
        """Test disabling the console handler via config."""
        config = get_config()
        config.logging.console_enabled = False

        setup_logger(log_file=str(tmp_path / "only-file.log"))
        _logger.info("File only")
        _logger.remove()

        assert "File only" in (tmp_path / "only-file.log").read_text(encoding="utf-8")


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_logger(self):
        assert get_logger() is not None

    def test_get_logger_binds_name(self):
        output = io.StringIO()
        handler_id = _logger.add(output, format="{extra[name]}|{message}")

        get_logger("feed_archive.test").info("bound")
        _logger.remove(handler_id)

        assert "feed_archive.test|bound" in output.getvalue()
