"""Unit tests for the command line entry point."""

import json

import pytest
from loguru import logger as _logger

from feed_archive import cli
from feed_archive.core.fetcher import FeedFetcher

FEED_URL = "https://example.com/feed.xml"


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    _logger.remove()


@pytest.fixture
def mock_network(monkeypatch, make_transport, rss_feed):
    """Route the pipeline's default fetcher through a mock transport."""
    transport = make_transport({FEED_URL: rss_feed})
    monkeypatch.setattr(
        "feed_archive.core.pipeline.create_fetcher",
        lambda: FeedFetcher(transport=transport),
    )


class TestMain:
    """Tests for cli.main."""

    def test_run_with_feeds(self, tmp_path, mock_network):
        feeds = tmp_path / "feeds.json"
        feeds.write_text(json.dumps([FEED_URL]), encoding="utf-8")
        data_dir = tmp_path / "data"

        code = cli.main(["--feeds", str(feeds), "--data-dir", str(data_dir)])

        assert code == 0
        metadata = json.loads((data_dir / "metadata.json").read_text(encoding="utf-8"))
        assert metadata["totalItems"] == 2
        assert metadata["newItems"] == 2
        assert metadata["feedCount"] == 1

    def test_first_run_without_feed_list(self, tmp_path, mock_network):
        feeds = tmp_path / "feeds.json"

        code = cli.main(["--feeds", str(feeds), "--data-dir", str(tmp_path / "data")])

        assert code == 0
        assert json.loads(feeds.read_text(encoding="utf-8")) == []

    def test_write_failure_exit_code(self, tmp_path, mock_network):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")

        code = cli.main(["--feeds", str(tmp_path / "feeds.json"), "--data-dir", str(blocker / "data")])

        assert code == 1

    def test_invalid_log_level(self, tmp_path):
        code = cli.main(["--feeds", str(tmp_path / "feeds.json"), "--log-level", "loud"])

        assert code == 1

    def test_missing_config_file(self, tmp_path):
        code = cli.main(["--config", str(tmp_path / "nope.yaml")])

        assert code == 1

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main(["--version"])

        assert exc.value.code == 0
        assert "feed-archive" in capsys.readouterr().out
