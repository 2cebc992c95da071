"""Unit tests for feed fetcher."""

import httpx
import pytest

from feed_archive.core.fetcher import FeedFetcher, FetchResult, FetchStats, create_fetcher

FEED_URL = "https://example.com/feed.xml"


class TestFetchResult:
    """Tests for FetchResult dataclass."""

    def test_successful_result(self):
        """Test creating a successful result."""
        result = FetchResult(success=True, feed_url=FEED_URL, content=b"<rss/>")

        assert result.success is True
        assert result.error is None
        assert result.error_kind is None

    def test_failed_result_defaults_error(self):
        """Test a failed result always carries an error."""
        result = FetchResult(success=False, feed_url=FEED_URL)

        assert result.error == "Unknown error"

    def test_result_validation(self):
        """Test result validation."""
        with pytest.raises(ValueError):
            FetchResult(success=True, feed_url=FEED_URL, error="Should not have error")

    def test_error_kind(self):
        """Test error category extraction."""
        result = FetchResult(success=False, feed_url=FEED_URL, error="Timeout: too slow")

        assert result.error_kind == "Timeout"


class TestFetchStats:
    """Tests for FetchStats dataclass."""

    def test_add_results(self):
        """Test adding successful and failed results."""
        stats = FetchStats()
        stats.add_result(
            FetchResult(success=True, feed_url=FEED_URL, content=b"abcd", fetch_time_seconds=1.0)
        )
        stats.add_result(
            FetchResult(success=False, feed_url=FEED_URL, error="Timeout: x", fetch_time_seconds=3.0)
        )

        assert stats.total_feeds == 2
        assert stats.successful_fetches == 1
        assert stats.failed_fetches == 1
        assert stats.total_bytes == 4
        assert stats.errors_by_type == {"Timeout": 1}
        assert stats.success_rate == 0.5
        assert stats.avg_time_seconds == 2.0

    def test_empty_stats(self):
        """Test rates with no results."""
        stats = FetchStats()

        assert stats.success_rate == 0.0
        assert stats.avg_time_seconds == 0.0


class TestFeedFetcher:
    """Tests for FeedFetcher."""

    def test_init_defaults(self):
        """Test fetcher picks up configured defaults."""
        fetcher = FeedFetcher()

        assert fetcher.timeout_seconds == 10.0
        assert fetcher.max_redirects == 10
        assert fetcher.user_agent

    def test_init_with_custom_params(self):
        """Test fetcher initialization with custom parameters."""
        fetcher = create_fetcher(timeout_seconds=2.5, max_redirects=0)

        assert fetcher.timeout_seconds == 2.5
        assert fetcher.max_redirects == 0

    def test_fetch_success(self, make_transport, rss_feed):
        """Test fetching a feed body."""
        fetcher = FeedFetcher(transport=make_transport({FEED_URL: rss_feed}))

        result = fetcher.fetch(FEED_URL)

        assert result.success is True
        assert result.http_status == 200
        assert result.content == rss_feed.encode("utf-8")
        assert result.headers["content-type"].startswith("application/xml")
        assert result.final_url == FEED_URL

    def test_sends_user_agent(self):
        """Test the configured User-Agent is sent."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers.get("User-Agent")
            return httpx.Response(200, content=b"<rss/>")

        fetcher = FeedFetcher(user_agent="test-agent/1.0", transport=httpx.MockTransport(handler))
        fetcher.fetch(FEED_URL)

        assert seen["ua"] == "test-agent/1.0"

    def test_follows_redirects(self, rss_feed):
        """Test redirect chains are followed to the final location."""
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path == "/old.xml":
                return httpx.Response(301, headers={"Location": "https://example.com/moved.xml"})
            if path == "/moved.xml":
                return httpx.Response(302, headers={"Location": "http://cdn.example.com/feed.xml"})
            return httpx.Response(200, content=rss_feed.encode("utf-8"))

        fetcher = FeedFetcher(transport=httpx.MockTransport(handler))
        result = fetcher.fetch("https://example.com/old.xml")

        assert result.success is True
        assert result.final_url == "http://cdn.example.com/feed.xml"
        assert result.content == rss_feed.encode("utf-8")

    def test_redirect_loop_is_capped(self):
        """Test an endless redirect chain fails instead of looping."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(302, headers={"Location": str(request.url)})

        fetcher = FeedFetcher(max_redirects=3, transport=httpx.MockTransport(handler))
        result = fetcher.fetch(FEED_URL)

        assert result.success is False
        assert result.error_kind == "Too many redirects"
        assert len(calls) == 4

    def test_timeout(self):
        """Test a timed-out request is reported as a timeout."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        fetcher = FeedFetcher(transport=httpx.MockTransport(handler))
        result = fetcher.fetch(FEED_URL)

        assert result.success is False
        assert result.error_kind == "Timeout"

    def test_connection_error(self):
        """Test a network failure is reported, not raised."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = FeedFetcher(transport=httpx.MockTransport(handler))
        result = fetcher.fetch(FEED_URL)

        assert result.success is False
        assert result.error_kind == "Request error"
        assert "connection refused" in result.error

    @pytest.mark.parametrize("status", [404, 500])
    def test_bad_status(self, make_transport, status):
        """Test non-2xx responses fail with their status."""
        fetcher = FeedFetcher(transport=make_transport({FEED_URL: status}))
        result = fetcher.fetch(FEED_URL)

        assert result.success is False
        assert result.http_status == status
        assert result.error.startswith(f"HTTP {status}")
        assert result.content is None

    def test_redirect_without_location_fails(self, make_transport):
        """Test a 3xx response with nowhere to go is a failure."""
        fetcher = FeedFetcher(transport=make_transport({FEED_URL: 302}))
        result = fetcher.fetch(FEED_URL)

        assert result.success is False
        assert result.http_status == 302

    def test_invalid_url(self):
        """Test unsupported URLs fail without a request."""
        fetcher = FeedFetcher()

        result = fetcher.fetch("ftp://example.com/feed.xml")

        assert result.success is False
        assert result.error_kind == "Invalid URL"

    def test_validate_url(self):
        """Test URL validation."""
        fetcher = FeedFetcher()

        assert fetcher.validate_url("https://example.com/feed") == (True, None)
        assert fetcher.validate_url("http://example.com/feed") == (True, None)
        assert fetcher.validate_url("not-a-url")[0] is False
        assert fetcher.validate_url("file:///etc/passwd")[0] is False
