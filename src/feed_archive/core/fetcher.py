"""
RSS/Atom feed fetcher with redirect handling and a per-attempt timeout.
"""

import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

import httpx

from feed_archive.config import get_config
from feed_archive.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FetchResult:
    """Result of a feed fetch operation."""

    success: bool
    feed_url: str
    content: Optional[bytes] = None
    headers: dict = field(default_factory=dict)
    error: Optional[str] = None
    fetch_time_seconds: float = 0.0
    http_status: Optional[int] = None
    final_url: Optional[str] = None

    def __post_init__(self):
        """Validate fetch result."""
        if self.success and self.error:
            raise ValueError("Successful fetch cannot have an error")
        if not self.success and not self.error:
            self.error = "Unknown error"

    @property
    def error_kind(self) -> Optional[str]:
        """Error category, the part of the message before the first colon."""
        if not self.error:
            return None
        return self.error.split(":")[0]


@dataclass
class FetchStats:
    """Statistics for feed fetching operations."""

    total_feeds: int = 0
    successful_fetches: int = 0
    failed_fetches: int = 0
    total_bytes: int = 0
    total_time_seconds: float = 0.0
    errors_by_type: dict = field(default_factory=dict)

    def add_result(self, result: FetchResult) -> None:
        """Add a fetch result to statistics.

        Args:
            result: FetchResult to add
        """
        self.total_feeds += 1
        self.total_time_seconds += result.fetch_time_seconds

        if result.success:
            self.successful_fetches += 1
            self.total_bytes += len(result.content or b"")
        else:
            self.failed_fetches += 1
            error_type = result.error_kind or "unknown"
            self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.total_feeds == 0:
            return 0.0
        return self.successful_fetches / self.total_feeds

    @property
    def avg_time_seconds(self) -> float:
        """Calculate average fetch time."""
        if self.total_feeds == 0:
            return 0.0
        return self.total_time_seconds / self.total_feeds


class FeedFetcher:
    """Single-attempt HTTP fetcher for feed documents.

    Redirects are followed up to ``max_redirects`` hops. Each call makes
    exactly one attempt; retrying is left to the caller.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        max_redirects: Optional[int] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize feed fetcher.

        Args:
            timeout_seconds: Request timeout in seconds
            max_redirects: Maximum number of redirect hops
            user_agent: User-Agent header for HTTP requests
            transport: Optional httpx transport (used by tests)
        """
        config = get_config()

        self.timeout_seconds = timeout_seconds or config.fetcher.timeout_seconds
        self.max_redirects = (
            max_redirects if max_redirects is not None else config.fetcher.max_redirects
        )
        self.user_agent = user_agent or config.fetcher.user_agent
        self.transport = transport

    def fetch(self, url: str) -> FetchResult:
        """Fetch a single feed document.

        Args:
            url: Feed URL to fetch

        Returns:
            FetchResult with the raw body or an error
        """
        start_time = time.time()

        is_valid, validation_error = self.validate_url(url)
        if not is_valid:
            return FetchResult(success=False, feed_url=url, error=f"Invalid URL: {validation_error}")

        logger.debug(f"Fetching feed: {url}")

        http_status = None
        try:
            response = self._fetch_http(url)
            http_status = response.status_code

            result = FetchResult(
                success=True,
                feed_url=url,
                content=response.content,
                headers=dict(response.headers),
                fetch_time_seconds=time.time() - start_time,
                http_status=http_status,
                final_url=str(response.url),
            )
            if result.final_url != url:
                logger.debug(f"Followed redirect: {url} -> {result.final_url}")
            logger.debug(
                f"Fetched {len(result.content)} bytes from {url} "
                f"in {result.fetch_time_seconds:.2f}s"
            )

        except httpx.TimeoutException as e:
            result = self._failure(url, start_time, f"Timeout: request exceeded {self.timeout_seconds}s ({e})")

        except httpx.TooManyRedirects as e:
            result = self._failure(url, start_time, f"Too many redirects: more than {self.max_redirects} ({e})")

        except httpx.HTTPStatusError as e:
            http_status = e.response.status_code
            result = self._failure(
                url, start_time, f"HTTP {http_status}: {e.response.reason_phrase}", http_status
            )

        except httpx.RequestError as e:
            result = self._failure(url, start_time, f"Request error: {type(e).__name__}: {e}")

        return result

    def _failure(
        self,
        url: str,
        start_time: float,
        error: str,
        http_status: Optional[int] = None,
    ) -> FetchResult:
        """Build a failed result and log it."""
        logger.warning(f"Failed to fetch {url}: {error}")
        return FetchResult(
            success=False,
            feed_url=url,
            error=error,
            fetch_time_seconds=time.time() - start_time,
            http_status=http_status,
        )

    def _fetch_http(self, url: str) -> httpx.Response:
        """Fetch URL with HTTP client.

        Args:
            url: URL to fetch

        Returns:
            httpx Response with a 2xx status

        Raises:
            httpx.TimeoutException: On timeout
            httpx.TooManyRedirects: When the redirect chain is too long
            httpx.HTTPStatusError: On a non-2xx final status
            httpx.RequestError: On network error
        """
        headers = {"User-Agent": self.user_agent}

        with httpx.Client(
            timeout=self.timeout_seconds,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            transport=self.transport,
        ) as client:
            response = client.get(url, headers=headers)
            response.raise_for_status()
            return response

    def validate_url(self, url: str) -> tuple[bool, Optional[str]]:
        """Validate a feed URL.

        Args:
            url: URL to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            result = urlparse(url)
        except ValueError as e:
            return False, f"Validation error: {str(e)}"

        if not result.scheme or not result.netloc:
            return False, "Invalid URL format"

        if result.scheme not in ("http", "https"):
            return False, f"Unsupported scheme: {result.scheme}"

        return True, None


def create_fetcher(
    timeout_seconds: Optional[float] = None,
    max_redirects: Optional[int] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> FeedFetcher:
    """Create a configured FeedFetcher instance.

    Args:
        timeout_seconds: Override default timeout
        max_redirects: Override default redirect cap
        transport: Optional httpx transport

    Returns:
        Configured FeedFetcher instance
    """
    return FeedFetcher(
        timeout_seconds=timeout_seconds,
        max_redirects=max_redirects,
        transport=transport,
    )
