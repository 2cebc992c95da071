"""Shared fixtures."""

import httpx
import pytest

from feed_archive.config import set_config

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <link>https://example.com/</link>
    <description>Example feed</description>
    <item>
      <title>First post</title>
      <link>https://example.com/posts/1</link>
      <guid>urn:example:post-1</guid>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
      <description>&lt;p&gt;Hello &lt;b&gt;world&lt;/b&gt;&lt;/p&gt;</description>
    </item>
    <item>
      <title>Second post</title>
      <link>https://example.com/posts/2</link>
      <guid>urn:example:post-2</guid>
      <pubDate>Tue, 02 Jan 2024 10:00:00 GMT</pubDate>
      <description>Second description</description>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom</title>
  <id>urn:example:atom</id>
  <updated>2024-01-03T12:00:00Z</updated>
  <entry>
    <title>Atom entry</title>
    <link href="https://example.com/atom/1"/>
    <id>urn:example:atom-1</id>
    <updated>2024-01-03T12:00:00Z</updated>
    <summary>Atom summary</summary>
  </entry>
</feed>
"""


@pytest.fixture(autouse=True)
def reset_config():
    """Start every test from a fresh global configuration."""
    set_config(None)
    yield
    set_config(None)


def _feed_transport(routes: dict) -> httpx.MockTransport:
    """Build a transport serving ``routes``: url -> body, status code or exception."""

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return httpx.Response(route)
        return httpx.Response(
            200,
            content=route.encode("utf-8"),
            headers={"Content-Type": "application/xml; charset=utf-8"},
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def make_transport():
    """Factory for mock transports keyed by URL."""
    return _feed_transport


@pytest.fixture
def rss_feed() -> str:
    """RSS 2.0 document with two items."""
    return RSS_FEED


@pytest.fixture
def atom_feed() -> str:
    """Atom document with one entry."""
    return ATOM_FEED
