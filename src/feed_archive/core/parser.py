"""
Feed parser that turns RSS/Atom documents into normalized items.

Each logical field is resolved through an ordered chain of extractors; the
first non-empty candidate wins. Handles identity derivation, date parsing
and HTML cleaning of the description preview.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Union

import feedparser
from bs4 import BeautifulSoup

from feed_archive.config import get_config
from feed_archive.logger import get_logger
from feed_archive.models import FeedDialect, Item

logger = get_logger(__name__)

Extractor = Callable[[dict], str]


def _text(key: str) -> Extractor:
    """Extractor returning the string value stored under ``key``."""

    def extract(entry: dict) -> str:
        value = entry.get(key)
        return value if isinstance(value, str) else ""

    extract.__name__ = f"text_{key}"
    return extract


def _first_content(entry: dict) -> str:
    """Value of the first populated ``content`` block."""
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return ""


def _link_hrefs(entry: dict) -> list[tuple[str, str]]:
    """(rel, href) pairs of the entry's link elements that carry an href."""
    pairs = []
    for link in entry.get("links") or []:
        href = link.get("href")
        if isinstance(href, str) and href:
            pairs.append((link.get("rel") or "alternate", href))
    return pairs


def _own_link(entry: dict) -> str:
    """Text of the entry's own link element.

    feedparser copies a permalink guid (or Atom id) into ``link`` when the
    entry has no link of its own and flags it with ``guidislink``. Such a
    copy is not among the parsed link elements, so it is ignored here.
    """
    value = entry.get("link")
    if not isinstance(value, str):
        return ""
    if entry.get("guidislink") and value not in {href for _, href in _link_hrefs(entry)}:
        return ""
    return value


def _link_href(entry: dict) -> str:
    """``href`` of the alternate link, else of the first link carrying one."""
    pairs = _link_hrefs(entry)
    for rel, href in pairs:
        if rel == "alternate":
            return href
    return pairs[0][1] if pairs else ""


LINK_CHAIN: tuple[Extractor, ...] = (_own_link,)
ATOM_LINK_CHAIN: tuple[Extractor, ...] = (_link_href,)

DESCRIPTION_CHAIN: tuple[Extractor, ...] = (
    _text("description"),
    _text("summary"),
    _first_content,
    _text("itunes_summary"),
)

# feedparser maps RSS pubDate to "published"
DATE_KEYS: tuple[str, ...] = ("published", "updated", "created")


def first_non_empty(entry: dict, chain: tuple[Extractor, ...]) -> str:
    """Run extractors in order and return the first non-blank result."""
    for extract in chain:
        value = extract(entry)
        if value and value.strip():
            return value
    return ""


def derive_item_id(guid: str, link: str, date_text: str, title: str) -> str:
    """Derive the deduplication key of an entry.

    The native identifier wins when present; otherwise link, raw date
    string and title are concatenated. Pure and deterministic.
    """
    guid = (guid or "").strip()
    if guid:
        return guid
    return f"{link}{date_text}{title}"


def detect_dialect(parsed) -> FeedDialect:
    """Classify a feedparser result as RSS or Atom.

    Relies on feedparser's own format detection: its ``version`` is derived
    from the document's root element (``feed`` for Atom, ``rss`` or RDF
    for RSS), so no separate check for item or entry elements is made.
    Anything not detected as Atom is read as RSS.
    """
    version = parsed.get("version") or ""
    if version.startswith("atom"):
        return FeedDialect.ATOM
    return FeedDialect.RSS


@dataclass
class ParsedFeed:
    """Normalized content of one feed document."""

    feed_url: str
    dialect: FeedDialect
    items: list[Item] = field(default_factory=list)
    skipped_entries: int = 0
    bozo_error: Optional[str] = None

    @property
    def items_count(self) -> int:
        return len(self.items)


class FeedParser:
    """Parser for RSS/Atom documents."""

    def __init__(
        self,
        max_description_length: Optional[int] = None,
        default_title: Optional[str] = None,
    ):
        """Initialize feed parser.

        Args:
            max_description_length: Maximum description length in characters
            default_title: Title used for entries without one
        """
        config = get_config()

        self.max_description_length = (
            max_description_length or config.parser.max_description_length
        )
        self.default_title = default_title or config.parser.default_title

    def parse(
        self,
        content: Union[str, bytes],
        feed_url: str,
        headers: Optional[dict] = None,
    ) -> ParsedFeed:
        """Parse a raw feed document.

        Never raises for malformed input: whatever entries feedparser can
        salvage are normalized, and a failing entry is skipped.

        Args:
            content: Raw feed body
            feed_url: Feed the document came from
            headers: Optional HTTP response headers (used for charset detection)

        Returns:
            ParsedFeed with normalized items
        """
        parsed = feedparser.parse(content, response_headers=headers or {})
        dialect = detect_dialect(parsed)

        result = ParsedFeed(feed_url=feed_url, dialect=dialect)

        if parsed.get("bozo"):
            result.bozo_error = str(parsed.get("bozo_exception"))
            logger.debug(f"Document from {feed_url} is not well-formed: {result.bozo_error}")

        now = datetime.now(timezone.utc)
        for entry in parsed.get("entries", []):
            try:
                result.items.append(self.parse_entry(entry, feed_url, dialect, now=now))
            except Exception as e:
                result.skipped_entries += 1
                logger.warning(f"Skipping unreadable entry in {feed_url}: {type(e).__name__}: {e}")

        if not result.items and result.bozo_error:
            logger.warning(f"No entries could be read from {feed_url}: {result.bozo_error}")

        return result

    def parse_entry(
        self,
        entry: dict,
        feed_url: str,
        dialect: FeedDialect = FeedDialect.RSS,
        now: Optional[datetime] = None,
    ) -> Item:
        """Normalize one feedparser entry into an Item.

        Args:
            entry: Raw entry from feedparser
            feed_url: Feed the entry came from
            dialect: Dialect of the containing document
            now: Fallback publication time

        Returns:
            Normalized Item
        """
        title = self._normalize_title(entry.get("title"))
        link = self._extract_link(entry, dialect)
        date_text = self._extract_date_text(entry)

        return Item(
            id=derive_item_id(entry.get("id") or "", link, date_text, title),
            title=title,
            link=link,
            description=self._normalize_description(first_non_empty(entry, DESCRIPTION_CHAIN)),
            pub_date=self._parse_date(entry, now=now),
            feed_url=feed_url,
        )

    def _normalize_title(self, title: Optional[str]) -> str:
        """Trim the title, falling back to the placeholder."""
        if not isinstance(title, str):
            return self.default_title
        return title.strip() or self.default_title

    def _extract_link(self, entry: dict, dialect: FeedDialect) -> str:
        """Resolve the entry link.

        Atom links usually live in an ``href`` attribute, which is only
        consulted when the text chain yields nothing.
        """
        link = first_non_empty(entry, LINK_CHAIN)
        if not link and dialect is FeedDialect.ATOM:
            link = first_non_empty(entry, ATOM_LINK_CHAIN)
        return link.strip()

    def _extract_date_text(self, entry: dict) -> str:
        """Raw date string of the entry, empty if absent."""
        for key in DATE_KEYS:
            value = entry.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return ""

    def _parse_date(self, entry: dict, now: Optional[datetime] = None) -> datetime:
        """Parse the entry date to an aware UTC datetime.

        Unparsable or missing dates fall back to ``now``.
        """
        fallback = now or datetime.now(timezone.utc)

        for key in DATE_KEYS:
            value = entry.get(key)
            if not (isinstance(value, str) and value.strip()):
                continue

            # feedparser normalizes recognized dates to UTC struct_time
            parsed = entry.get(f"{key}_parsed")
            if parsed:
                try:
                    return datetime(*parsed[:6], tzinfo=timezone.utc)
                except (TypeError, ValueError):
                    pass

            logger.debug(f"Unparsable date {value!r}, using current time")
            return fallback

        return fallback

    def _normalize_description(self, description: str) -> str:
        """Strip markup, collapse whitespace and truncate.

        Truncation is a hard character cut, not word-boundary aware.
        """
        if not description:
            return ""

        text = self._strip_html(description)
        text = re.sub(r"\s+", " ", text).strip()
        return text[: self.max_description_length]

    def _strip_html(self, html: str) -> str:
        """Strip HTML tags from content.

        Args:
            html: HTML content

        Returns:
            Plain text content
        """
        if "<" not in html and "&" not in html:
            return html

        soup = BeautifulSoup(html, "html.parser")

        # Remove script and style elements
        for element in soup(["script", "style", "noscript"]):
            element.decompose()

        return soup.get_text()


def create_parser(
    max_description_length: Optional[int] = None,
    default_title: Optional[str] = None,
) -> FeedParser:
    """Create a configured FeedParser instance.

    Args:
        max_description_length: Maximum description length
        default_title: Placeholder title

    Returns:
        Configured FeedParser instance
    """
    return FeedParser(
        max_description_length=max_description_length,
        default_title=default_title,
    )
