"""
Item data model for normalized feed entries.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FeedDialect(str, Enum):
    """Syndication format of a parsed document."""

    RSS = "rss"
    ATOM = "atom"


class Item(BaseModel):
    """One normalized entry of the archive.

    Items are immutable once created. Field aliases match the persisted JSON
    keys, so ``Item.model_validate`` accepts archive records directly.
    Unknown keys written by other tools are kept as-is.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1, description="Deduplication key")
    title: str = Field(..., description="Entry title")
    link: str = Field(default="", description="Entry link, may be empty")
    description: str = Field(default="", description="Plain-text preview")
    pub_date: datetime = Field(..., alias="pubDate", description="Publication date")
    feed_url: str = Field(..., alias="feedUrl", description="Feed the entry came from")

    def to_dict(self) -> dict:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self) -> str:
        return f"<Item(id='{self.id}', title='{self.title}')>"
