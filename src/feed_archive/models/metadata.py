"""
Run metadata model.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RunMetadata(BaseModel):
    """Summary of one ingestion run, regenerated on every run.

    ``feed_count`` counts the usable URLs of the feed list, not its raw
    length: blank and non-string entries are skipped when the list is
    loaded and are not counted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_updated: datetime = Field(..., alias="lastUpdated", description="Run completion time")
    total_items: int = Field(..., ge=0, alias="totalItems", description="Archive size after the run")
    new_items: int = Field(..., ge=0, alias="newItems", description="Items added by this run")
    feed_count: int = Field(
        ...,
        ge=0,
        alias="feedCount",
        description="Feed URLs processed, after blank and non-string list entries are dropped",
    )

    def to_dict(self) -> dict:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)
