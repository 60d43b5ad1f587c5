"""
Canonical event schema shared by every scraper in the package.

Every record carries all fields; a missing value is stored as None rather
than dropping the key, so consumers can rely on the document shape.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

EVENT_FIELDS = ("title", "date", "genre", "time", "location", "price", "image", "excerpt", "isFeatured")


class EventRecord(BaseModel):
    title: Optional[str] = Field(None, description="Event name.")
    date: Optional[str] = Field(None, description="ISO 8601 date at midnight UTC, e.g. 2025-01-05T00:00:00.000+00:00.")
    genre: str = Field(..., description="Genre from the keyword table or the unclassified sentinel.")
    time: Optional[str] = Field(None, description="Start time as shown on the page.")
    location: Optional[str] = Field(None, description="Venue label.")
    price: Optional[str] = Field(None, description="Price text, currency not interpreted.")
    image: Optional[str] = Field(None, description="Primary image URL.")
    excerpt: str = Field("", description="Description paragraph plus buy-tickets link, as HTML.")
    is_featured: bool = Field(False, alias="isFeatured")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """Serialized form used for MongoDB and JSON output, keyed in EVENT_FIELDS order."""
        dumped = self.model_dump(by_alias=True)
        return {name: dumped[name] for name in EVENT_FIELDS}
