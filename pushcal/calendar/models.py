"""Data models for stored calendar items and feed-ready events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class OffsetMode(str, Enum):
    """How the ``+offset`` suffix of a stored timestamp is interpreted."""

    # hour = raw hour + offset value, minutes untouched, sign ignored
    LEGACY = "legacy"
    # real ISO-8601 parsing, normalized to UTC
    STANDARD = "standard"


class CalendarItem(BaseModel):
    """A calendar item as persisted in the ``calendar_items`` collection.

    ``startDate``/``endDate`` keep their camelCase wire names; existing
    clients and stored documents use them.
    """

    id: Optional[str] = Field(default=None, description="Store-assigned identifier")
    user_id: int = Field(..., description="Subject the event is for")
    added_by: int = Field(..., description="Subject who created the item")
    title: str = Field(..., description="Display title")
    description: str = Field(default="", description="Free-text description")
    url: Optional[str] = Field(default=None, description="Optional link appended to the description")
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> dict[str, Any]:
        """Return the store document for this item (without ``id``)."""
        return self.model_dump(by_alias=True, exclude={"id"})

    def to_api(self) -> dict[str, Any]:
        """Return the JSON representation used by the HTTP API."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> CalendarItem:
        return cls.model_validate(document)


@dataclass(frozen=True)
class ParsedDateTime:
    """Date-time components recovered from a stored timestamp string.

    ``hour`` is not range checked: the legacy offset addition can push it
    past 23, the feed builder carries the overflow into the next day.
    """

    year: int
    month: int
    day: int
    hour: int
    minute: int
    is_utc: bool = False


@dataclass(frozen=True)
class CalendarEvent:
    """Feed-ready event assembled from one ``CalendarItem``."""

    uid: str
    title: str
    description: str
    start: ParsedDateTime
    end: ParsedDateTime
    url: Optional[str] = None
