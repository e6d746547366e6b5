"""Calendar item persistence and feed generation."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from pushcal.calendar.feed_builder import CalendarFeedBuilder
from pushcal.calendar.models import CalendarItem
from pushcal.storage.protocols import DocumentCollection

logger = logging.getLogger(__name__)


class CalendarItemService:
    """Operations on the ``calendar_items`` collection."""

    def __init__(self, items: DocumentCollection, feed_builder: CalendarFeedBuilder) -> None:
        self.items = items
        self.feed_builder = feed_builder

    async def add(self, item: CalendarItem) -> str:
        item_id = await self.items.insert(item.to_document())
        logger.info("Saved calendar item %s for user %s", item_id, item.user_id)
        return item_id

    async def _load(self, query: dict[str, Any]) -> list[CalendarItem]:
        items: list[CalendarItem] = []
        for document in await self.items.find(query):
            try:
                items.append(CalendarItem.from_document(document))
            except PydanticValidationError as exc:
                logger.warning(
                    "Skipping unreadable calendar item %s: %d validation error(s)",
                    document.get("id"),
                    exc.error_count(),
                )
        return items

    async def list_added_by(self, user_id: int) -> list[CalendarItem]:
        """Items created by ``user_id``, in insertion order."""
        return await self._load({"added_by": user_id})

    async def list_for_user(self, user_id: Any) -> list[CalendarItem]:
        """Items scheduled for ``user_id``, in insertion order."""
        return await self._load({"user_id": user_id})

    async def update(self, item_id: str, item: CalendarItem) -> bool:
        """Replace every field of the stored item; returns False if it does not exist."""
        count = await self.items.update({"id": item_id}, item.to_document())
        return count > 0

    async def delete(self, item_id: str) -> bool:
        count = await self.items.remove({"id": item_id})
        return count > 0

    async def build_feed_for(self, user_id: Any) -> str:
        """Build the iCalendar document of the items scheduled for ``user_id``."""
        items = await self.list_for_user(user_id)
        logger.debug("Building calendar feed for user %s from %d items", user_id, len(items))
        return self.feed_builder.build(items)
