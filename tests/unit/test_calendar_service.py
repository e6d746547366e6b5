"""Unit tests for calendar item persistence and feed generation."""

import logging

import pytest

from pushcal.calendar.feed_builder import CalendarFeedBuilder
from pushcal.calendar.models import CalendarItem
from pushcal.calendar.service import CalendarItemService
from pushcal.storage.document_store import DocumentStore

pytestmark = pytest.mark.unit


@pytest.fixture
def service(document_store: DocumentStore) -> CalendarItemService:
    return CalendarItemService(document_store.calendar_items, CalendarFeedBuilder(calendar_name="Family"))


class TestPersistence:
    @pytest.mark.asyncio
    async def test_add_when_item_saved_then_listed_by_creator(
        self, service: CalendarItemService, checkup_item: CalendarItem
    ) -> None:
        item_id = await service.add(checkup_item)

        items = await service.list_added_by(1)

        assert [i.id for i in items] == [item_id]
        assert items[0].start_date == "2024-03-10T09:00:00+01"

    @pytest.mark.asyncio
    async def test_add_when_stored_then_document_uses_wire_field_names(
        self, service: CalendarItemService, document_store: DocumentStore, checkup_item: CalendarItem
    ) -> None:
        item_id = await service.add(checkup_item)

        document = await document_store.calendar_items.find_one({"id": item_id})

        assert document["startDate"] == "2024-03-10T09:00:00+01"
        assert "start_date" not in document

    @pytest.mark.asyncio
    async def test_list_when_filtered_then_creator_and_owner_are_distinct(
        self, service: CalendarItemService, checkup_item: CalendarItem
    ) -> None:
        delegated = checkup_item.model_copy(update={"user_id": 2, "added_by": 1})
        await service.add(delegated)

        assert len(await service.list_added_by(1)) == 1
        assert await service.list_for_user(1) == []
        assert len(await service.list_for_user(2)) == 1

    @pytest.mark.asyncio
    async def test_update_when_item_exists_then_fields_replaced(
        self, service: CalendarItemService, checkup_item: CalendarItem
    ) -> None:
        item_id = await service.add(checkup_item)
        changed = checkup_item.model_copy(update={"title": "Dentist", "description": ""})

        assert await service.update(item_id, changed) is True

        stored = (await service.list_added_by(1))[0]
        assert stored.id == item_id
        assert stored.title == "Dentist"
        assert stored.description == ""

    @pytest.mark.asyncio
    async def test_update_when_item_missing_then_false(
        self, service: CalendarItemService, checkup_item: CalendarItem
    ) -> None:
        assert await service.update("missing", checkup_item) is False

    @pytest.mark.asyncio
    async def test_delete_when_item_exists_then_removed(
        self, service: CalendarItemService, checkup_item: CalendarItem
    ) -> None:
        item_id = await service.add(checkup_item)

        assert await service.delete(item_id) is True
        assert await service.delete(item_id) is False
        assert await service.list_added_by(1) == []

    @pytest.mark.asyncio
    async def test_list_when_stored_document_unreadable_then_skipped(
        self,
        service: CalendarItemService,
        document_store: DocumentStore,
        checkup_item: CalendarItem,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        await document_store.calendar_items.insert({"added_by": 1, "title": "no dates"})
        await service.add(checkup_item)

        with caplog.at_level(logging.WARNING, logger="pushcal.calendar.service"):
            items = await service.list_added_by(1)

        assert [i.title for i in items] == ["Checkup"]
        assert "Skipping unreadable calendar item" in caplog.text


class TestFeed:
    @pytest.mark.asyncio
    async def test_build_feed_when_items_exist_then_only_owner_items_included(
        self, service: CalendarItemService, checkup_item: CalendarItem
    ) -> None:
        await service.add(checkup_item)
        await service.add(checkup_item.model_copy(update={"user_id": 2, "title": "Elsewhere"}))

        feed = await service.build_feed_for(1)

        assert "SUMMARY:Checkup" in feed
        assert "Elsewhere" not in feed
        assert "DTSTART:20240310T100000" in feed

    @pytest.mark.asyncio
    async def test_build_feed_when_no_items_then_empty_calendar(self, service: CalendarItemService) -> None:
        feed = await service.build_feed_for(7)

        assert "BEGIN:VCALENDAR" in feed
        assert "VEVENT" not in feed
