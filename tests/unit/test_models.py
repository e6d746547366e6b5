"""Unit tests for the calendar item model."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from pushcal.calendar.models import CalendarItem

pytestmark = pytest.mark.unit

WIRE_ITEM = {
    "user_id": 1,
    "added_by": 2,
    "title": "Checkup",
    "description": "Doctor visit",
    "startDate": "2024-03-10T09:00:00+01",
    "endDate": "2024-03-10T10:00:00+01",
}


class TestCalendarItem:
    def test_validate_when_wire_names_used_then_fields_populated(self) -> None:
        item = CalendarItem.model_validate(WIRE_ITEM)

        assert item.start_date == "2024-03-10T09:00:00+01"
        assert item.end_date == "2024-03-10T10:00:00+01"
        assert item.id is None

    def test_validate_when_unknown_fields_then_ignored(self) -> None:
        item = CalendarItem.model_validate(dict(WIRE_ITEM, colour="red"))

        assert "colour" not in item.to_api()

    def test_validate_when_user_id_numeric_string_then_coerced(self) -> None:
        assert CalendarItem.model_validate(dict(WIRE_ITEM, user_id="3")).user_id == 3

    @pytest.mark.parametrize("missing", ["user_id", "added_by", "title", "startDate", "endDate"])
    def test_validate_when_required_field_missing_then_raises(self, missing: str) -> None:
        data = {k: v for k, v in WIRE_ITEM.items() if k != missing}

        with pytest.raises(PydanticValidationError):
            CalendarItem.model_validate(data)

    def test_to_document_when_called_then_wire_names_without_id(self) -> None:
        item = CalendarItem.model_validate(dict(WIRE_ITEM, id="abc"))

        document = item.to_document()

        assert "id" not in document
        assert document["startDate"] == WIRE_ITEM["startDate"]

    def test_from_document_when_stored_then_id_restored(self) -> None:
        item = CalendarItem.from_document(dict(WIRE_ITEM, id="abc"))

        assert item.id == "abc"
        assert item.to_api()["endDate"] == WIRE_ITEM["endDate"]
