"""Shared fixtures for the pushcal test suite."""

from pathlib import Path
from typing import Any

import pytest

from pushcal.calendar.models import CalendarItem
from pushcal.storage.document_store import DocumentStore
from tests.helpers import FakePushSender


def pytest_configure(config: Any) -> None:
    """Register test markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: HTTP-level tests against the aiohttp app")


@pytest.fixture
def document_store(tmp_path: Path) -> DocumentStore:
    """Document store backed by a fresh SQLite file."""
    return DocumentStore(tmp_path / "store.db")


@pytest.fixture
def fake_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture
def checkup_item() -> CalendarItem:
    """The doctor-visit item used across calendar tests."""
    return CalendarItem(
        user_id=1,
        added_by=1,
        title="Checkup",
        description="Doctor visit",
        startDate="2024-03-10T09:00:00+01",
        endDate="2024-03-10T10:00:00+01",
    )
