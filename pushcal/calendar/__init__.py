"""Calendar items, timestamp parsing and iCalendar feed assembly."""

from .feed_builder import CalendarFeedBuilder
from .models import CalendarEvent, CalendarItem, OffsetMode, ParsedDateTime
from .timestamp_parser import parse_timestamp

__all__ = [
    "CalendarEvent",
    "CalendarFeedBuilder",
    "CalendarItem",
    "OffsetMode",
    "ParsedDateTime",
    "parse_timestamp",
]
