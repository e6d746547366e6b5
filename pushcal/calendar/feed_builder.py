"""iCalendar feed assembly for stored calendar items.

Turns a sequence of ``CalendarItem`` records into a ``text/calendar``
document. Items whose start or end cannot be parsed are skipped and logged;
one bad record never takes the whole feed down.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone

from icalendar import Calendar, Event as ICalEvent

from pushcal.calendar.models import CalendarEvent, CalendarItem, OffsetMode, ParsedDateTime
from pushcal.calendar.timestamp_parser import parse_timestamp
from pushcal.exceptions import MalformedTimestamp

logger = logging.getLogger(__name__)

PRODID = "-//pushcal//Calendar Feed//EN"
UID_DOMAIN = "pushcal"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(parsed: ParsedDateTime) -> datetime:
    """Convert parsed components to a datetime.

    Hours and minutes are added to the calendar date, so an hour of 25
    becomes 01:00 on the following day. Legacy values stay floating (naive);
    UTC-normalized values carry ``timezone.utc``.

    Raises:
        ValueError: If year, month or day do not form a valid date
    """
    base = datetime(parsed.year, parsed.month, parsed.day)
    value = base + timedelta(hours=parsed.hour, minutes=parsed.minute)
    if parsed.is_utc:
        value = value.replace(tzinfo=timezone.utc)
    return value


def describe(item: CalendarItem) -> str:
    """Return the item description with its link appended when present."""
    if item.url:
        return f"{item.description} Link: {item.url}"
    return item.description


def _event_uid(item: CalendarItem) -> str:
    if item.id:
        return f"{item.id}@{UID_DOMAIN}"
    digest = hashlib.sha256(
        "|".join((item.title, item.start_date, item.end_date, str(item.user_id))).encode("utf-8")
    ).hexdigest()[:32]
    return f"{digest}@{UID_DOMAIN}"


class CalendarFeedBuilder:
    """Build iCalendar documents from stored calendar items.

    The builder is stateless between calls and safe to share across requests.
    """

    def __init__(
        self,
        calendar_name: str = "pushcal",
        offset_mode: OffsetMode = OffsetMode.LEGACY,
        time_provider: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.calendar_name = calendar_name
        self.offset_mode = OffsetMode(offset_mode)
        self._time_provider = time_provider

    def build_event(self, item: CalendarItem) -> CalendarEvent:
        """Assemble one feed-ready event.

        Raises:
            MalformedTimestamp: If start or end cannot be parsed into a valid date
        """
        start = parse_timestamp(item.start_date, self.offset_mode)
        end = parse_timestamp(item.end_date, self.offset_mode)

        for raw, parsed in ((item.start_date, start), (item.end_date, end)):
            try:
                to_datetime(parsed)
            except (ValueError, OverflowError) as exc:
                raise MalformedTimestamp(raw, str(exc)) from exc

        return CalendarEvent(
            uid=_event_uid(item),
            title=item.title,
            description=describe(item),
            start=start,
            end=end,
            url=item.url or None,
        )

    def build_events(self, items: Iterable[CalendarItem]) -> list[CalendarEvent]:
        """Assemble events in input order, skipping items with bad timestamps."""
        events: list[CalendarEvent] = []
        for item in items:
            try:
                events.append(self.build_event(item))
            except MalformedTimestamp as exc:
                logger.warning("Skipping calendar item %s: %s", item.id, exc.message)
        return events

    def serialize(self, events: Iterable[CalendarEvent]) -> str:
        """Serialize events into an iCalendar document."""
        cal = Calendar()
        cal.add("prodid", PRODID)
        cal.add("version", "2.0")
        cal.add("calscale", "GREGORIAN")
        cal.add("method", "PUBLISH")
        cal.add("x-wr-calname", self.calendar_name)

        stamp = self._time_provider()
        for event in events:
            vevent = ICalEvent()
            vevent.add("uid", event.uid)
            vevent.add("dtstamp", stamp)
            vevent.add("summary", event.title)
            vevent.add("description", event.description)
            vevent.add("dtstart", to_datetime(event.start))
            vevent.add("dtend", to_datetime(event.end))
            if event.url:
                vevent.add("url", event.url)
            cal.add_component(vevent)

        return cal.to_ical().decode("utf-8")

    def build(self, items: Iterable[CalendarItem]) -> str:
        """Build the complete ``text/calendar`` document for ``items``."""
        events = self.build_events(items)
        logger.debug("Serializing calendar feed with %d events", len(events))
        return self.serialize(events)
