"""Parsing of stored calendar timestamp strings.

Calendar items store their start and end as strings shaped like
``2024-03-10T09:30:00+02`` (optionally ``+02:00``). The legacy parsing rule
is kept exactly as existing feed consumers expect it:

- the date is read by splitting on ``-`` and ``T``
- the time is read by splitting on ``:``
- the integer after ``+`` is *added to the hour*; minutes are never adjusted
  and a ``-hh`` suffix is ignored

This is not a timezone conversion. ``OffsetMode.STANDARD`` provides a real
ISO-8601 parse normalized to UTC for deployments that opt in.
"""

from __future__ import annotations

import re
from datetime import timezone
from typing import Any

from dateutil import parser as dateutil_parser

from pushcal.calendar.models import OffsetMode, ParsedDateTime
from pushcal.exceptions import MalformedTimestamp

_DIGITS = re.compile(r"[0-9]+")
# seconds may carry a fraction and a trailing Z; a -hh suffix is ignored
_SECONDS = re.compile(r"[0-9]+(?:\.[0-9]+)?Z?")


def _to_int(raw: Any, segment: str, field: str) -> int:
    if not _DIGITS.fullmatch(segment):
        raise MalformedTimestamp(raw, f"{field} segment {segment!r} is not numeric")
    return int(segment)


def _parse_legacy(raw: str) -> ParsedDateTime:
    date_parts = raw.split("-")
    if len(date_parts) < 3:
        raise MalformedTimestamp(raw, "expected YYYY-MM-DD date prefix")

    year = _to_int(raw, date_parts[0], "year")
    month = _to_int(raw, date_parts[1], "month")

    remainder = "-".join(date_parts[2:])
    if "T" not in remainder:
        raise MalformedTimestamp(raw, "missing 'T' date/time separator")
    day_part, time_part = remainder.split("T", 1)
    day = _to_int(raw, day_part, "day")

    time_segments = time_part.split(":")
    if len(time_segments) < 3:
        raise MalformedTimestamp(raw, "expected hh:mm:ss time")

    initial_hour = _to_int(raw, time_segments[0], "hour")
    minute = _to_int(raw, time_segments[1], "minute")

    offset_parts = time_segments[2].split("+")
    seconds = offset_parts[0].split("-", 1)[0]
    if not _SECONDS.fullmatch(seconds):
        raise MalformedTimestamp(raw, f"seconds segment {seconds!r} is not numeric")

    if len(offset_parts) >= 2:
        hour = initial_hour + _to_int(raw, offset_parts[1], "offset")
    else:
        hour = initial_hour

    return ParsedDateTime(year=year, month=month, day=day, hour=hour, minute=minute)


def _parse_standard(raw: str) -> ParsedDateTime:
    try:
        parsed = dateutil_parser.isoparse(raw)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        else:
            parsed = parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError) as exc:
        raise MalformedTimestamp(raw, str(exc)) from exc

    return ParsedDateTime(
        year=parsed.year,
        month=parsed.month,
        day=parsed.day,
        hour=parsed.hour,
        minute=parsed.minute,
        is_utc=True,
    )


def parse_timestamp(raw: Any, mode: OffsetMode = OffsetMode.LEGACY) -> ParsedDateTime:
    """Parse a stored start/end date string into date-time components.

    Args:
        raw: Stored timestamp string, e.g. ``"2024-03-10T09:30:00+02"``
        mode: Offset interpretation, legacy by default

    Returns:
        ParsedDateTime with year, month, day, hour and minute

    Raises:
        MalformedTimestamp: If the value does not match the expected shape

    Examples:
        >>> parse_timestamp("2024-03-10T09:30:00+02").hour
        11
        >>> parse_timestamp("2024-03-10T09:30:00+00").hour
        9
        >>> parse_timestamp("2024-03-10T09:30:00").hour
        9
    """
    if not isinstance(raw, str):
        raise MalformedTimestamp(raw, "timestamp must be a string")

    if OffsetMode(mode) is OffsetMode.STANDARD:
        return _parse_standard(raw)
    return _parse_legacy(raw)
