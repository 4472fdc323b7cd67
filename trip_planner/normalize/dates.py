"""Day keys, day ranges, and date formatting for itineraries.

All instants are naive wall-clock datetimes. A timestamp stored with an offset
keeps the clock reading it was recorded with; nothing is converted through UTC,
so a trip reads the same from any device time zone.
"""

import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from dateutil import parser as dateutil_parser

DayLike = Union[date, datetime]

_EMPTY_VALUES = ("null", "none", "unknown", "")


def parse_instant(raw) -> Optional[datetime]:
    """Parse a stored timestamp into a naive wall-clock datetime, or None.

    Handles:
      - ISO 8601 with or without offset (offset is dropped, clock kept)
      - YYYY-MM-DD (midnight)
      - free-form strings dateutil understands ("June 1 2025 10:00")
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.replace(tzinfo=None)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if not isinstance(raw, str) or raw.strip().lower() in _EMPTY_VALUES:
        return None

    raw = raw.strip()

    # 1. ISO forms, including a trailing "Z"
    try:
        return datetime.fromisoformat(re.sub(r"Z$", "+00:00", raw)).replace(tzinfo=None)
    except ValueError:
        pass

    # 2. dateutil as general fallback
    try:
        return dateutil_parser.parse(raw).replace(tzinfo=None)
    except (ValueError, OverflowError):
        pass

    return None


def parse_day(raw) -> Optional[date]:
    """Parse a calendar date (a trip's start/end), or None."""
    if isinstance(raw, str):
        m = re.match(r'^(\d{4})-(\d{2})-(\d{2})$', raw.strip())
        if m:
            try:
                return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
            except ValueError:
                return None
    instant = parse_instant(raw)
    return instant.date() if instant else None


def as_day(value: DayLike) -> date:
    """Calendar day of a date or datetime."""
    return value.date() if isinstance(value, datetime) else value


def day_key(instant: DayLike) -> str:
    """Grouping key for the local calendar day of an instant ("YYYY-MM-DD")."""
    return as_day(instant).isoformat()


def date_from_key(key: str) -> date:
    return date.fromisoformat(key)


def days_between(start: DayLike, end: DayLike) -> int:
    return (as_day(end) - as_day(start)).days


def enumerate_days(start: DayLike, end: DayLike) -> List[date]:
    """Every calendar day from start's day to end's day, inclusive."""
    first, last = as_day(start), as_day(end)
    days = []
    d = first
    while d <= last:
        days.append(d)
        d += timedelta(days=1)
    return days


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------

def format_duration(minutes: int) -> str:
    """Minutes as "2h 30min", "2h" or "45min"."""
    hours, mins = divmod(max(int(minutes), 0), 60)
    if hours and mins:
        return f"{hours}h {mins}min"
    if hours:
        return f"{hours}h"
    return f"{mins}min"


def format_time(instant: datetime) -> str:
    """12-hour clock without a leading zero, e.g. "2:30 PM"."""
    hour = instant.hour % 12 or 12
    return f"{hour}:{instant.minute:02d} {'AM' if instant.hour < 12 else 'PM'}"


def format_date_range(start: DayLike, end: DayLike) -> str:
    """"June 1, 2025", "June 1 - 3, 2025" or "Jun 30 - Jul 2, 2025"."""
    first, last = as_day(start), as_day(end)
    if first == last:
        return f"{first:%B} {first.day}, {first.year}"
    if (first.year, first.month) == (last.year, last.month):
        return f"{first:%B} {first.day} - {last.day}, {last.year}"
    return f"{first:%b} {first.day} - {last:%b} {last.day}, {last.year}"
