"""Convert stored trip/event records (plain dicts) to models and back.

Records come from a document store that nothing validates, so every reader
here degrades instead of raising: missing strings become "", bad numbers and
timestamps become None, and an unknown event tag becomes a plain TripEvent.
"""

from dataclasses import fields
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from trip_planner.models import EVENT_CLASSES, EventType, Reminder, Trip, TripEvent
from trip_planner.normalize.dates import parse_day, parse_instant

CITY_SEPARATOR = "|||"


def parse_cities(raw) -> List[str]:
    """Cities are stored either as a list or as one "|||"-joined string."""
    if isinstance(raw, str):
        parts = raw.split(CITY_SEPARATOR)
    elif isinstance(raw, (list, tuple)):
        parts = [str(c) for c in raw if c is not None]
    else:
        return []
    return [p.strip() for p in parts if p.strip()]


def format_cities(cities: List[str]) -> str:
    return CITY_SEPARATOR.join(cities)


def _to_float(value) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_str(value) -> str:
    if value is None:
        return ""
    return str(value)


def _to_bool(value, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no", "")
    return bool(value)


# models.py uses postponed annotations, so field types arrive as strings
_COERCERS = {
    "str": _to_str,
    "int": _to_int,
    "bool": _to_bool,
    "Optional[float]": _to_float,
    "Optional[datetime]": parse_instant,
}


def _event_class(tag):
    try:
        return EVENT_CLASSES[EventType(tag)]
    except (TypeError, ValueError):
        return TripEvent


# ---------------------------------------------------------------------------
# Trips
# ---------------------------------------------------------------------------

def trip_from_record(raw: Dict[str, Any]) -> Optional[Trip]:
    """Build a Trip, or None when its id or dates are unusable."""
    trip_id = _to_str(raw.get("id"))
    start = parse_day(raw.get("start_date"))
    end = parse_day(raw.get("end_date"))
    if not trip_id or not start or not end:
        return None
    return Trip(
        id=trip_id,
        name=_to_str(raw.get("name")),
        destination=_to_str(raw.get("destination")),
        start_date=start,
        end_date=end,
        cities=parse_cities(raw.get("cities")),
        created_at=parse_instant(raw.get("created_at")),
    )


def trip_to_record(trip: Trip) -> Dict[str, Any]:
    return {
        "id": trip.id,
        "name": trip.name,
        "destination": trip.destination,
        "start_date": trip.start_date.isoformat(),
        "end_date": trip.end_date.isoformat(),
        "cities": list(trip.cities),
        "created_at": trip.created_at.isoformat() if trip.created_at else None,
    }


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def event_from_record(raw: Dict[str, Any]) -> TripEvent:
    """Build the event variant named by raw["event_type"], coercing every field."""
    cls = _event_class(raw.get("event_type"))
    values: Dict[str, Any] = {}

    for f in fields(cls):
        coerce = _COERCERS.get(f.type)
        if f.name in raw and coerce is not None:
            values[f.name] = coerce(raw[f.name])

    event = cls(**values)

    # Reservation time mirrors the start when a form did not set it separately
    if hasattr(event, "reservation_time") and event.reservation_time is None:
        event.reservation_time = event.start
    return event


def _dump(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def event_to_record(event: TripEvent) -> Dict[str, Any]:
    record = {f.name: _dump(getattr(event, f.name)) for f in fields(event)}
    record["event_type"] = event.event_type.value if event.event_type else ""
    return record


# ---------------------------------------------------------------------------
# Day reminders
# ---------------------------------------------------------------------------

def reminder_from_record(raw: Dict[str, Any]) -> Optional[Reminder]:
    """Build a Reminder, or None when its id, trip or day is unusable."""
    reminder_id = _to_str(raw.get("id"))
    trip_id = _to_str(raw.get("trip_id"))
    day = parse_day(raw.get("day_key"))
    if not reminder_id or not trip_id or day is None:
        return None
    return Reminder(
        id=reminder_id,
        trip_id=trip_id,
        day_key=day.isoformat(),
        content=_to_str(raw.get("content")),
        updated_at=parse_instant(raw.get("updated_at")),
    )


def reminder_to_record(reminder: Reminder) -> Dict[str, Any]:
    return {
        "id": reminder.id,
        "trip_id": reminder.trip_id,
        "day_key": reminder.day_key,
        "content": reminder.content,
        "updated_at": reminder.updated_at.isoformat() if reminder.updated_at else None,
    }
