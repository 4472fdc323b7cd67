"""Trip, event and reminder records in a JSON file (or in memory, with path=None)."""

import json
import logging
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from trip_planner.config import STORE_PATH
from trip_planner.models import HotelEvent, Reminder, Trip, TripEvent
from trip_planner.normalize.dates import DayLike, day_key
from trip_planner.normalize.records import (
    event_from_record,
    event_to_record,
    reminder_from_record,
    reminder_to_record,
    trip_from_record,
    trip_to_record,
)

logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid.uuid4())


def new_trip(name: str, start_date: date, end_date: date, destination: str = "", cities: Optional[List[str]] = None) -> Trip:
    return Trip(
        id=new_id(),
        name=name,
        start_date=start_date,
        end_date=end_date,
        destination=destination,
        cities=list(cities or []),
        created_at=datetime.now(),
    )


class TripStore:
    """Local document store for trips, their events and day reminders.

    Records are kept as plain dicts and converted on every read, so a record
    written by another client with missing or odd fields still loads.
    """

    def __init__(self, path: Optional[Path] = STORE_PATH):
        self.path = path
        self._trips: Dict[str, Dict[str, Any]] = {}
        self._events: Dict[str, Dict[str, Any]] = {}
        self._reminders: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self):
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Store read error ({self.path}): {e}")
            return
        for raw in data.get("trips", []) if isinstance(data, dict) else []:
            if isinstance(raw, dict) and raw.get("id"):
                self._trips[str(raw["id"])] = raw
        for raw in data.get("events", []) if isinstance(data, dict) else []:
            if isinstance(raw, dict) and raw.get("id"):
                self._events[str(raw["id"])] = raw
        for raw in data.get("reminders", []) if isinstance(data, dict) else []:
            if isinstance(raw, dict) and raw.get("id"):
                self._reminders[str(raw["id"])] = raw

    def _save(self):
        if self.path is None:
            return
        data = {
            "trips": list(self._trips.values()),
            "events": list(self._events.values()),
            "reminders": list(self._reminders.values()),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    # -- trips --------------------------------------------------------------

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        raw = self._trips.get(trip_id)
        if raw is None:
            return None
        trip = trip_from_record(raw)
        if trip is None:
            logger.warning(f"Trip record {trip_id!r} is missing its dates")
        return trip

    def list_trips(self) -> List[Trip]:
        """All readable trips, soonest first."""
        trips = [t for t in (trip_from_record(raw) for raw in self._trips.values()) if t is not None]
        trips.sort(key=lambda t: (t.start_date, t.name))
        return trips

    def save_trip(self, trip: Trip) -> Trip:
        if trip.start_date > trip.end_date:
            raise ValueError(f"Trip {trip.name!r} ends before it starts")
        if not trip.id:
            trip.id = new_id()
        if trip.created_at is None:
            trip.created_at = datetime.now()
        self._trips[trip.id] = trip_to_record(trip)
        self._save()
        return trip

    def delete_trip(self, trip_id: str) -> bool:
        """Remove a trip with every event and reminder that belongs to it."""
        if self._trips.pop(trip_id, None) is None:
            return False
        self._events = {k: v for k, v in self._events.items() if v.get("trip_id") != trip_id}
        self._reminders = {k: v for k, v in self._reminders.items() if v.get("trip_id") != trip_id}
        self._save()
        return True

    # -- events -------------------------------------------------------------

    def get_events_for_trip(self, trip_id: str) -> List[TripEvent]:
        events = []
        for raw in self._events.values():
            if raw.get("trip_id") == trip_id:
                events.append(event_from_record(raw))
        events.sort(key=lambda ev: ev.sort_order)
        return events

    def get_hotels_for_trip(self, trip_id: str) -> List[HotelEvent]:
        return [ev for ev in self.get_events_for_trip(trip_id) if isinstance(ev, HotelEvent)]

    def save_event(self, event: TripEvent) -> TripEvent:
        if not event.trip_id:
            raise ValueError("Event has no trip id")
        if not event.id:
            event.id = new_id()
        self._events[event.id] = event_to_record(event)
        self._save()
        return event

    def delete_event(self, event_id: str) -> bool:
        if self._events.pop(event_id, None) is None:
            return False
        self._save()
        return True

    # -- reminders ----------------------------------------------------------

    def get_reminders_for_trip(self, trip_id: str) -> List[Reminder]:
        reminders = []
        for raw in self._reminders.values():
            if raw.get("trip_id") != trip_id:
                continue
            reminder = reminder_from_record(raw)
            if reminder is None:
                logger.warning(f"Reminder record {raw.get('id')!r} is missing its day")
                continue
            reminders.append(reminder)
        reminders.sort(key=lambda r: r.day_key)
        return reminders

    def get_reminder(self, trip_id: str, day: DayLike) -> Optional[Reminder]:
        key = day_key(day)
        for reminder in self.get_reminders_for_trip(trip_id):
            if reminder.day_key == key:
                return reminder
        return None

    def save_reminder(self, trip_id: str, day: DayLike, content: str) -> Optional[Reminder]:
        """Create or replace the reminder for one day of a trip.

        Blank content removes the day's reminder and returns None.
        """
        if not trip_id:
            raise ValueError("Reminder has no trip id")
        existing = self.get_reminder(trip_id, day)
        if not content.strip():
            if existing is not None:
                self.delete_reminder(existing.id)
            return None

        reminder = Reminder(
            id=existing.id if existing else new_id(),
            trip_id=trip_id,
            day_key=day_key(day),
            content=content,
            updated_at=datetime.now(),
        )
        self._reminders[reminder.id] = reminder_to_record(reminder)
        self._save()
        return reminder

    def delete_reminder(self, reminder_id: str) -> bool:
        if self._reminders.pop(reminder_id, None) is None:
            return False
        self._save()
        return True
