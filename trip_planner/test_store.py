"""Unit tests for the JSON trip store."""

import json
from datetime import date, datetime

import pytest

from trip_planner.models import ActivityEvent, HotelEvent, Trip, TripEvent
from trip_planner.store import TripStore, new_trip


@pytest.fixture
def store(tmp_path):
    return TripStore(tmp_path / "trips.json")


@pytest.fixture
def trip(store):
    return store.save_trip(new_trip("Paris", date(2025, 6, 1), date(2025, 6, 3), "Paris", ["Paris"]))


def test_save_and_reload(tmp_path, store, trip):
    store.save_event(ActivityEvent(trip_id=trip.id, title="Louvre", start=datetime(2025, 6, 2, 10)))
    reloaded = TripStore(tmp_path / "trips.json")
    assert reloaded.get_trip(trip.id) == trip
    [event] = reloaded.get_events_for_trip(trip.id)
    assert isinstance(event, ActivityEvent)
    assert event.id


def test_save_trip_rejects_backwards_dates(store):
    with pytest.raises(ValueError):
        store.save_trip(Trip(id="t1", name="x", start_date=date(2025, 6, 3), end_date=date(2025, 6, 1)))


def test_events_are_scoped_to_trip(store, trip):
    other = store.save_trip(new_trip("Rome", date(2025, 7, 1), date(2025, 7, 2)))
    store.save_event(HotelEvent(trip_id=trip.id, hotel_name="Lutetia"))
    store.save_event(ActivityEvent(trip_id=trip.id, title="Louvre"))
    store.save_event(ActivityEvent(trip_id=other.id, title="Colosseum"))

    assert len(store.get_events_for_trip(trip.id)) == 2
    assert [h.hotel_name for h in store.get_hotels_for_trip(trip.id)] == ["Lutetia"]


def test_event_needs_trip(store):
    with pytest.raises(ValueError):
        store.save_event(TripEvent(title="orphan"))


def test_delete_event(store, trip):
    event = store.save_event(ActivityEvent(trip_id=trip.id, title="Louvre"))
    assert store.delete_event(event.id)
    assert not store.delete_event(event.id)
    assert store.get_events_for_trip(trip.id) == []


def test_delete_trip_cascades(store, trip):
    store.save_event(ActivityEvent(trip_id=trip.id, title="Louvre"))
    assert store.delete_trip(trip.id)
    assert store.get_trip(trip.id) is None
    assert store.get_events_for_trip(trip.id) == []


def test_list_trips_soonest_first(store, trip):
    store.save_trip(new_trip("Earlier", date(2025, 1, 1), date(2025, 1, 2)))
    assert [t.name for t in store.list_trips()] == ["Earlier", "Paris"]


def test_malformed_records_degrade(tmp_path):
    path = tmp_path / "trips.json"
    path.write_text(json.dumps({
        "trips": [
            {"id": "t1", "name": "Ok", "start_date": "2025-06-01", "end_date": "2025-06-02", "cities": "Paris|||Lyon"},
            {"id": "t2", "name": "No dates"},
            "garbage",
        ],
        "events": [
            {"id": "e1", "trip_id": "t1", "event_type": "zeppelin", "title": "Airship", "start": "2025-06-01T10:00"},
            {"id": "e2", "trip_id": "t1", "event_type": "hotel", "hotel_latitude": "n/a"},
        ],
    }), encoding="utf-8")

    store = TripStore(path)
    assert [t.id for t in store.list_trips()] == ["t1"]
    assert store.get_trip("t1").cities == ["Paris", "Lyon"]
    assert store.get_trip("t2") is None
    events = {e.id: e for e in store.get_events_for_trip("t1")}
    assert type(events["e1"]) is TripEvent
    assert events["e2"].hotel_latitude is None


def test_in_memory(tmp_path):
    store = TripStore(path=None)
    store.save_trip(new_trip("Paris", date(2025, 6, 1), date(2025, 6, 3)))
    assert len(store.list_trips()) == 1
    assert list(tmp_path.iterdir()) == []


class TestReminders:
    def test_one_reminder_per_day(self, tmp_path, store, trip):
        first = store.save_reminder(trip.id, date(2025, 6, 2), "Museum pass")
        second = store.save_reminder(trip.id, datetime(2025, 6, 2, 18), "Museum pass, red bag")
        assert second.id == first.id
        assert second.day_key == "2025-06-02"

        reloaded = TripStore(tmp_path / "trips.json")
        [reminder] = reloaded.get_reminders_for_trip(trip.id)
        assert reminder.content == "Museum pass, red bag"
        assert reloaded.get_reminder(trip.id, date(2025, 6, 2)) == reminder
        assert reloaded.get_reminder(trip.id, date(2025, 6, 3)) is None

    def test_sorted_by_day_and_scoped_to_trip(self, store, trip):
        other = store.save_trip(new_trip("Rome", date(2025, 7, 1), date(2025, 7, 2)))
        store.save_reminder(trip.id, date(2025, 6, 3), "Pack")
        store.save_reminder(trip.id, date(2025, 6, 1), "Taxi at 7")
        store.save_reminder(other.id, date(2025, 7, 1), "Gelato")
        assert [r.day_key for r in store.get_reminders_for_trip(trip.id)] == ["2025-06-01", "2025-06-03"]

    def test_blank_content_clears(self, store, trip):
        store.save_reminder(trip.id, date(2025, 6, 2), "Museum pass")
        assert store.save_reminder(trip.id, date(2025, 6, 2), "  ") is None
        assert store.get_reminders_for_trip(trip.id) == []

    def test_delete_reminder(self, store, trip):
        reminder = store.save_reminder(trip.id, date(2025, 6, 2), "Museum pass")
        assert store.delete_reminder(reminder.id)
        assert not store.delete_reminder(reminder.id)

    def test_needs_trip(self, store):
        with pytest.raises(ValueError):
            store.save_reminder("", date(2025, 6, 2), "orphan")

    def test_deleted_with_trip(self, store, trip):
        store.save_reminder(trip.id, date(2025, 6, 2), "Museum pass")
        store.delete_trip(trip.id)
        assert store.get_reminders_for_trip(trip.id) == []

    def test_unreadable_record_is_skipped(self, tmp_path):
        path = tmp_path / "trips.json"
        path.write_text(json.dumps({"reminders": [
            {"id": "m1", "trip_id": "t1", "day_key": "someday", "content": "?"},
            {"id": "m2", "trip_id": "t1", "day_key": "2025-06-02", "content": "Pass"},
        ]}), encoding="utf-8")
        [reminder] = TripStore(path).get_reminders_for_trip("t1")
        assert reminder.id == "m2"
        assert reminder.updated_at is None
