"""Unit tests for record ↔ model conversion."""

from datetime import date, datetime

from trip_planner.models import (
    CarRentalEvent,
    FlightEvent,
    HotelEvent,
    Reminder,
    RestaurantEvent,
    Trip,
    TripEvent,
)
from trip_planner.normalize.records import (
    event_from_record,
    event_to_record,
    parse_cities,
    reminder_from_record,
    reminder_to_record,
    trip_from_record,
    trip_to_record,
)


def test_parse_cities_accepts_both_storage_forms():
    assert parse_cities("Paris|||Lyon||| ") == ["Paris", "Lyon"]
    assert parse_cities(["Paris", None, " Nice "]) == ["Paris", "Nice"]
    assert parse_cities(None) == []


class TestTripRecords:
    def test_round_trip(self):
        trip = Trip(
            id="t1", name="France", start_date=date(2025, 6, 1), end_date=date(2025, 6, 5),
            destination="Paris", cities=["Paris", "Lyon"],
        )
        assert trip_from_record(trip_to_record(trip)) == trip

    def test_missing_dates(self):
        assert trip_from_record({"id": "t1", "name": "x", "start_date": "2025-06-01"}) is None

    def test_missing_name_becomes_empty(self):
        trip = trip_from_record({"id": "t1", "start_date": "2025-06-01", "end_date": "2025-06-02"})
        assert trip.name == ""
        assert trip.cities == []


class TestEventRecords:
    def test_variant_by_tag(self):
        ev = event_from_record({
            "id": "h1", "trip_id": "t1", "event_type": "hotel", "title": "Stay",
            "start": "2025-06-01T15:00:00", "end": "2025-06-03T11:00:00",
            "hotel_name": "Lutetia", "hotel_latitude": "48.85", "hotel_longitude": 2.33,
        })
        assert isinstance(ev, HotelEvent)
        assert ev.check_in == datetime(2025, 6, 1, 15, 0)
        assert ev.hotel_latitude == 48.85

    def test_car_rental_tag(self):
        ev = event_from_record({"id": "c1", "event_type": "carRental", "has_car_rental": "false"})
        assert isinstance(ev, CarRentalEvent)
        assert ev.has_car_rental is False

    def test_unknown_tag_falls_back_to_base(self):
        ev = event_from_record({"id": "x", "event_type": "cruise", "title": "Boat"})
        assert type(ev) is TripEvent
        assert ev.title == "Boat"

    def test_malformed_fields_degrade(self):
        ev = event_from_record({
            "id": "f1", "event_type": "flight", "title": None, "start": "garbage",
            "departure_latitude": "north", "sort_order": "first",
        })
        assert isinstance(ev, FlightEvent)
        assert ev.title == ""
        assert ev.start is None
        assert ev.departure_latitude is None
        assert ev.sort_order == 0

    def test_reservation_time_defaults_to_start(self):
        ev = event_from_record({"id": "r1", "event_type": "restaurant", "start": "2025-06-01T19:30:00"})
        assert isinstance(ev, RestaurantEvent)
        assert ev.reservation_time == datetime(2025, 6, 1, 19, 30)

    def test_to_record_round_trip(self):
        flight = FlightEvent(
            id="f1", trip_id="t1", title="BA 123", start=datetime(2025, 6, 1, 8, 0),
            flight_number="BA123", departure_latitude=51.47,
        )
        record = event_to_record(flight)
        assert record["event_type"] == "flight"
        assert record["start"] == "2025-06-01T08:00:00"
        assert event_from_record(record) == flight


class TestReminderRecords:
    def test_round_trip(self):
        reminder = Reminder(
            id="m1", trip_id="t1", day_key="2025-06-02", content="Museum pass",
            updated_at=datetime(2025, 5, 30, 9, 15),
        )
        assert reminder_from_record(reminder_to_record(reminder)) == reminder

    def test_day_key_is_normalized(self):
        reminder = reminder_from_record({"id": "m1", "trip_id": "t1", "day_key": "2025-06-02T08:00:00Z"})
        assert reminder.day_key == "2025-06-02"
        assert reminder.content == ""

    def test_unusable_records(self):
        assert reminder_from_record({"id": "m1", "trip_id": "t1"}) is None
        assert reminder_from_record({"id": "m1", "day_key": "2025-06-02"}) is None
        assert reminder_from_record({"trip_id": "t1", "day_key": "2025-06-02"}) is None
