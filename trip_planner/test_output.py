"""Unit tests for calendar export and itinerary formatters."""

import json
from datetime import date, datetime, timezone

import pytest
from icalendar import Calendar

from trip_planner.assemble.itinerary import assemble_calendar, assemble_itinerary, attach_reminders, map_markers
from trip_planner.models import (
    ActivityEvent,
    CarRentalEvent,
    DayWeather,
    FlightEvent,
    HotelEvent,
    Reminder,
    RestaurantEvent,
    Trip,
    TripEvent,
)
from trip_planner.output import (
    days_to_dict,
    format_days,
    format_map_html,
    ics_filename,
    to_ics,
    to_json,
    write_ics,
)

STAMP = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def trip():
    return Trip(
        id="t1", name="Paris, Spring; 2025", start_date=date(2025, 6, 1), end_date=date(2025, 6, 3),
        destination="Paris",
    )


@pytest.fixture
def events():
    return [
        HotelEvent(
            id="h1", trip_id="t1", title="Stay", hotel_name="Lutetia",
            start=datetime(2025, 6, 1, 15, 0), end=datetime(2025, 6, 3, 11, 0),
            hotel_address="45 Bd Raspail, Paris", confirmation_number="ABC",
        ),
        FlightEvent(
            id="f1", trip_id="t1", title="AF 1", start=datetime(2025, 6, 1, 10, 0), end=datetime(2025, 6, 1, 14, 0),
            flight_number="AF1", departure_airport_iata="JFK", departure_airport_name="JFK Intl",
            arrival_airport_iata="CDG", departure_latitude=40.64, departure_longitude=-73.78,
        ),
        ActivityEvent(
            id="a1", trip_id="t1", title="Louvre", start=datetime(2025, 6, 2, 10, 0), end=datetime(2025, 6, 2, 13, 0),
            notes="Bring tickets, cash; and\nID", activity_location_name="Musée du Louvre",
        ),
        RestaurantEvent(
            id="r1", trip_id="t1", title="Dinner", start=datetime(2025, 6, 2, 20, 0),
            restaurant_name="Chez X", party_size=2,
        ),
        CarRentalEvent(id="c1", trip_id="t1", title="Own car", start=datetime(2025, 6, 3, 9, 0), has_car_rental=False),
    ]


def _vevents(ics: str):
    return [c for c in Calendar.from_ical(ics).walk() if c.name == "VEVENT"]


class TestIcs:
    def test_one_vevent_per_event(self, trip, events):
        assert len(_vevents(to_ics(trip, events, STAMP))) == len(events)

    def test_calendar_header(self, trip, events):
        cal = Calendar.from_ical(to_ics(trip, events, STAMP))
        assert str(cal["VERSION"]) == "2.0"
        assert str(cal["METHOD"]) == "PUBLISH"
        assert str(cal["CALSCALE"]) == "GREGORIAN"
        assert str(cal["X-WR-CALNAME"]) == "Paris, Spring; 2025"
        assert str(cal["X-WR-CALDESC"]) == "Trip to Paris"

    def test_uids_are_stable(self, trip, events):
        first = [str(v["UID"]) for v in _vevents(to_ics(trip, events, STAMP))]
        second = [str(v["UID"]) for v in _vevents(to_ics(trip, events))]
        assert first == second
        assert "h1@travelplanner" in first

    def test_events_in_start_order(self, trip, events):
        uids = [str(v["UID"]) for v in _vevents(to_ics(trip, events, STAMP))]
        assert uids == ["f1@travelplanner", "h1@travelplanner", "a1@travelplanner", "r1@travelplanner", "c1@travelplanner"]

    def test_hotel_is_all_day_with_exclusive_end(self, trip, events):
        ics = to_ics(trip, events, STAMP)
        assert "DTSTART;VALUE=DATE:20250601" in ics
        assert "DTEND;VALUE=DATE:20250604" in ics
        hotel = next(v for v in _vevents(ics) if str(v["UID"]) == "h1@travelplanner")
        assert str(hotel["SUMMARY"]) == "Lutetia"
        assert hotel.decoded("DTSTART") == date(2025, 6, 1)
        assert hotel.decoded("DTEND") == date(2025, 6, 4)

    def test_hotel_with_date_only_stay(self, trip, events):
        hotel = HotelEvent(id="h2", hotel_name="Ibis", start=date(2025, 6, 1), end=date(2025, 6, 2))
        ics = to_ics(trip, events + [hotel], STAMP)
        ibis = next(v for v in _vevents(ics) if str(v["UID"]) == "h2@travelplanner")
        assert ibis.decoded("DTSTART") == date(2025, 6, 1)
        assert ibis.decoded("DTEND") == date(2025, 6, 3)
        assert "Check-out: 2025-06-02" in format_days(assemble_itinerary(events + [hotel]))

    def test_timed_events_use_wall_clock(self, trip, events):
        ics = to_ics(trip, events, STAMP)
        assert "DTSTART:20250601T100000" in ics
        assert "DTEND:20250601T140000" in ics

    def test_text_is_escaped(self, trip, events):
        ics = to_ics(trip, events, STAMP)
        unfolded = ics.replace("\r\n ", "")
        assert r"Notes: Bring tickets\, cash\; and\nID" in unfolded
        assert r"X-WR-CALNAME:Paris\, Spring\; 2025" in unfolded
        louvre = next(v for v in _vevents(ics) if str(v["UID"]) == "a1@travelplanner")
        assert str(louvre["DESCRIPTION"]).startswith("Notes: Bring tickets, cash; and\nID")

    def test_calendar_name_with_newline(self, events):
        trip = Trip(
            id="t2", name="Paris, Spring; 2025\nBEGIN:VEVENT", start_date=date(2025, 6, 1),
            end_date=date(2025, 6, 3), destination="Paris\nLyon",
        )
        ics = to_ics(trip, events, STAMP)
        unfolded = ics.replace("\r\n ", "")
        assert r"X-WR-CALNAME:Paris\, Spring\; 2025\nBEGIN:VEVENT" in unfolded
        assert r"X-WR-CALDESC:Trip to Paris\nLyon" in unfolded
        assert len(_vevents(ics)) == len(events)

    def test_description_and_location(self, trip, events):
        by_uid = {str(v["UID"]): v for v in _vevents(to_ics(trip, events, STAMP))}
        hotel_desc = str(by_uid["h1@travelplanner"]["DESCRIPTION"])
        assert "Hotel: Lutetia" in hotel_desc
        assert "Confirmation: ABC" in hotel_desc
        assert str(by_uid["h1@travelplanner"]["LOCATION"]) == "45 Bd Raspail, Paris"
        assert str(by_uid["r1@travelplanner"]["LOCATION"]) == "Chez X"
        assert "LOCATION" not in by_uid["c1@travelplanner"]
        assert str(by_uid["c1@travelplanner"]["DESCRIPTION"]) == "No car rental"

    def test_undated_events_are_skipped(self, trip, events):
        ics = to_ics(trip, events + [TripEvent(id="x1", title="Someday")], STAMP)
        assert len(_vevents(ics)) == len(events)

    def test_empty_trip(self, trip):
        assert _vevents(to_ics(trip, [], STAMP)) == []

    def test_write_ics(self, trip, events, tmp_path):
        path = write_ics(trip, events, tmp_path / "out" / ics_filename(trip), STAMP)
        assert path.name == "Paris__Spring__2025_calendar.ics"
        assert len(_vevents(path.read_text(encoding="utf-8"))) == len(events)


class TestFormatDays:
    def test_links_and_placeholders(self, events):
        text = format_days(assemble_itinerary(events))
        assert "https://www.google.com/maps/dir/?api=1&destination=40.64,-73.78" in text
        assert "Staying at Lutetia" in text
        assert "Weather:" not in text

    def test_missing_link_text(self):
        groups = assemble_itinerary([TripEvent(id="x", start=datetime(2025, 6, 1, 9))])
        assert "no link available" in format_days(groups)

    def test_weather(self, trip, events):
        groups = assemble_calendar(trip, events)
        weather = {"2025-06-01": DayWeather(temp_high=24, temp_low=15, description="Sunny")}
        text = format_days(groups, weather)
        assert "24°/15° Sunny" in text
        assert "no forecast" in text
        assert "(nothing planned)" not in text

    def test_reminders_and_reviews(self, trip, events):
        groups = attach_reminders(
            assemble_calendar(trip, events), [Reminder(id="m1", trip_id="t1", day_key="2025-06-02", content="Museum pass")],
        )
        text = format_days(groups)
        assert "  Reminder: Museum pass" in text
        assert "Reviews: Google Reviews: https://www.google.com/maps/search/?api=1&query=Lutetia%2045" in text

        data = days_to_dict(groups)
        assert [d["reminder"] for d in data["days"]] == [None, "Museum pass", None]
        dinner = next(i for d in data["days"] for i in d["items"] if i["id"] == "r1")
        assert [r["label"] for r in dinner["reviews"]] == ["Google Reviews", "RedNote"]


def test_days_to_dict_and_json(trip, events, tmp_path):
    groups = assemble_calendar(trip, events)
    data = days_to_dict(groups)
    assert [d["date"] for d in data["days"]] == ["2025-06-01", "2025-06-02", "2025-06-03"]
    assert data["summary"]["total_events"] == len(events)
    assert data["days"][1]["day_hotel"]["name"] == "Lutetia"

    path = tmp_path / "itinerary.json"
    to_json(groups, path)
    assert json.loads(path.read_text(encoding="utf-8")) == data


def test_map_html(trip, events, tmp_path):
    path = tmp_path / "map.html"
    format_map_html(trip, map_markers(events), path)
    html = path.read_text(encoding="utf-8")
    assert '"label": "JFK"' in html
    assert "leaflet" in html
