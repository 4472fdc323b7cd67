"""Where an event starts and ends: one rule per event type.

LOCATION_RULES is the only place that knows which fields of each variant hold
coordinates, addresses and names. Navigation links, the itinerary, map markers
and the calendar export all read locations through it.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from trip_planner.models import (
    ActivityEvent,
    CarRentalEvent,
    EventType,
    FlightEvent,
    HotelEvent,
    LocationPoint,
    RestaurantEvent,
    TripEvent,
    coordinate_or_none,
)
from trip_planner.normalize.dates import format_time


@dataclass(frozen=True)
class LocationRule:
    start: Callable[[TripEvent], LocationPoint]
    end: Callable[[TripEvent], LocationPoint]
    start_label: Callable[[TripEvent], str]
    end_label: Callable[[TripEvent], str]
    description: Callable[[TripEvent], List[str]]


def _point(event: TripEvent, name: str, address: str = "", lat=None, lng=None) -> LocationPoint:
    return LocationPoint(
        display_name=name or event.title or "",
        address=address or "",
        coordinates=coordinate_or_none(lat, lng),
        name=name or "",
    )


def _airport_name(name: str, iata: str) -> str:
    if name:
        return name
    return f"{iata} airport" if iata else ""


def _lines(*pairs) -> List[str]:
    """Keep "Label: value" lines whose value is non-empty."""
    return [f"{label}: {value}" for label, value in pairs if value not in ("", None)]


def _fmt_instant(value) -> str:
    return f"{value:%Y-%m-%d} {format_time(value)}" if value else ""


def _fmt_day(value) -> str:
    return f"{value:%Y-%m-%d}" if value else ""


# ---------------------------------------------------------------------------
# Flight
# ---------------------------------------------------------------------------

def _flight_start(ev: FlightEvent) -> LocationPoint:
    return _point(
        ev,
        _airport_name(ev.departure_airport_name, ev.departure_airport_iata),
        lat=ev.departure_latitude,
        lng=ev.departure_longitude,
    )


def _flight_end(ev: FlightEvent) -> LocationPoint:
    return _point(
        ev,
        _airport_name(ev.arrival_airport_name, ev.arrival_airport_iata),
        lat=ev.arrival_latitude,
        lng=ev.arrival_longitude,
    )


def _airport_line(name: str, iata: str) -> str:
    if name and iata:
        return f"{name} ({iata})"
    return name or iata


def _flight_description(ev: FlightEvent) -> List[str]:
    return _lines(
        ("Flight", ev.flight_number),
        ("Airline", ev.airline_name),
        ("Departure", _airport_line(ev.departure_airport_name, ev.departure_airport_iata)),
        ("Terminal", ev.departure_terminal),
        ("Gate", ev.departure_gate),
        ("Arrival", _airport_line(ev.arrival_airport_name, ev.arrival_airport_iata)),
        ("Terminal", ev.arrival_terminal),
        ("Gate", ev.arrival_gate),
        ("Status", ev.flight_status),
    )


# ---------------------------------------------------------------------------
# Hotel
# ---------------------------------------------------------------------------

def _hotel_point(ev: HotelEvent) -> LocationPoint:
    return _point(ev, ev.hotel_name, ev.hotel_address, ev.hotel_latitude, ev.hotel_longitude)


def _hotel_description(ev: HotelEvent) -> List[str]:
    return _lines(
        ("Hotel", ev.hotel_name),
        ("Check-in", _fmt_day(ev.check_in)),
        ("Check-out", _fmt_day(ev.check_out)),
        ("Address", ev.hotel_address),
        ("Confirmation", ev.confirmation_number),
    )


# ---------------------------------------------------------------------------
# Restaurant
# ---------------------------------------------------------------------------

def _restaurant_point(ev: RestaurantEvent) -> LocationPoint:
    return _point(
        ev, ev.restaurant_name, ev.restaurant_address,
        ev.restaurant_latitude, ev.restaurant_longitude,
    )


def _restaurant_description(ev: RestaurantEvent) -> List[str]:
    return _lines(
        ("Restaurant", ev.restaurant_name),
        ("Cuisine", ev.cuisine_type),
        ("Party Size", ev.party_size or ""),
        ("Address", ev.restaurant_address),
        ("Confirmation", ev.confirmation_number),
    )


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------

def _activity_point(ev: ActivityEvent) -> LocationPoint:
    return _point(ev, ev.activity_location_name, "", ev.activity_latitude, ev.activity_longitude)


def _activity_description(ev: ActivityEvent) -> List[str]:
    return _lines(
        ("Location", ev.activity_location_name),
        ("Description", ev.activity_description),
    )


# ---------------------------------------------------------------------------
# Car rental
# ---------------------------------------------------------------------------

def _rental_start(ev: CarRentalEvent) -> LocationPoint:
    if not ev.has_car_rental:
        return _point(ev, "")
    return _point(
        ev,
        _airport_name(ev.pickup_location_name, ev.pickup_airport_code),
        ev.pickup_location_name,
        ev.pickup_latitude,
        ev.pickup_longitude,
    )


def _rental_end(ev: CarRentalEvent) -> LocationPoint:
    if not ev.has_car_rental:
        return _point(ev, "")
    return _point(
        ev,
        _airport_name(ev.return_location_name, ev.return_airport_code),
        ev.return_location_name,
        ev.return_latitude,
        ev.return_longitude,
    )


def _rental_label(name: str, code: str, generic: str):
    def label(ev: CarRentalEvent) -> str:
        if not ev.has_car_rental:
            return ev.title or generic
        return getattr(ev, name) or getattr(ev, code) or generic
    return label


def _rental_description(ev: CarRentalEvent) -> List[str]:
    if not ev.has_car_rental:
        return ["No car rental"]
    return _lines(
        ("Rental Company", ev.rental_company),
        ("Pickup", ev.pickup_location_name),
        ("Airport Code", ev.pickup_airport_code),
        ("Pickup Date", _fmt_instant(ev.pickup_time)),
        ("Return", ev.return_location_name),
        ("Airport Code", ev.return_airport_code),
        ("Return Date", _fmt_instant(ev.return_time)),
        ("Confirmation", ev.confirmation_number),
    )


# ---------------------------------------------------------------------------
# Fallback (unknown tag)
# ---------------------------------------------------------------------------

def _base_point(ev: TripEvent) -> LocationPoint:
    return _point(ev, ev.location_name, "", ev.latitude, ev.longitude)


def _base_label(ev: TripEvent) -> str:
    return ev.location_name or ev.title


LOCATION_RULES: Dict[Optional[EventType], LocationRule] = {
    EventType.FLIGHT: LocationRule(
        start=_flight_start,
        end=_flight_end,
        start_label=lambda ev: ev.departure_airport_iata or "Departure",
        end_label=lambda ev: ev.arrival_airport_iata or "Arrival",
        description=_flight_description,
    ),
    EventType.HOTEL: LocationRule(
        start=_hotel_point,
        end=_hotel_point,
        start_label=lambda ev: ev.hotel_name or "Hotel",
        end_label=lambda ev: ev.hotel_name or "Hotel",
        description=_hotel_description,
    ),
    EventType.RESTAURANT: LocationRule(
        start=_restaurant_point,
        end=_restaurant_point,
        start_label=lambda ev: ev.restaurant_name or "Restaurant",
        end_label=lambda ev: ev.restaurant_name or "Restaurant",
        description=_restaurant_description,
    ),
    EventType.ACTIVITY: LocationRule(
        start=_activity_point,
        end=_activity_point,
        start_label=lambda ev: ev.activity_location_name or ev.title,
        end_label=lambda ev: ev.activity_location_name or ev.title,
        description=_activity_description,
    ),
    EventType.CAR_RENTAL: LocationRule(
        start=_rental_start,
        end=_rental_end,
        start_label=_rental_label("pickup_location_name", "pickup_airport_code", "Car Pickup"),
        end_label=_rental_label("return_location_name", "return_airport_code", "Car Return"),
        description=_rental_description,
    ),
    None: LocationRule(
        start=_base_point,
        end=_base_point,
        start_label=_base_label,
        end_label=_base_label,
        description=lambda ev: [],
    ),
}


def rule_for(event: TripEvent) -> LocationRule:
    return LOCATION_RULES.get(event.event_type, LOCATION_RULES[None])


def extract_start(event: TripEvent) -> LocationPoint:
    """Departure / pickup / venue point of an event."""
    return rule_for(event).start(event)


def extract_end(event: TripEvent) -> LocationPoint:
    """Arrival / return point; the venue again for single-place events."""
    return rule_for(event).end(event)


def start_label(event: TripEvent) -> str:
    return rule_for(event).start_label(event)


def end_label(event: TripEvent) -> str:
    return rule_for(event).end_label(event)


def description_lines(event: TripEvent) -> List[str]:
    return rule_for(event).description(event)


def location_text(event: TripEvent) -> str:
    """Calendar LOCATION text: the address, else the venue name, else the
    event's own location_name. Never the title; empty when none is set.
    """
    point = extract_start(event)
    return point.address or point.name or event.location_name
