"""Data models for trips, events, and the derived itinerary view."""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import ClassVar, List, Optional


class EventType(str, Enum):
    FLIGHT = "flight"
    HOTEL = "hotel"
    RESTAURANT = "restaurant"
    ACTIVITY = "activity"
    CAR_RENTAL = "carRental"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


def coordinate_or_none(lat: Optional[float], lng: Optional[float]) -> Optional[Coordinate]:
    if lat is None or lng is None:
        return None
    return Coordinate(lat, lng)


@dataclass
class Trip:
    id: str
    name: str
    start_date: date
    end_date: date
    destination: str = ""
    cities: List[str] = field(default_factory=list)  # bias for geocoding, in order
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Events: one base class (also the fallback for unknown tags) + five variants
# ---------------------------------------------------------------------------

@dataclass
class TripEvent:
    id: str = ""
    trip_id: str = ""
    title: str = ""
    start: Optional[datetime] = None  # local wall clock
    end: Optional[datetime] = None
    notes: str = ""
    location_name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    sort_order: int = 0

    event_type: ClassVar[Optional[EventType]] = None


@dataclass
class FlightEvent(TripEvent):
    flight_number: str = ""
    airline_name: str = ""
    airline_iata: str = ""
    departure_airport_iata: str = ""
    departure_airport_name: str = ""
    departure_terminal: str = ""
    departure_gate: str = ""
    departure_latitude: Optional[float] = None
    departure_longitude: Optional[float] = None
    arrival_airport_iata: str = ""
    arrival_airport_name: str = ""
    arrival_terminal: str = ""
    arrival_gate: str = ""
    arrival_latitude: Optional[float] = None
    arrival_longitude: Optional[float] = None
    flight_status: str = ""
    last_updated: Optional[datetime] = None

    event_type: ClassVar[Optional[EventType]] = EventType.FLIGHT


@dataclass
class HotelEvent(TripEvent):
    hotel_name: str = ""
    hotel_address: str = ""
    hotel_latitude: Optional[float] = None
    hotel_longitude: Optional[float] = None
    confirmation_number: str = ""

    event_type: ClassVar[Optional[EventType]] = EventType.HOTEL

    @property
    def check_in(self) -> Optional[datetime]:
        return self.start

    @property
    def check_out(self) -> Optional[datetime]:
        return self.end


@dataclass
class RestaurantEvent(TripEvent):
    restaurant_name: str = ""
    cuisine_type: str = ""
    reservation_time: Optional[datetime] = None
    party_size: int = 0
    restaurant_address: str = ""
    restaurant_latitude: Optional[float] = None
    restaurant_longitude: Optional[float] = None
    confirmation_number: str = ""

    event_type: ClassVar[Optional[EventType]] = EventType.RESTAURANT


@dataclass
class ActivityEvent(TripEvent):
    activity_location_name: str = ""
    activity_description: str = ""
    activity_latitude: Optional[float] = None
    activity_longitude: Optional[float] = None

    event_type: ClassVar[Optional[EventType]] = EventType.ACTIVITY


@dataclass
class CarRentalEvent(TripEvent):
    pickup_location_name: str = ""
    pickup_airport_code: str = ""
    pickup_latitude: Optional[float] = None
    pickup_longitude: Optional[float] = None
    return_location_name: str = ""
    return_airport_code: str = ""
    return_latitude: Optional[float] = None
    return_longitude: Optional[float] = None
    rental_company: str = ""
    confirmation_number: str = ""
    has_car_rental: bool = True

    event_type: ClassVar[Optional[EventType]] = EventType.CAR_RENTAL

    @property
    def pickup_time(self) -> Optional[datetime]:
        return self.start

    @property
    def return_time(self) -> Optional[datetime]:
        return self.end


EVENT_CLASSES = {
    EventType.FLIGHT: FlightEvent,
    EventType.HOTEL: HotelEvent,
    EventType.RESTAURANT: RestaurantEvent,
    EventType.ACTIVITY: ActivityEvent,
    EventType.CAR_RENTAL: CarRentalEvent,
}


@dataclass
class Reminder:
    """Free-text note for one day of a trip; at most one per (trip, day)."""
    id: str
    trip_id: str
    day_key: str  # "YYYY-MM-DD"
    content: str = ""
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Derived view models (recomputed on every read, never stored)
# ---------------------------------------------------------------------------

@dataclass
class LocationPoint:
    display_name: str  # never empty when the event has a title
    address: str = ""
    coordinates: Optional[Coordinate] = None
    name: str = ""  # the variant's own place name, before the title fallback


@dataclass(frozen=True)
class NavigationLink:
    label: str
    url: str


@dataclass
class ItineraryItem:
    event: TripEvent
    nav_to_event: Optional[NavigationLink] = None
    nav_to_hotel: Optional[NavigationLink] = None
    nav_to_departure: Optional[NavigationLink] = None  # flights only
    review_links: List[NavigationLink] = field(default_factory=list)


@dataclass
class DayHotel:
    hotel: HotelEvent
    nav_to_hotel: Optional[NavigationLink] = None


@dataclass
class DayGroup:
    date: date
    items: List[ItineraryItem] = field(default_factory=list)
    day_hotel: Optional[DayHotel] = None
    reminder: Optional[Reminder] = None


@dataclass
class MapMarker:
    event_id: str
    label: str
    coordinates: Coordinate
    event_type: Optional[EventType] = None


# ---------------------------------------------------------------------------
# External lookups
# ---------------------------------------------------------------------------

@dataclass
class PlaceResult:
    place_id: str
    lat: float
    lng: float
    name: str = ""
    formatted_address: str = ""
    importance: Optional[float] = None  # relevance score, when the API provides one
    rating: Optional[float] = None
    types: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SearchRegion:
    center: Coordinate
    radius_meters: int

    @classmethod
    def around(cls, centers: List[Coordinate], radius_meters: int, max_radius_meters: int) -> Optional[SearchRegion]:
        """Circle at the centroid of the given points, wide enough to reach each
        of them plus radius_meters, capped at max_radius_meters.
        """
        if not centers:
            return None
        lat = sum(c.lat for c in centers) / len(centers)
        lng = sum(c.lng for c in centers) / len(centers)
        center = Coordinate(lat, lng)
        spread = max(_approx_meters(center, c) for c in centers)
        return cls(center, int(min(spread + radius_meters, max_radius_meters)))


def _approx_meters(a: Coordinate, b: Coordinate) -> float:
    """Equirectangular distance; good enough within a region."""
    x = math.radians(b.lng - a.lng) * math.cos(math.radians((a.lat + b.lat) / 2))
    y = math.radians(b.lat - a.lat)
    return math.hypot(x, y) * 6_371_000


@dataclass
class DayWeather:
    temp_high: int
    temp_low: int
    description: str = ""
    icon_uri: str = ""
    precip_probability: int = 0
