"""Google Maps deep links from the traveller's position to an event, and review searches."""

from enum import Enum
from typing import List, Optional
from urllib.parse import quote, urlencode

from trip_planner.models import (
    ActivityEvent,
    CarRentalEvent,
    Coordinate,
    FlightEvent,
    HotelEvent,
    LocationPoint,
    NavigationLink,
    RestaurantEvent,
    TripEvent,
)
from trip_planner.normalize.points import (
    end_label,
    extract_end,
    extract_start,
    start_label,
)

DIRECTIONS_BASE = "https://www.google.com/maps/dir/"
SEARCH_BASE = "https://www.google.com/maps/search/"
REDNOTE_SEARCH_BASE = "xhsdiscover://search/result"


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    TRANSIT = "transit"
    BICYCLING = "bicycling"


def _coord_text(coord: Coordinate) -> str:
    return f"{coord.lat},{coord.lng}"


def directions_url(
    destination: str,
    origin: Optional[Coordinate] = None,
    mode: TravelMode = TravelMode.DRIVING,
) -> Optional[str]:
    """Directions to a destination ("lat,lng" or free text).

    Without an origin the map app routes from wherever the device is.
    """
    if not destination:
        return None
    params = {"api": "1"}
    if origin is not None:
        params["origin"] = _coord_text(origin)
    params["destination"] = destination
    params["travelmode"] = TravelMode(mode).value
    return f"{DIRECTIONS_BASE}?{urlencode(params, quote_via=quote, safe=',')}"


def search_url(query: str) -> Optional[str]:
    if not query:
        return None
    return f"{SEARCH_BASE}?{urlencode({'api': '1', 'query': query}, quote_via=quote, safe=',')}"


def location_url(coord: Coordinate) -> str:
    return f"{SEARCH_BASE}?api=1&query={_coord_text(coord)}"


def build_link(
    point: Optional[LocationPoint],
    label: str,
    origin: Optional[Coordinate] = None,
    mode: TravelMode = TravelMode.DRIVING,
) -> Optional[NavigationLink]:
    """Link to the most precise representation of a point.

    Coordinates win over the address, the address over the display name.
    Returns None only when the point has none of the three.
    """
    if point is None:
        return None

    if point.coordinates is not None:
        destination = _coord_text(point.coordinates)
    elif point.address:
        destination = point.address
    elif point.display_name:
        destination = point.display_name
    else:
        return None

    url = directions_url(destination, origin, mode)
    if not url:
        return None
    return NavigationLink(label=label or point.display_name, url=url)


# ---------------------------------------------------------------------------
# The three itinerary call sites, plus the arrival side of a flight
# ---------------------------------------------------------------------------

def nav_to_event(event: TripEvent, origin: Optional[Coordinate] = None) -> Optional[NavigationLink]:
    return build_link(extract_start(event), start_label(event), origin)


def nav_to_departure(flight: FlightEvent, origin: Optional[Coordinate] = None) -> Optional[NavigationLink]:
    label = flight.departure_airport_iata or flight.departure_airport_name or "Departure Airport"
    return build_link(extract_start(flight), label, origin)


def nav_to_arrival(flight: FlightEvent, origin: Optional[Coordinate] = None) -> Optional[NavigationLink]:
    return build_link(extract_end(flight), end_label(flight), origin)


def nav_to_hotel(hotel: HotelEvent, origin: Optional[Coordinate] = None) -> Optional[NavigationLink]:
    return build_link(extract_start(hotel), hotel.hotel_name or "Hotel", origin)


def map_link(event: TripEvent) -> Optional[NavigationLink]:
    """"View on map" link: a pin when coordinates exist, otherwise a search.

    Flights show where they land.
    """
    if isinstance(event, FlightEvent):
        point, label = extract_end(event), end_label(event)
    else:
        point, label = extract_start(event), start_label(event)

    if point.coordinates is not None:
        url = location_url(point.coordinates)
    else:
        url = search_url(point.address or point.display_name)
    if not url:
        return None
    return NavigationLink(label=label or point.display_name or "Location", url=url)


# ---------------------------------------------------------------------------
# Review searches
# ---------------------------------------------------------------------------

_REVIEWABLE = (HotelEvent, RestaurantEvent, ActivityEvent, CarRentalEvent)


def reviews_url(name: str = "", address: str = "", coord: Optional[Coordinate] = None) -> Optional[str]:
    """Google Maps search that opens the place card with its reviews.

    Name and address together are the most precise query; a bare coordinate
    is the last resort, since it may not resolve to the business itself.
    """
    if name and address and name != address:
        query = f"{name} {address}"
    elif address or name:
        query = address or name
    elif coord is not None:
        query = _coord_text(coord)
    else:
        return None
    return search_url(query)


def rednote_url(name: str, cities: Optional[List[str]] = None) -> Optional[str]:
    """RedNote (Xiaohongshu) app search for a place, narrowed by the trip's first city."""
    if not name:
        return None
    query = name
    city = next((c for c in cities or [] if c), "")
    if city:
        query += f" {city}"
    return f"{REDNOTE_SEARCH_BASE}?{urlencode({'keyword': query}, quote_via=quote, safe='')}"


def review_links(event: TripEvent, cities: Optional[List[str]] = None) -> List[NavigationLink]:
    """Google reviews and RedNote searches for the event's venue.

    Flights and events without a reviewable place get none.
    """
    if not isinstance(event, _REVIEWABLE):
        return []
    point = extract_start(event)
    links = []
    url = reviews_url(point.name, point.address, point.coordinates)
    if url:
        links.append(NavigationLink(label="Google Reviews", url=url))
    url = rednote_url(point.name, cities)
    if url:
        links.append(NavigationLink(label="RedNote", url=url))
    return links
