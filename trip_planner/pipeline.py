"""Orchestrates the trip views: store → events → itinerary / calendar / lookups."""

import asyncio
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from trip_planner.assemble.dedup import deduplicate_places, rank_places
from trip_planner.assemble.itinerary import assemble_calendar, assemble_itinerary, attach_reminders
from trip_planner.config import (
    BIAS_RADIUS_METERS,
    MAX_SEARCH_RADIUS_METERS,
    MAX_SEARCH_RESULTS,
    OUTPUT_DIR,
)
from trip_planner.fetch.cache import WeatherCache
from trip_planner.fetch.places import PlacesClient
from trip_planner.fetch.weather import WeatherClient, forecast_window, get_weather_for_location
from trip_planner.models import Coordinate, DayGroup, DayWeather, PlaceResult, SearchRegion, Trip, TripEvent
from trip_planner.normalize.dates import enumerate_days
from trip_planner.output import ics_filename, write_ics
from trip_planner.store import TripStore

logger = logging.getLogger(__name__)


class TripNotFound(LookupError):
    pass


def load_trip(store: TripStore, trip_id: str) -> Tuple[Trip, List[TripEvent]]:
    trip = store.get_trip(trip_id)
    if trip is None:
        raise TripNotFound(f"No trip with id {trip_id!r}")
    return trip, store.get_events_for_trip(trip_id)


def build_trip_itinerary(store: TripStore, trip_id: str, origin: Optional[Coordinate] = None) -> List[DayGroup]:
    """Days that have events, with navigation links from origin and the day's reminder."""
    trip, events = load_trip(store, trip_id)
    groups = assemble_itinerary(events, origin, trip.cities)
    attach_reminders(groups, store.get_reminders_for_trip(trip_id))
    logger.info(f"Assembled {len(events)} events into {len(groups)} days for trip {trip_id}")
    return groups


def build_trip_calendar(store: TripStore, trip_id: str, origin: Optional[Coordinate] = None) -> List[DayGroup]:
    """Every day of the trip, empty ones included."""
    trip, events = load_trip(store, trip_id)
    groups = assemble_calendar(trip, events, origin)
    return attach_reminders(groups, store.get_reminders_for_trip(trip_id))


def export_trip_calendar(store: TripStore, trip_id: str, path: Optional[Path] = None) -> Path:
    """Write the trip's .ics file; defaults to OUTPUT_DIR/<trip name>_calendar.ics."""
    trip, events = load_trip(store, trip_id)
    path = path or OUTPUT_DIR / ics_filename(trip)
    write_ics(trip, events, path)
    logger.info(f"Calendar for {trip.name!r} written to {path}")
    return path


# ---------------------------------------------------------------------------
# Location search
# ---------------------------------------------------------------------------

async def search_region(client: PlacesClient, bias_cities: List[str]) -> Optional[SearchRegion]:
    """Circle around the trip's cities; None searches worldwide."""
    if not bias_cities:
        return None
    located = await asyncio.gather(*(client.geocode_city(city) for city in bias_cities))
    centers = [c for c in located if c is not None]
    if len(centers) < len(bias_cities):
        logger.warning(f"Could not geocode {len(bias_cities) - len(centers)} of {len(bias_cities)} bias cities")
    return SearchRegion.around(centers, BIAS_RADIUS_METERS, MAX_SEARCH_RADIUS_METERS)


async def search_locations(
    client: PlacesClient,
    query: str,
    bias_cities: Optional[List[str]] = None,
    limit: int = MAX_SEARCH_RESULTS,
) -> List[PlaceResult]:
    """Deduplicated, ranked places for a query, biased toward the trip's cities.

    Raises:
        PlacesUnavailable: the search itself failed.
    """
    region = await search_region(client, bias_cities or [])
    results = await client.search(query, region)
    places = rank_places(deduplicate_places(results))
    logger.info(f"Search {query!r}: {len(results)} results, {len(places)} after dedup")
    return places[:limit]


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

async def forecast_for_trip(
    trip: Trip,
    places: PlacesClient,
    weather: WeatherClient,
    cache: WeatherCache,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Dict[str, DayWeather]:
    """Forecasts for the trip days the upstream forecast reaches, keyed "YYYY-MM-DD".

    The trip's first city stands in for the whole trip. Days without a
    forecast are simply absent.
    """
    if not trip.cities:
        logger.info(f"Trip {trip.name!r} has no cities; no forecast")
        return {}

    days = forecast_window(enumerate_days(trip.start_date, trip.end_date), today or date.today())
    if not days:
        return {}

    center = await places.geocode_city(trip.cities[0])
    if center is None:
        return {}

    return await get_weather_for_location(
        weather, cache, center.lat, center.lng, [d.isoformat() for d in days], now
    )
