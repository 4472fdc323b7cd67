#!/usr/bin/env python3
"""CLI entry point for the Trip Planner.

Usage:
    python plan_trip.py --list
    python plan_trip.py --trip TRIP_ID [--format all] [--origin 48.85,2.35] [--weather]
    python plan_trip.py --trip TRIP_ID --search "louvre"
    python plan_trip.py --flight BA123 --flight-date 2025-06-01 [--trip TRIP_ID]
    python plan_trip.py --trip TRIP_ID --reminder 2025-06-02 "Museum pass in the red bag"

Options:
    --store PATH         Trip store JSON file (default: trips.json)
    --trip ID            Trip to work on
    --list               List stored trips
    --format FMT         Output format: days, calendar, json, ics, map, all (default: all)
    --output-dir DIR     Directory for output files (default: output/)
    --origin LAT,LNG     Current position for navigation links
    --weather            Include forecasts for trip days
    --search QUERY       Search places near the trip's cities
    --flight NUMBER      Look up a flight (saved to --trip unless --dry-run)
    --flight-date DATE   Departure date for --flight
    --reminder DATE TEXT Set the day's reminder for --trip (empty TEXT clears it)
    --dry-run            Show stats without writing files
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from trip_planner.assemble.itinerary import map_markers
from trip_planner.config import OUTPUT_DIR, STORE_PATH
from trip_planner.fetch.cache import WeatherCache
from trip_planner.fetch.errors import FlightLookupError, FlightNotFound, PlacesUnavailable
from trip_planner.fetch.flights import FlightClient
from trip_planner.fetch.places import PlacesClient
from trip_planner.fetch.weather import WeatherClient
from trip_planner.models import Coordinate
from trip_planner.normalize.dates import format_date_range, parse_day
from trip_planner.output import days_to_dict, format_days, format_map_html, ics_filename, to_json
from trip_planner.pipeline import (
    TripNotFound,
    build_trip_calendar,
    build_trip_itinerary,
    export_trip_calendar,
    forecast_for_trip,
    load_trip,
    search_locations,
)
from trip_planner.store import TripStore


def log(msg):
    print(msg, file=sys.stderr)


def _parse_origin(raw: Optional[str]) -> Optional[Coordinate]:
    if not raw:
        return None
    try:
        lat, lng = (float(part) for part in raw.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"--origin must be LAT,LNG, got {raw!r}")
    return Coordinate(lat, lng)


async def _weather(trip):
    async with PlacesClient() as places, WeatherClient() as weather:
        return await forecast_for_trip(trip, places, weather, WeatherCache())


async def _search(query, cities):
    async with PlacesClient() as places:
        return await search_locations(places, query, cities)


async def _flight(number, day):
    async with FlightClient() as client:
        return await client.lookup(number, day)


def _list_trips(store: TripStore):
    trips = store.list_trips()
    if not trips:
        print("No trips stored.")
    for trip in trips:
        print(f"{trip.id}  {trip.name}  ({format_date_range(trip.start_date, trip.end_date)})")


def _run_search(args, store: TripStore) -> int:
    cities = []
    if args.trip:
        trip, _ = load_trip(store, args.trip)
        cities = trip.cities
    try:
        places = asyncio.run(_search(args.search, cities))
    except PlacesUnavailable as e:
        log(f"  Search failed: {e}")
        print("no results, try manual entry")
        return 1
    if not places:
        print("no results, try manual entry")
        return 0
    for place in places:
        print(f"{place.name}  |  {place.formatted_address}  ({place.lat:.5f}, {place.lng:.5f})")
    return 0


def _run_reminder(args, store: TripStore) -> int:
    raw_day, content = args.reminder
    day = parse_day(raw_day)
    if day is None:
        log(f"--reminder needs a date as YYYY-MM-DD, got {raw_day!r}")
        return 2
    load_trip(store, args.trip)
    if store.save_reminder(args.trip, day, content) is None:
        print(f"Reminder for {day} cleared")
    else:
        print(f"Reminder for {day} saved")
    return 0


def _run_flight(args, store: TripStore) -> int:
    day = parse_day(args.flight_date)
    if day is None:
        log("--flight needs --flight-date YYYY-MM-DD")
        return 2
    try:
        flight = asyncio.run(_flight(args.flight, day))
    except FlightNotFound:
        print(f"Flight {args.flight} not found on {day}")
        return 1
    except FlightLookupError as e:
        log(f"  Flight lookup failed: {e}")
        return 1

    print(f"{flight.title}  {flight.location_name}  {flight.start} → {flight.end}  {flight.flight_status}")
    if args.trip and not args.dry_run:
        load_trip(store, args.trip)
        flight.trip_id = args.trip
        store.save_event(flight)
        log(f"  Saved flight {flight.flight_number} to trip {args.trip}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Build day-by-day itineraries and calendars for stored trips.",
    )
    parser.add_argument("--store", default=str(STORE_PATH), help="Trip store JSON file")
    parser.add_argument("--trip", help="Trip id")
    parser.add_argument("--list", action="store_true", help="List stored trips")
    parser.add_argument(
        "--format",
        choices=["days", "calendar", "json", "ics", "map", "all"],
        default="all",
        help="Output format (days, calendar, json, ics, map, all)",
    )
    parser.add_argument("--output-dir", default=str(OUTPUT_DIR), help="Output directory")
    parser.add_argument("--origin", help="Current position as LAT,LNG")
    parser.add_argument("--weather", action="store_true", help="Include forecasts")
    parser.add_argument("--search", metavar="QUERY", help="Search places near the trip's cities")
    parser.add_argument("--flight", metavar="NUMBER", help="Look up a flight by number")
    parser.add_argument("--flight-date", metavar="DATE", help="Flight departure date (YYYY-MM-DD)")
    parser.add_argument(
        "--reminder", nargs=2, metavar=("DATE", "TEXT"),
        help="Set the reminder for one day of --trip; empty TEXT clears it",
    )
    parser.add_argument("--dry-run", action="store_true", help="Show stats only, don't write files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        origin = _parse_origin(args.origin)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    store = TripStore(Path(args.store))

    try:
        if args.list:
            _list_trips(store)
            return 0
        if args.search:
            return _run_search(args, store)
        if args.flight:
            return _run_flight(args, store)
        if not args.trip:
            parser.error("--trip is required (or use --list, --search, --flight)")
        if args.reminder:
            return _run_reminder(args, store)
        return _run_trip(args, store, origin)
    except TripNotFound as e:
        log(str(e))
        return 1


def _run_trip(args, store: TripStore, origin: Optional[Coordinate]) -> int:
    trip, events = load_trip(store, args.trip)
    log(f"Trip: {trip.name} ({format_date_range(trip.start_date, trip.end_date)}), {len(events)} events")

    weather = None
    if args.weather:
        weather = asyncio.run(_weather(trip))
        log(f"  Forecasts for {len(weather)} day(s)")

    groups = build_trip_itinerary(store, args.trip, origin)

    if args.dry_run:
        summary = days_to_dict(groups)["summary"]
        print(f"\nDry run complete. {summary['total_events']} events over {summary['total_days']} days.")
        return 0

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if args.format in ("days", "all"):
        text = format_days(groups, weather, title=trip.name)
        days_path = output_dir / "itinerary.txt"
        days_path.write_text(text, encoding="utf-8")
        print(f"\nItinerary written to: {days_path}")
        print(text)

    if args.format in ("calendar", "all"):
        calendar_groups = build_trip_calendar(store, args.trip, origin)
        text = format_days(calendar_groups, weather, title=f"{trip.name} (calendar)")
        calendar_path = output_dir / "calendar.txt"
        calendar_path.write_text(text, encoding="utf-8")
        print(f"Calendar view written to: {calendar_path}")

    if args.format in ("json", "all"):
        json_path = output_dir / "itinerary.json"
        to_json(groups, json_path, weather)
        print(f"JSON written to: {json_path}")

    if args.format in ("ics", "all"):
        ics_path = export_trip_calendar(store, args.trip, output_dir / ics_filename(trip))
        print(f"ICS written to: {ics_path}")

    if args.format in ("map", "all"):
        map_path = output_dir / "trip_map.html"
        format_map_html(trip, map_markers(events), map_path)
        print(f"Trip map written to: {map_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
