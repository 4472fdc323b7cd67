"""Core itinerary assembly: trip events → day groups with navigation links."""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from trip_planner.assemble.links import nav_to_departure, nav_to_event, nav_to_hotel, review_links
from trip_planner.models import (
    Coordinate,
    DayGroup,
    DayHotel,
    FlightEvent,
    HotelEvent,
    ItineraryItem,
    MapMarker,
    Reminder,
    Trip,
    TripEvent,
)
from trip_planner.normalize.dates import as_day, date_from_key, day_key, enumerate_days, parse_instant
from trip_planner.normalize.points import end_label, extract_end, extract_start, start_label

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Step 1: Sort by start, stable, undated events last
# ---------------------------------------------------------------------------

def sort_events(events: List[TripEvent]) -> List[TripEvent]:
    return sorted(events, key=lambda ev: (ev.start is None, parse_instant(ev.start) or datetime.min))


def _is_hotel(event: TripEvent) -> bool:
    return isinstance(event, HotelEvent)


# ---------------------------------------------------------------------------
# Step 2: Hotel coverage
# ---------------------------------------------------------------------------

def _stay_days(hotel: HotelEvent):
    if hotel.check_in is None or hotel.check_out is None:
        return None
    return as_day(hotel.check_in), as_day(hotel.check_out)


def hotels_covering(day: date, hotels: List[HotelEvent]) -> List[HotelEvent]:
    """Hotels whose stay includes day, check-out day included."""
    covering = []
    for hotel in hotels:
        stay = _stay_days(hotel)
        if stay and stay[0] <= day <= stay[1]:
            covering.append(hotel)
    return covering


def latest_check_in(hotels: List[HotelEvent]) -> Optional[HotelEvent]:
    """Most recently checked-in hotel; the later one in the list wins a tie."""
    best = None
    for hotel in hotels:
        if best is None or parse_instant(hotel.check_in) >= parse_instant(best.check_in):
            best = hotel
    return best


def find_day_hotel(day: date, hotels: List[HotelEvent]) -> Optional[HotelEvent]:
    """Hotel to show as the day's banner.

    A night counts from check-in up to (not including) check-out. On the
    chosen hotel's own check-in day there is no banner, since its event row
    is already in the day's list.
    """
    nights = []
    for hotel in hotels:
        stay = _stay_days(hotel)
        if stay and stay[0] <= day < stay[1]:
            nights.append(hotel)

    hotel = latest_check_in(nights)
    if hotel is None or as_day(hotel.check_in) == day:
        return None
    return hotel


# ---------------------------------------------------------------------------
# Step 3: Items with navigation links
# ---------------------------------------------------------------------------

def _group_events_by_day(events: List[TripEvent]) -> Dict[str, List[TripEvent]]:
    by_day: Dict[str, List[TripEvent]] = {}
    for ev in events:
        if ev.start is not None:
            by_day.setdefault(day_key(ev.start), []).append(ev)
    return by_day


def _is_last_outing_of_day(index: int, sorted_events: List[TripEvent], day_events: List[TripEvent]) -> bool:
    """Last non-hotel event of its day, not immediately followed by a same-day check-in."""
    event = sorted_events[index]
    outings = [e for e in day_events if not _is_hotel(e)]
    if not outings or outings[-1] is not event:
        return False

    if index + 1 < len(sorted_events):
        nxt = sorted_events[index + 1]
        if _is_hotel(nxt) and nxt.start is not None and day_key(nxt.start) == day_key(event.start):
            return False
    return True


def _build_item(
    index: int,
    sorted_events: List[TripEvent],
    hotels: List[HotelEvent],
    by_day: Dict[str, List[TripEvent]],
    origin: Optional[Coordinate],
    cities: Optional[List[str]],
) -> ItineraryItem:
    event = sorted_events[index]
    item = ItineraryItem(event=event, review_links=review_links(event, cities))

    if _is_hotel(event):
        return item

    item.nav_to_event = nav_to_event(event, origin)

    if isinstance(event, FlightEvent):
        item.nav_to_departure = nav_to_departure(event, origin)

    if event.start is not None:
        day_events = by_day.get(day_key(event.start), [])
        if _is_last_outing_of_day(index, sorted_events, day_events):
            hotel = latest_check_in(hotels_covering(as_day(event.start), hotels))
            if hotel is not None:
                item.nav_to_hotel = nav_to_hotel(hotel, origin)

    return item


def build_itinerary_items(
    events: List[TripEvent],
    origin: Optional[Coordinate] = None,
    cities: Optional[List[str]] = None,
) -> List[ItineraryItem]:
    """Wrap every event, in start order, with its navigation links.

    origin is the traveller's current position; None lets the map app use
    the device location. cities narrows the review searches to the trip.
    A failure on one event leaves that event without
    links instead of failing the whole itinerary.
    """
    sorted_events = sort_events(events)
    hotels = [e for e in sorted_events if _is_hotel(e) and _stay_days(e)]
    by_day = _group_events_by_day(sorted_events)

    items: List[ItineraryItem] = []
    for index, event in enumerate(sorted_events):
        try:
            items.append(_build_item(index, sorted_events, hotels, by_day, origin, cities))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Could not build links for event {event.id!r}: {e}")
            items.append(ItineraryItem(event=event))
    return items


# ---------------------------------------------------------------------------
# Step 4: Day groups
# ---------------------------------------------------------------------------

def _day_hotel(day: date, hotels: List[HotelEvent], origin: Optional[Coordinate]) -> Optional[DayHotel]:
    hotel = find_day_hotel(day, hotels)
    if hotel is None:
        return None
    return DayHotel(hotel=hotel, nav_to_hotel=nav_to_hotel(hotel, origin))


def group_by_day(
    items: List[ItineraryItem],
    origin: Optional[Coordinate] = None,
) -> List[DayGroup]:
    """Group items by the local day they start on, oldest day first."""
    grouped: Dict[str, List[ItineraryItem]] = {}
    undated = 0
    for item in items:
        if item.event.start is None:
            undated += 1
            continue
        grouped.setdefault(day_key(item.event.start), []).append(item)

    if undated:
        logger.warning(f"Left {undated} event(s) without a start time out of the itinerary")

    hotels = [i.event for i in items if _is_hotel(i.event) and _stay_days(i.event)]

    groups = []
    for key, day_items in grouped.items():
        day = date_from_key(key)
        groups.append(DayGroup(date=day, items=day_items, day_hotel=_day_hotel(day, hotels, origin)))

    groups.sort(key=lambda g: g.date)
    return groups


def assemble_itinerary(
    events: List[TripEvent],
    origin: Optional[Coordinate] = None,
    cities: Optional[List[str]] = None,
) -> List[DayGroup]:
    """Full pipeline: events → sorted items with links → day groups."""
    return group_by_day(build_itinerary_items(events, origin, cities), origin)


def assemble_calendar(
    trip: Trip,
    events: List[TripEvent],
    origin: Optional[Coordinate] = None,
) -> List[DayGroup]:
    """One group per trip day, empty days included, for the calendar grid.

    Days with events outside the trip's dates are kept as well.
    """
    by_date = {g.date: g for g in assemble_itinerary(events, origin, trip.cities)}
    hotels = [e for e in events if _is_hotel(e) and _stay_days(e)]

    for day in enumerate_days(trip.start_date, trip.end_date):
        if day not in by_date:
            by_date[day] = DayGroup(date=day, day_hotel=_day_hotel(day, hotels, origin))

    return [by_date[d] for d in sorted(by_date)]


def attach_reminders(groups: List[DayGroup], reminders: List[Reminder]) -> List[DayGroup]:
    """Put each reminder on the group for its day.

    Reminders for days not among the groups are not shown.
    """
    by_key = {r.day_key: r for r in reminders}
    for group in groups:
        group.reminder = by_key.get(group.date.isoformat())
    return groups


# ---------------------------------------------------------------------------
# Map view
# ---------------------------------------------------------------------------

def map_markers(events: List[TripEvent]) -> List[MapMarker]:
    """Points to plot for a trip; a flight contributes both of its airports."""
    markers = []
    for ev in sort_events(events):
        start = extract_start(ev)
        if start.coordinates is not None:
            markers.append(MapMarker(ev.id, start_label(ev), start.coordinates, ev.event_type))
        if isinstance(ev, FlightEvent):
            end = extract_end(ev)
            if end.coordinates is not None:
                markers.append(MapMarker(ev.id, end_label(ev), end.coordinates, ev.event_type))
    return markers
