"""Output formatters: ICS calendar, JSON, Leaflet map HTML, and a human-readable day list."""

import json
import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

from icalendar import Calendar, Event, vText

from trip_planner.assemble.itinerary import sort_events
from trip_planner.config import ICS_PRODUCT_ID, ICS_UID_DOMAIN
from trip_planner.models import (
    DayGroup,
    DayWeather,
    HotelEvent,
    ItineraryItem,
    MapMarker,
    NavigationLink,
    Trip,
    TripEvent,
)
from trip_planner.normalize.dates import as_day, format_date_range, format_time
from trip_planner.normalize.points import description_lines, location_text

logger = logging.getLogger(__name__)

ICS_MIME_TYPE = "text/calendar"


def _date_str(d) -> str:
    if d is None:
        return "?"
    if isinstance(d, (date, datetime)):
        return d.isoformat()
    return str(d)


# ---------------------------------------------------------------------------
# ICS calendar
# ---------------------------------------------------------------------------

def _event_description(event: TripEvent) -> str:
    parts = []
    if event.notes:
        parts.append(f"Notes: {event.notes}")
    lines = description_lines(event)
    if lines:
        parts.append("\n".join(lines))
    return "\n\n".join(parts)


def _to_vevent(event: TripEvent, stamp: datetime) -> Event:
    vevent = Event()
    vevent.add("uid", f"{event.id}@{ICS_UID_DOMAIN}")
    vevent.add("dtstamp", stamp)

    if isinstance(event, HotelEvent):
        # All-day; DTEND is exclusive, so the check-out day needs one extra day
        check_in = as_day(event.check_in)
        check_out = as_day(event.check_out) if event.check_out else check_in
        vevent.add("dtstart", check_in)
        vevent.add("dtend", check_out + timedelta(days=1))
        vevent.add("summary", event.hotel_name or event.title)
    else:
        vevent.add("dtstart", event.start)
        vevent.add("dtend", event.end or event.start)
        vevent.add("summary", event.title)

    description = _event_description(event)
    if description:
        vevent.add("description", description)

    location = location_text(event)
    if location:
        vevent.add("location", location)
    return vevent


def to_ics(trip: Trip, events: List[TripEvent], now: Optional[datetime] = None) -> str:
    """RFC 5545 calendar with one VEVENT per dated event, in start order."""
    stamp = now or datetime.now(timezone.utc)

    cal = Calendar()
    cal.add("version", "2.0")
    cal.add("prodid", ICS_PRODUCT_ID)
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    cal.add("x-wr-calname", vText(trip.name))
    cal.add("x-wr-caldesc", vText(f"Trip to {trip.destination or trip.name}"))

    skipped = 0
    for event in sort_events(events):
        if event.start is None:
            skipped += 1
            continue
        cal.add_component(_to_vevent(event, stamp))

    if skipped:
        logger.warning(f"Skipped {skipped} event(s) without a start time in calendar export")
    return cal.to_ical().decode("utf-8")


def ics_filename(trip: Trip) -> str:
    safe = "".join(ch if ch.isascii() and ch.isalnum() else "_" for ch in trip.name)
    return f"{safe}_calendar.ics"


def write_ics(trip: Trip, events: List[TripEvent], path: Path, now: Optional[datetime] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_ics(trip, events, now), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Human-readable day list
# ---------------------------------------------------------------------------

def _link_text(link: Optional[NavigationLink]) -> str:
    return f"{link.label}: {link.url}" if link else "no link available"


def _weather_text(weather: Optional[DayWeather]) -> str:
    if weather is None:
        return "no forecast"
    text = f"{weather.temp_high}°/{weather.temp_low}°"
    if weather.description:
        text += f" {weather.description}"
    if weather.precip_probability:
        text += f", {weather.precip_probability}% rain"
    return text


def _item_lines(item: ItineraryItem) -> List[str]:
    ev = item.event
    when = format_time(ev.start) if isinstance(ev.start, datetime) else "--:--"
    kind = ev.event_type.value if ev.event_type else "event"
    lines = [f"  {when:>8}  [{kind}] {ev.title}"]
    if isinstance(ev, HotelEvent):
        lines.append(f"            Check-out: {_date_str(as_day(ev.check_out) if ev.check_out else None)}")
    else:
        if item.nav_to_departure is not None:
            lines.append(f"            Departure: {_link_text(item.nav_to_departure)}")
        lines.append(f"            Go: {_link_text(item.nav_to_event)}")
        if item.nav_to_hotel is not None:
            lines.append(f"            Back to hotel: {_link_text(item.nav_to_hotel)}")
    if item.review_links:
        lines.append(f"            Reviews: {' | '.join(_link_text(link) for link in item.review_links)}")
    return lines


def format_days(
    groups: List[DayGroup],
    weather: Optional[Dict[str, DayWeather]] = None,
    title: str = "TRIP ITINERARY",
) -> str:
    """Produce a human-readable day-by-day itinerary.

    weather maps "YYYY-MM-DD" to a forecast; pass None to leave forecasts out.
    """
    lines = []
    lines.append("=" * 72)
    lines.append(f"  {title}")
    if groups:
        lines.append(f"  {format_date_range(groups[0].date, groups[-1].date)}")
    lines.append("=" * 72)

    for group in groups:
        lines.append(f"\n--- {group.date:%A, %B} {group.date.day} {'─' * 40}")
        if weather is not None:
            lines.append(f"  Weather: {_weather_text(weather.get(group.date.isoformat()))}")
        if group.reminder is not None:
            lines.append(f"  Reminder: {group.reminder.content}")
        if group.day_hotel is not None:
            hotel = group.day_hotel.hotel
            lines.append(f"  Staying at {hotel.hotel_name or hotel.title}  ({_link_text(group.day_hotel.nav_to_hotel)})")
        if not group.items:
            lines.append("  (nothing planned)")
        for item in group.items:
            lines.extend(_item_lines(item))

    total = sum(len(g.items) for g in groups)
    lines.append(f"\n{'=' * 72}")
    lines.append(f"  Total: {total} events over {len(groups)} days")
    lines.append("=" * 72)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON output
# ---------------------------------------------------------------------------

def _link_to_dict(link: Optional[NavigationLink]):
    return {"label": link.label, "url": link.url} if link else None


def _item_to_dict(item: ItineraryItem) -> dict:
    ev = item.event
    return {
        "id": ev.id,
        "event_type": ev.event_type.value if ev.event_type else None,
        "title": ev.title,
        "start": _date_str(ev.start),
        "end": _date_str(ev.end),
        "location": location_text(ev),
        "nav_to_event": _link_to_dict(item.nav_to_event),
        "nav_to_hotel": _link_to_dict(item.nav_to_hotel),
        "nav_to_departure": _link_to_dict(item.nav_to_departure),
        "reviews": [_link_to_dict(link) for link in item.review_links],
    }


def days_to_dict(groups: List[DayGroup], weather: Optional[Dict[str, DayWeather]] = None) -> dict:
    days = []
    for g in groups:
        day = {
            "date": g.date.isoformat(),
            "items": [_item_to_dict(i) for i in g.items],
            "day_hotel": None,
            "reminder": g.reminder.content if g.reminder else None,
        }
        if g.day_hotel is not None:
            day["day_hotel"] = {
                "id": g.day_hotel.hotel.id,
                "name": g.day_hotel.hotel.hotel_name or g.day_hotel.hotel.title,
                "nav_to_hotel": _link_to_dict(g.day_hotel.nav_to_hotel),
            }
        if weather is not None:
            forecast = weather.get(day["date"])
            day["weather"] = vars(forecast).copy() if forecast else None
        days.append(day)
    return {
        "days": days,
        "summary": {
            "total_days": len(groups),
            "total_events": sum(len(g.items) for g in groups),
        },
    }


def to_json(groups: List[DayGroup], path: Path, weather: Optional[Dict[str, DayWeather]] = None):
    """Write the day-grouped itinerary as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(days_to_dict(groups, weather), indent=2, ensure_ascii=False), encoding="utf-8")


# ---------------------------------------------------------------------------
# Trip map HTML (Leaflet.js)
# ---------------------------------------------------------------------------

def format_map_html(trip: Trip, markers: List[MapMarker], path: Path):
    """Write an interactive Leaflet map of the trip's places as a single HTML file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    js_markers = [
        {
            "label": m.label,
            "type": m.event_type.value if m.event_type else "",
            "lat": m.coordinates.lat,
            "lng": m.coordinates.lng,
        }
        for m in markers
    ]
    markers_json = json.dumps(js_markers, ensure_ascii=False).replace("</", "<\\/")
    title = json.dumps(trip.name, ensure_ascii=False).replace("</", "<\\/")

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Trip Map</title>
<link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<style>
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: "Helvetica Neue", Arial, sans-serif; }}
  #header {{ background: #2c3e50; color: white; padding: 14px 24px; text-align: center; }}
  #map {{ width: 100%; height: calc(100vh - 56px); }}
</style>
</head>
<body>
<div id="header"><h1 id="title"></h1></div>
<div id="map"></div>
<script>
  const markers = {markers_json};
  document.getElementById("title").textContent = {title};
  const map = L.map("map").setView([20, 0], 2);
  L.tileLayer("https://{{s}}.tile.openstreetmap.org/{{z}}/{{x}}/{{y}}.png", {{
    attribution: "&copy; OpenStreetMap contributors",
  }}).addTo(map);
  const bounds = [];
  markers.forEach(m => {{
    const marker = L.marker([m.lat, m.lng]).addTo(map);
    const label = document.createElement("span");
    label.textContent = m.type ? `${{m.label}} (${{m.type}})` : m.label;
    marker.bindPopup(label);
    bounds.push([m.lat, m.lng]);
  }});
  if (bounds.length) map.fitBounds(bounds, {{ padding: [40, 40], maxZoom: 14 }});
</script>
</body>
</html>
"""
    path.write_text(html, encoding="utf-8")
