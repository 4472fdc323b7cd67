"""Forecast cache keyed by rounded coordinates and day, with a freshness TTL."""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from trip_planner.config import WEATHER_CACHE_PATH, WEATHER_CACHE_TTL_HOURS
from trip_planner.models import DayWeather

logger = logging.getLogger(__name__)


def round_coord(value: float) -> float:
    """Two decimals (~1 km), so nearby lookups share entries."""
    return round(value, 2)


def cache_key(lat: float, lng: float, day: str) -> str:
    return f"{round_coord(lat):.2f}_{round_coord(lng):.2f}_{day}"


class WeatherCache:
    """Per-day forecasts with the time they were fetched.

    Persists to a JSON file like any other local cache; path=None keeps it in
    memory only. Read and write failures are logged and never raised.
    """

    def __init__(
        self,
        path: Optional[Path] = WEATHER_CACHE_PATH,
        ttl: timedelta = timedelta(hours=WEATHER_CACHE_TTL_HOURS),
    ):
        self.path = path
        self.ttl = ttl
        self._data: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self):
        if self.path is not None and self.path.exists():
            try:
                self._data = json.loads(self.path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.error(f"Weather cache read error: {e}")
                self._data = {}

    def _save(self):
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(f"Weather cache write error: {e}")

    def _lookup(self, lat: float, lng: float, days: List[str], now: Optional[datetime]) -> Dict[str, DayWeather]:
        result = {}
        for day in days:
            entry = self._data.get(cache_key(lat, lng, day))
            if not entry:
                continue
            if now is not None:
                try:
                    fetched_at = datetime.fromisoformat(entry["fetched_at"])
                except (KeyError, TypeError, ValueError):
                    continue
                if now - fetched_at >= self.ttl:
                    continue
            try:
                result[day] = DayWeather(**entry["weather"])
            except (KeyError, TypeError):
                logger.warning(f"Dropping malformed weather cache entry for {day}")
        return result

    def get_fresh(self, lat: float, lng: float, days: List[str], now: Optional[datetime] = None) -> Dict[str, DayWeather]:
        """Entries younger than the TTL."""
        return self._lookup(lat, lng, days, now or datetime.now())

    def get_any(self, lat: float, lng: float, days: List[str]) -> Dict[str, DayWeather]:
        """Entries of any age, for when the forecast API is down."""
        return self._lookup(lat, lng, days, None)

    def put_many(self, lat: float, lng: float, entries: Dict[str, DayWeather], now: Optional[datetime] = None):
        fetched_at = (now or datetime.now()).isoformat()
        for day, weather in entries.items():
            self._data[cache_key(lat, lng, day)] = {
                "lat": round_coord(lat),
                "lng": round_coord(lng),
                "date": day,
                "weather": vars(weather).copy(),
                "fetched_at": fetched_at,
            }
        self._save()

    def __len__(self):
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data
