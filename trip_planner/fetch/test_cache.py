"""Unit tests for the weather forecast cache."""

from datetime import datetime, timedelta

from trip_planner.fetch.cache import WeatherCache, cache_key
from trip_planner.models import DayWeather

NOW = datetime(2025, 6, 1, 12, 0)
SUNNY = DayWeather(temp_high=25, temp_low=15, description="Sunny", precip_probability=10)


def test_key_rounds_to_two_decimals():
    assert cache_key(48.85661, 2.35222, "2025-06-01") == "48.86_2.35_2025-06-01"
    assert cache_key(48.0, -2.5, "2025-06-01") == "48.00_-2.50_2025-06-01"


def test_nearby_coordinates_share_entries():
    cache = WeatherCache(path=None)
    cache.put_many(48.8566, 2.3522, {"2025-06-01": SUNNY}, NOW)
    assert cache.get_fresh(48.8612, 2.3489, ["2025-06-01"], NOW) == {"2025-06-01": SUNNY}


def test_fresh_within_ttl_only():
    cache = WeatherCache(path=None, ttl=timedelta(hours=3))
    cache.put_many(48.85, 2.35, {"2025-06-01": SUNNY}, NOW)
    assert cache.get_fresh(48.85, 2.35, ["2025-06-01"], NOW + timedelta(hours=2, minutes=59))
    assert cache.get_fresh(48.85, 2.35, ["2025-06-01"], NOW + timedelta(hours=3)) == {}
    # Stale entries remain available as a fallback
    assert cache.get_any(48.85, 2.35, ["2025-06-01"]) == {"2025-06-01": SUNNY}


def test_missing_days_are_absent():
    cache = WeatherCache(path=None)
    cache.put_many(48.85, 2.35, {"2025-06-01": SUNNY}, NOW)
    assert cache.get_fresh(48.85, 2.35, ["2025-06-01", "2025-06-02"], NOW) == {"2025-06-01": SUNNY}


def test_persists_to_disk(tmp_path):
    path = tmp_path / "weather.json"
    WeatherCache(path).put_many(48.85, 2.35, {"2025-06-01": SUNNY}, NOW)
    reloaded = WeatherCache(path)
    assert len(reloaded) == 1
    assert "48.85_2.35_2025-06-01" in reloaded
    assert reloaded.get_fresh(48.85, 2.35, ["2025-06-01"], NOW) == {"2025-06-01": SUNNY}


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "weather.json"
    path.write_text("{not json", encoding="utf-8")
    cache = WeatherCache(path)
    assert len(cache) == 0
