"""Configuration: .env loading, paths, constants."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Project root = parent of trip_planner/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# --- External APIs ---
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "")
RAPIDAPI_KEY = os.getenv("RAPIDAPI_KEY", "")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))

# --- Paths ---
STORE_PATH = Path(os.getenv("STORE_PATH", str(PROJECT_ROOT / "trips.json")))
WEATHER_CACHE_PATH = Path(os.getenv("WEATHER_CACHE_PATH", str(PROJECT_ROOT / "weather_cache.json")))
OUTPUT_DIR = PROJECT_ROOT / "output"

# --- Location search ---
DEDUP_THRESHOLD_DEGREES = 0.0009  # ~100 m of latitude, compared as raw lat/lng distance
BIAS_RADIUS_METERS = 50_000
MAX_SEARCH_RADIUS_METERS = 50_000  # Places API ceiling
MAX_SEARCH_RESULTS = 5

# --- Weather ---
WEATHER_CACHE_TTL_HOURS = 3
FORECAST_DAYS = 10  # today + 9

# --- Calendar export ---
ICS_UID_DOMAIN = "travelplanner"
ICS_PRODUCT_ID = "-//TravelPlanner//TravelPlanner//EN"
