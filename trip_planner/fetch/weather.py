"""Daily forecasts from the Google Weather API, served through the local cache."""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import httpx

from trip_planner.config import FORECAST_DAYS, GOOGLE_MAPS_API_KEY, HTTP_TIMEOUT_SECONDS
from trip_planner.fetch.cache import WeatherCache
from trip_planner.fetch.errors import WeatherUnavailable
from trip_planner.models import DayWeather
from trip_planner.normalize.dates import parse_day

logger = logging.getLogger(__name__)


class WeatherClient:
    """Async client for the Google Weather daily forecast endpoint."""

    FORECAST_URL = "https://weather.googleapis.com/v1/forecast/days:lookup"

    def __init__(
        self,
        api_key: str = GOOGLE_MAPS_API_KEY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "WeatherClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch_forecast(self, lat: float, lng: float) -> Dict[str, DayWeather]:
        """Forecast for today and the following days, keyed by "YYYY-MM-DD".

        Raises:
            WeatherUnavailable: on transport, HTTP or payload failure.
        """
        if not self.api_key:
            logger.warning("GOOGLE_MAPS_API_KEY not set; skipping weather lookup")
            return {}

        params = {
            "key": self.api_key,
            "location.latitude": lat,
            "location.longitude": lng,
            "days": FORECAST_DAYS,
            "unitsSystem": "METRIC",
        }
        try:
            response = await self.client.get(self.FORECAST_URL, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise WeatherUnavailable(f"Weather API request failed: {e}") from e
        except ValueError as e:
            raise WeatherUnavailable(f"Weather API returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise WeatherUnavailable("Weather API returned an unexpected payload")

        days = payload.get("forecastDays") or payload.get("dailyForecasts") or []
        forecast = {}
        for raw in days:
            parsed = _parse_forecast_day(raw)
            if parsed is not None:
                day, weather = parsed
                forecast[day] = weather
        return forecast


def _dig(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _forecast_date(raw: Dict[str, Any]) -> Optional[str]:
    display = raw.get("displayDate") or raw.get("displayDateTime")
    if isinstance(display, dict):
        try:
            return date(int(display["year"]), int(display["month"]), int(display["day"])).isoformat()
        except (KeyError, TypeError, ValueError):
            pass
    start = _dig(raw, "interval", "startTime")
    if isinstance(start, str) and len(start) >= 10:
        day = parse_day(start[:10])
        return day.isoformat() if day else None
    return None


def _degrees(value: Any) -> Optional[int]:
    if isinstance(value, dict):
        value = value.get("degrees")
    try:
        return round(float(value))
    except (TypeError, ValueError):
        return None


def _parse_forecast_day(raw: Any):
    """(day, DayWeather) for one forecast entry, or None when it is unusable."""
    if not isinstance(raw, dict):
        return None
    day = _forecast_date(raw)
    if day is None:
        return None

    high = _degrees(raw.get("maxTemperature"))
    low = _degrees(raw.get("minTemperature"))
    if high is None:
        high = _degrees(_dig(raw, "temperature", "maxTemperature"))
    if low is None:
        low = _degrees(_dig(raw, "temperature", "minTemperature"))
    if high is None or low is None:
        return None

    condition = _dig(raw, "daytimeForecast", "weather") or _dig(raw, "daytimeForecast", "weatherCondition") or {}
    description = _dig(condition, "description", "text") or ""
    icon_base = condition.get("iconBaseUri") if isinstance(condition, dict) else None

    precip = raw.get("precipitationProbability")
    if precip is None:
        precip = _dig(raw, "daytimeForecast", "precipitation", "probability", "percent")
    try:
        precip = int(precip or 0)
    except (TypeError, ValueError):
        precip = 0

    return day, DayWeather(
        temp_high=high,
        temp_low=low,
        description=description,
        icon_uri=f"{icon_base}1x.png" if icon_base else "",
        precip_probability=precip,
    )


# ---------------------------------------------------------------------------
# Cached lookup
# ---------------------------------------------------------------------------

def forecast_window(dates: List[date], today: date) -> List[date]:
    """The dates the upstream forecast can cover: today and the next days."""
    return [d for d in dates if 0 <= (d - today).days < FORECAST_DAYS]


async def get_weather_for_location(
    client: WeatherClient,
    cache: WeatherCache,
    lat: float,
    lng: float,
    dates: List[str],
    now: Optional[datetime] = None,
) -> Dict[str, DayWeather]:
    """Forecasts for the requested days, hitting the API at most once.

    Fresh cache entries are used as-is. Any day still missing triggers one
    upstream call whose whole answer is cached. If that call fails, stale
    entries fill in; days nobody knows about are left out.
    """
    now = now or datetime.now()
    result = cache.get_fresh(lat, lng, dates, now)
    missing = [d for d in dates if d not in result]
    if not missing:
        return result

    try:
        fetched = await client.fetch_forecast(lat, lng)
    except WeatherUnavailable as e:
        stale = cache.get_any(lat, lng, missing)
        logger.warning(f"Weather lookup failed, using {len(stale)} cached day(s): {e}")
        result.update(stale)
        return result

    if fetched:
        cache.put_many(lat, lng, fetched, now)
    for day in missing:
        if day in fetched:
            result[day] = fetched[day]
    return result
