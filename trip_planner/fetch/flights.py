"""Flight details by flight number and date, via AeroDataBox on RapidAPI."""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import httpx

from trip_planner.config import HTTP_TIMEOUT_SECONDS, RAPIDAPI_KEY
from trip_planner.fetch.errors import FlightLookupError, FlightNotFound
from trip_planner.models import FlightEvent
from trip_planner.normalize.dates import parse_instant

logger = logging.getLogger(__name__)


class FlightClient:
    """Async client for the AeroDataBox flight status API."""

    HOST = "aerodatabox.p.rapidapi.com"
    BASE_URL = f"https://{HOST}"

    def __init__(
        self,
        api_key: str = RAPIDAPI_KEY,
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
                base_url=self.BASE_URL,
                headers={
                    "X-RapidAPI-Key": self.api_key,
                    "X-RapidAPI-Host": self.HOST,
                },
                timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FlightClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def lookup(self, number: str, day: date, now: Optional[datetime] = None) -> FlightEvent:
        """Scheduled flight as an unsaved FlightEvent (empty id and trip id).

        Raises:
            FlightNotFound: the API knows no such flight on that day.
            FlightLookupError: missing key, transport, HTTP or payload failure.
        """
        if not self.api_key:
            raise FlightLookupError("RAPIDAPI_KEY not set")
        number = number.replace(" ", "").upper()
        if not number:
            raise FlightNotFound("Empty flight number")

        try:
            response = await self.client.get(f"/flights/number/{number}/{day.isoformat()}")
        except httpx.HTTPError as e:
            raise FlightLookupError(f"Flight API request failed: {e}") from e

        # 204 No Content also means "no such flight"
        if response.status_code in (404, 204):
            raise FlightNotFound(f"Flight {number} not found on {day}")
        try:
            response.raise_for_status()
            flights = response.json()
        except httpx.HTTPStatusError as e:
            raise FlightLookupError(f"Flight API error: {e}") from e
        except ValueError as e:
            raise FlightLookupError(f"Flight API returned invalid JSON: {e}") from e

        if not flights or not isinstance(flights, list):
            raise FlightNotFound(f"Flight {number} not found on {day}")

        logger.info(f"Found {len(flights)} record(s) for flight {number} on {day}")
        return flight_from_api(flights[0], now=now)


def _get(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(data: Any, *path: str) -> str:
    value = _get(data, *path)
    return value if isinstance(value, str) else ""


def _number(data: Any, *path: str) -> Optional[float]:
    value = _get(data, *path)
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _scheduled(side: Dict[str, Any]) -> Optional[datetime]:
    return parse_instant(_text(side, "scheduledTime", "local") or _text(side, "scheduledTime", "utc"))


def flight_from_api(raw: Dict[str, Any], now: Optional[datetime] = None) -> FlightEvent:
    """Map one AeroDataBox flight record; absent fields become "" or None."""
    dep = _get(raw, "departure") or {}
    arr = _get(raw, "arrival") or {}
    number = _text(raw, "number")
    airline = _text(raw, "airline", "name")

    return FlightEvent(
        title=f"{airline} {number}".strip(),
        start=_scheduled(dep),
        end=_scheduled(arr),
        location_name=f"{_text(dep, 'airport', 'iata')} → {_text(arr, 'airport', 'iata')}",
        flight_number=number,
        airline_name=airline,
        airline_iata=_text(raw, "airline", "iata"),
        departure_airport_iata=_text(dep, "airport", "iata"),
        departure_airport_name=_text(dep, "airport", "name"),
        departure_terminal=_text(dep, "terminal"),
        departure_gate=_text(dep, "gate"),
        departure_latitude=_number(dep, "airport", "location", "lat"),
        departure_longitude=_number(dep, "airport", "location", "lon"),
        arrival_airport_iata=_text(arr, "airport", "iata"),
        arrival_airport_name=_text(arr, "airport", "name"),
        arrival_terminal=_text(arr, "terminal"),
        arrival_gate=_text(arr, "gate"),
        arrival_latitude=_number(arr, "airport", "location", "lat"),
        arrival_longitude=_number(arr, "airport", "location", "lon"),
        flight_status=_text(raw, "status"),
        last_updated=now or datetime.now(),
    )
