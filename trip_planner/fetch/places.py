"""Google Geocoding and Places Text Search, for turning free text into locations."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from trip_planner.config import GOOGLE_MAPS_API_KEY, HTTP_TIMEOUT_SECONDS
from trip_planner.fetch.errors import PlacesUnavailable
from trip_planner.models import Coordinate, PlaceResult, SearchRegion

logger = logging.getLogger(__name__)

_OK_STATUSES = ("OK", "ZERO_RESULTS")


class PlacesClient:
    """Async client for city geocoding and place search."""

    GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
    TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"

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

    async def __aenter__(self) -> "PlacesClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def geocode_city(self, name: str) -> Optional[Coordinate]:
        """Center of a city, or None when it cannot be resolved for any reason."""
        if not name or not self.api_key:
            return None
        try:
            response = await self.client.get(self.GEOCODE_URL, params={"address": name, "key": self.api_key})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Geocoding failed for {name!r}: {e}")
            return None

        ok = isinstance(data, dict) and data.get("status") == "OK"
        results = data.get("results") if ok else None
        if not isinstance(results, list) or not results:
            logger.warning(f"Geocoding found nothing for {name!r}")
            return None

        location = _location(results[0])
        if location is None:
            logger.warning(f"Geocoding result for {name!r} has no coordinates")
        return location

    async def search(self, query: str, region: Optional[SearchRegion] = None) -> List[PlaceResult]:
        """Places matching a free-text query, biased toward region when given.

        Raises:
            PlacesUnavailable: no API key, transport or HTTP failure, or an
                error status from the API.
        """
        if not query or not query.strip():
            return []
        if not self.api_key:
            raise PlacesUnavailable("GOOGLE_MAPS_API_KEY not set")

        params: Dict[str, Any] = {"query": query.strip(), "key": self.api_key}
        if region is not None:
            params["location"] = f"{region.center.lat},{region.center.lng}"
            params["radius"] = region.radius_meters

        try:
            response = await self.client.get(self.TEXT_SEARCH_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise PlacesUnavailable(f"Places API request failed: {e}") from e
        except ValueError as e:
            raise PlacesUnavailable(f"Places API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise PlacesUnavailable("Places API returned an unexpected payload")
        status = data.get("status")
        if status not in _OK_STATUSES:
            raise PlacesUnavailable(f"Places API error: {status} {data.get('error_message', '')}".strip())

        results = []
        for raw in data.get("results") or []:
            place = _to_place(raw)
            if place is not None:
                results.append(place)
        return results


def _location(raw: Any) -> Optional[Coordinate]:
    try:
        loc = raw["geometry"]["location"]
        return Coordinate(float(loc["lat"]), float(loc["lng"]))
    except (KeyError, TypeError, ValueError):
        return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _score(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_place(raw: Any) -> Optional[PlaceResult]:
    """One API result as a PlaceResult; None when it has no usable position."""
    location = _location(raw)
    if location is None:
        return None
    types = raw.get("types")
    return PlaceResult(
        place_id=_text(raw.get("place_id")),
        lat=location.lat,
        lng=location.lng,
        name=_text(raw.get("name")),
        formatted_address=_text(raw.get("formatted_address")),
        importance=_score(raw.get("importance")),
        rating=_score(raw.get("rating")),
        types=[t for t in types if isinstance(t, str)] if isinstance(types, list) else [],
    )
