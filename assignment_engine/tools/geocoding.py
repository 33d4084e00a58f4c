"""
Geocoding collaborator and great-circle distance.

``NominatimGeocoder`` talks to an OpenStreetMap Nominatim-compatible
search endpoint over httpx. "No match" is ``None``; transport and HTTP
failures raise ``GeocodingError`` so callers can isolate them.
"""

import logging
import math
from typing import NamedTuple, Optional, Protocol

import httpx

from assignment_engine.config import settings
from assignment_engine.schemas.booking_schema import Address

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3958.8


class Coordinates(NamedTuple):
    lat: float
    lon: float


class GeocodingError(Exception):
    """Raised when the geocoding provider cannot be reached or errors."""


class Geocoder(Protocol):
    async def geocode(self, location: Address) -> Optional[Coordinates]: ...


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles between two coordinate pairs."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(a)))


class NominatimGeocoder:
    """Address -> coordinates via Nominatim, memoized per address key."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = settings.geocoding.base_url,
        user_agent: str = settings.geocoding.user_agent,
        country_codes: str = settings.geocoding.country_codes,
        timeout: float = settings.resolution.geocode_timeout_sec,
        max_cache_entries: int = 1024,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._country_codes = country_codes
        self._cache: dict[str, Optional[Coordinates]] = {}
        self._max_cache_entries = max(1, max_cache_entries)

    async def geocode(self, location: Address) -> Optional[Coordinates]:
        key = location.key
        if not key:
            return None
        if key in self._cache:
            return self._cache[key]

        params = {
            "q": location.label(),
            "format": "json",
            "limit": "1",
        }
        if self._country_codes:
            params["countrycodes"] = self._country_codes
        headers = {"User-Agent": self._user_agent, "Accept": "application/json"}

        try:
            resp = await self._client.get(f"{self._base_url}/search", params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise GeocodingError(f"Geocoding request failed: {exc}") from exc
        if resp.status_code >= 400:
            logger.warning("Nominatim error %s: %s", resp.status_code, resp.text[:200])
            raise GeocodingError(f"Geocoding provider returned {resp.status_code}")

        try:
            results = resp.json()
        except ValueError as exc:
            raise GeocodingError("Geocoding provider returned invalid JSON") from exc

        coords: Optional[Coordinates] = None
        if isinstance(results, list) and results:
            try:
                coords = Coordinates(float(results[0]["lat"]), float(results[0]["lon"]))
            except (KeyError, TypeError, ValueError):
                logger.debug("Unusable geocoding result for '%s': %r", key, results[0])

        while len(self._cache) >= self._max_cache_entries:
            # Oldest first; dicts keep insertion order
            del self._cache[next(iter(self._cache))]
        self._cache[key] = coords
        return coords

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
