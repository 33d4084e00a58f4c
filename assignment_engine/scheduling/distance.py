"""
Distance resolver: travel distance from a photographer's origin to the shoot.

Resolution order for every photographer:
1. Either address key empty -> unknown (None), no network.
2. Keys equal -> 0.0, no network.
3. Street/city/state missing on either side -> unknown, no network.
4. Geocode both (booking address once per resolver) and take the
   great-circle distance.

A geocoding failure or timeout leaves that one photographer unknown.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Optional

from assignment_engine.config import settings
from assignment_engine.schemas.booking_schema import Address
from assignment_engine.tools.geocoding import (
    Coordinates,
    Geocoder,
    GeocodingError,
    haversine_miles,
)
from assignment_engine.utils import has_geocodable_address, normalize_address_key

logger = logging.getLogger(__name__)


class DistanceResolver:
    """Resolves distances to one booking location. Create one per cycle."""

    def __init__(
        self,
        geocoder: Geocoder,
        booking: Address,
        distance_fn: Callable[[float, float, float, float], float] = haversine_miles,
        timeout: float = settings.resolution.geocode_timeout_sec,
        decimals: int = settings.resolution.distance_decimals,
    ) -> None:
        self._geocoder = geocoder
        self._booking = booking
        self._booking_key = normalize_address_key(booking)
        self._distance_fn = distance_fn
        self._timeout = timeout
        self._decimals = decimals
        self._booking_coords: Optional[Coordinates] = None
        self._booking_resolved = False
        self._lock = asyncio.Lock()
        self.failed_keys: set[str] = set()

    @property
    def booking_key(self) -> str:
        return self._booking_key

    async def _geocode(self, location: Address) -> Optional[Coordinates]:
        try:
            return await asyncio.wait_for(self._geocoder.geocode(location), self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Geocoding timed out for '%s'", location.label())
        except GeocodingError as exc:
            logger.warning("Geocoding failed for '%s': %s", location.label(), exc)
        except Exception as exc:
            logger.warning("Unexpected geocoding error for '%s': %r", location.label(), exc)
        self.failed_keys.add(location.key)
        return None

    async def booking_coordinates(self) -> Optional[Coordinates]:
        """Geocode the booking address at most once."""
        async with self._lock:
            if not self._booking_resolved:
                self._booking_coords = await self._geocode(self._booking)
                self._booking_resolved = True
        return self._booking_coords

    async def distance_to(self, origin: Optional[Address]) -> Optional[float]:
        origin_key = normalize_address_key(origin)
        if not origin_key or not self._booking_key:
            return None
        if origin_key == self._booking_key:
            return 0.0
        if not has_geocodable_address(origin) or not has_geocodable_address(self._booking):
            return None

        booking_coords = await self.booking_coordinates()
        if booking_coords is None:
            return None
        origin_coords = await self._geocode(origin)
        if origin_coords is None:
            return None

        miles = self._distance_fn(
            booking_coords.lat, booking_coords.lon, origin_coords.lat, origin_coords.lon
        )
        return round(miles, self._decimals)

    async def resolve_each(
        self, origins: Iterable[tuple[str, Optional[Address]]]
    ) -> AsyncIterator[tuple[str, Optional[float]]]:
        """Yield ``(photographer_id, distance)`` one photographer at a time."""
        for photographer_id, origin in origins:
            yield photographer_id, await self.distance_to(origin)
