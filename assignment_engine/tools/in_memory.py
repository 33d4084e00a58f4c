"""
In-memory availability source and geocoder.

Used by the console demo and the test suite. Responses are plain dicts
shaped like the backend's JSON, parsed through the same functions the
HTTP client uses. Individual dates can be held back with ``hold()`` to
simulate slow responses.
"""

import asyncio
import logging
from typing import Any, Optional, Union

from assignment_engine.schemas.booking_schema import Address, BookingAvailabilityRequest
from assignment_engine.schemas.photographer_schema import ComprehensiveRecord
from assignment_engine.tools.availability_api import (
    AvailabilityLookupError,
    ScheduleMap,
    parse_bulk,
    parse_comprehensive,
)
from assignment_engine.tools.geocoding import Coordinates, GeocodingError
from assignment_engine.utils import normalize_address_key, normalize_id

logger = logging.getLogger(__name__)


class InMemoryAvailabilitySource:
    """AvailabilitySource backed by canned payloads."""

    def __init__(
        self,
        comprehensive: Union[list[dict], dict[str, list[dict]], None] = None,
        schedules: Optional[dict[Any, list[dict]]] = None,
        fail_primary: bool = False,
        fail_bulk: bool = False,
    ) -> None:
        self.comprehensive = comprehensive or []
        self.schedules = {normalize_id(k): v for k, v in (schedules or {}).items()}
        self.fail_primary = fail_primary
        self.fail_bulk = fail_bulk
        self.calls: list[tuple[str, str]] = []
        self._gates: dict[str, asyncio.Event] = {}

    def hold(self, date: str) -> asyncio.Event:
        """Block lookups for ``date`` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[date] = gate
        return gate

    async def _wait(self, date: str) -> None:
        gate = self._gates.get(date)
        if gate is not None:
            await gate.wait()

    def _rows_for(self, date: str) -> list[dict]:
        if isinstance(self.comprehensive, dict):
            return self.comprehensive.get(date, self.comprehensive.get("*", []))
        return self.comprehensive

    async def fetch_for_booking(
        self, request: BookingAvailabilityRequest
    ) -> list[ComprehensiveRecord]:
        self.calls.append(("for_booking", request.date))
        await self._wait(request.date)
        if self.fail_primary:
            raise AvailabilityLookupError("Comprehensive lookup unavailable", status_code=503)
        wanted = set(request.photographer_ids)
        rows = [row for row in self._rows_for(request.date) if normalize_id(row["id"]) in wanted]
        return parse_comprehensive({"data": rows})

    async def fetch_bulk(
        self, photographer_ids: list[str], from_date: str, to_date: str
    ) -> ScheduleMap:
        self.calls.append(("bulk", from_date))
        await self._wait(from_date)
        if self.fail_bulk:
            raise AvailabilityLookupError("Bulk lookup unavailable", status_code=503)
        data = {pid: self.schedules[pid] for pid in photographer_ids if pid in self.schedules}
        return parse_bulk({"data": data})


class InMemoryGeocoder:
    """Geocoder over a fixed address -> coordinates table.

    Keys may be free-text addresses; they are matched by address key.
    """

    def __init__(
        self,
        coordinates: Optional[dict[str, tuple[float, float]]] = None,
        failing: Optional[set[str]] = None,
        delay_sec: float = 0.0,
    ) -> None:
        self._coordinates = {
            normalize_address_key(k): Coordinates(*v) for k, v in (coordinates or {}).items()
        }
        self._failing = {normalize_address_key(k) for k in (failing or set())}
        self.delay_sec = delay_sec
        self.calls: list[str] = []

    async def geocode(self, location: Address) -> Optional[Coordinates]:
        key = location.key
        self.calls.append(key)
        if self.delay_sec:
            await asyncio.sleep(self.delay_sec)
        if key in self._failing:
            raise GeocodingError(f"Geocoding failed for {location.label()}")
        return self._coordinates.get(key)
