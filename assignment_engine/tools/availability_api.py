"""
HTTP client for the booking backend's availability endpoints.

Two read-only lookups are consumed:
- the comprehensive availability-for-booking lookup (distance origin,
  slots, booked slots, server-computed availability per photographer)
- the bulk raw-schedule lookup (schedule rows grouped by photographer)

Both unwrap the backend's ``{"data": ...}`` envelope. Any transport
error, non-2xx status, or unusable payload raises AvailabilityLookupError.
"""

import logging
import time
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from assignment_engine.config import settings
from assignment_engine.schemas.booking_schema import BookingAvailabilityRequest
from assignment_engine.schemas.photographer_schema import ComprehensiveRecord
from assignment_engine.schemas.schedule_schema import ScheduleRecord
from assignment_engine.utils import normalize_id

logger = logging.getLogger(__name__)

ScheduleMap = dict[str, list[ScheduleRecord]]


class AvailabilityLookupError(Exception):
    """Raised when an availability lookup fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AvailabilitySource(Protocol):
    async def fetch_for_booking(
        self, request: BookingAvailabilityRequest
    ) -> list[ComprehensiveRecord]: ...

    async def fetch_bulk(
        self, photographer_ids: list[str], from_date: str, to_date: str
    ) -> ScheduleMap: ...


def parse_comprehensive(payload: Any) -> list[ComprehensiveRecord]:
    """Parse the comprehensive lookup body, skipping malformed entries."""
    data = payload.get("data", []) if isinstance(payload, dict) else payload
    if not isinstance(data, list):
        raise AvailabilityLookupError("Comprehensive lookup returned no list")
    records = []
    for item in data:
        try:
            records.append(ComprehensiveRecord.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed availability record: %s", exc.errors()[0]["msg"])
    return records


def parse_bulk(payload: Any) -> ScheduleMap:
    """Parse the bulk lookup body into canonical-id -> rows.

    An empty list stands for an empty mapping. Non-list values and
    malformed rows are skipped.
    """
    data = payload.get("data", {}) if isinstance(payload, dict) and "data" in payload else payload
    if data is None or data == []:
        return {}
    if not isinstance(data, dict):
        raise AvailabilityLookupError("Bulk lookup returned no mapping")
    grouped: ScheduleMap = {}
    for raw_id, rows in data.items():
        try:
            pid = normalize_id(raw_id)
        except ValueError:
            continue
        if rows is None:
            rows = []
        if not isinstance(rows, list):
            logger.warning("Skipping non-list schedule for %s: %r", pid, type(rows).__name__)
            continue
        records = grouped.setdefault(pid, [])
        for row in rows:
            try:
                records.append(ScheduleRecord.model_validate(row))
            except ValidationError as exc:
                logger.debug("Skipping malformed schedule row for %s: %s", pid, exc.errors()[0]["msg"])
    return grouped


class AvailabilityApiClient:
    """httpx-backed AvailabilitySource with a short-lived bulk cache."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = settings.api.base_url,
        auth_token: str = settings.api.auth_token,
        for_booking_path: str = settings.api.for_booking_path,
        bulk_path: str = settings.api.bulk_path,
        timeout: float = settings.resolution.lookup_timeout_sec,
        cache_ttl_sec: float = settings.resolution.bulk_cache_ttl_sec,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._base_url = base_url.rstrip("/")
        self._auth_token = auth_token
        self._for_booking_path = for_booking_path
        self._bulk_path = bulk_path
        self._cache_ttl_sec = cache_ttl_sec
        self._bulk_cache: dict[tuple, tuple[float, ScheduleMap]] = {}

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    async def _post(self, path: str, body: dict[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._client.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            raise AvailabilityLookupError(f"Request to {path} failed: {exc}") from exc
        if not resp.is_success:
            raise AvailabilityLookupError(
                f"{path} returned {resp.status_code}", status_code=resp.status_code
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise AvailabilityLookupError(f"{path} returned invalid JSON") from exc

    async def fetch_for_booking(
        self, request: BookingAvailabilityRequest
    ) -> list[ComprehensiveRecord]:
        payload = await self._post(self._for_booking_path, request.to_payload())
        records = parse_comprehensive(payload)
        logger.debug("Comprehensive lookup returned %d records", len(records))
        return records

    async def fetch_bulk(
        self, photographer_ids: list[str], from_date: str, to_date: str
    ) -> ScheduleMap:
        cache_key = (tuple(sorted(photographer_ids)), from_date, to_date)
        cached = self._bulk_cache.get(cache_key)
        if cached and time.monotonic() - cached[0] < self._cache_ttl_sec:
            logger.debug("Bulk schedule cache hit for %s..%s", from_date, to_date)
            return cached[1]

        body = {
            "photographer_ids": [int(p) if p.isdigit() else p for p in photographer_ids],
            "from_date": from_date,
            "to_date": to_date,
        }
        grouped = parse_bulk(await self._post(self._bulk_path, body))
        now = time.monotonic()
        self._prune_cache(now)
        self._bulk_cache[cache_key] = (now, grouped)
        return grouped

    def _prune_cache(self, now: float) -> None:
        expired = [k for k, (stored, _) in self._bulk_cache.items() if now - stored >= self._cache_ttl_sec]
        for key in expired:
            del self._bulk_cache[key]

    @property
    def cache_size(self) -> int:
        return len(self._bulk_cache)

    def clear_cache(self) -> None:
        self._bulk_cache.clear()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
