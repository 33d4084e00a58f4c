"""Tests for the availability HTTP client using a mocked transport."""

import json

import httpx
import pytest

from assignment_engine.schemas.booking_schema import BookingAvailabilityRequest
from assignment_engine.tools.availability_api import (
    AvailabilityApiClient,
    AvailabilityLookupError,
    parse_bulk,
    parse_comprehensive,
)

from tests.conftest import make_target

BASE_URL = "http://backend.test"


def _client(handler, **kwargs) -> AvailabilityApiClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AvailabilityApiClient(client=http, base_url=BASE_URL, auth_token="secret", **kwargs)


class TestParsing:
    def test_comprehensive_skips_malformed(self):
        records = parse_comprehensive({"data": [
            {"id": 1, "name": "A", "distance_from": "previous_shoot", "previous_shoot_id": 55},
            {"name": "no id"},
            {"id": 2, "distance_from": "moon", "net_available_slots": [
                {"start_time": "9:00 AM", "end_time": "10:00 AM"},
                {"start_time": "bad", "end_time": "10:00"},
            ]},
        ]})
        assert [r.id for r in records] == ["1", "2"]
        assert records[0].previous_shoot_id == "55"
        assert records[1].distance_from is None
        assert len(records[1].net_available_slots) == 1

    def test_comprehensive_accepts_home_address(self):
        records = parse_comprehensive([{"id": 3, "home_address": {"city": "Decatur", "state": "IL"}}])
        assert records[0].origin_address.city == "Decatur"

    def test_comprehensive_requires_list(self):
        with pytest.raises(AvailabilityLookupError):
            parse_comprehensive({"data": {"oops": True}})

    def test_bulk_groups_by_canonical_id(self):
        grouped = parse_bulk({"data": {
            "007": [{"day_of_week": "mon", "start_time": "09:00", "end_time": "12:00"}],
            "": [{"day_of_week": "mon", "start_time": "09:00", "end_time": "12:00"}],
        }})
        assert list(grouped) == ["7"]
        assert grouped["7"][0].day_of_week == "mon"

    def test_bulk_requires_mapping(self):
        with pytest.raises(AvailabilityLookupError):
            parse_bulk([1, 2, 3])

    def test_bulk_skips_non_list_schedule(self):
        grouped = parse_bulk({"data": {
            "1": 5,
            "2": [{"day_of_week": "mon", "start_time": "09:00", "end_time": "12:00"}],
            "3": None,
        }})
        assert "1" not in grouped
        assert len(grouped["2"]) == 1
        assert grouped["3"] == []

    def test_bulk_empty_list_is_empty_mapping(self):
        assert parse_bulk({"data": []}) == {}
        assert parse_bulk([]) == {}
        assert parse_bulk({"data": None}) == {}

    def test_bulk_integer_weekday_accepted(self):
        grouped = parse_bulk({"data": {"1": [{"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"}]}})
        assert grouped["1"][0].day_of_week == "1"


class TestForBooking:
    @pytest.mark.asyncio
    async def test_posts_payload_with_bearer_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": [{"id": 1, "name": "A"}]})

        client = _client(handler)
        request = BookingAvailabilityRequest.from_target(make_target(time="2:00 PM"), ["1", "ph-2"])
        records = await client.fetch_for_booking(request)

        assert seen["url"] == f"{BASE_URL}/api/photographer/availability/for-booking"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"]["date"] == "2025-03-10"
        assert seen["body"]["time"] == "14:00"
        assert seen["body"]["shoot_city"] == "Springfield"
        assert seen["body"]["photographer_ids"] == [1, "ph-2"]
        assert [r.id for r in records] == ["1"]

    @pytest.mark.asyncio
    async def test_http_error_raises_with_status(self):
        client = _client(lambda request: httpx.Response(503, json={"error": "down"}))
        request = BookingAvailabilityRequest.from_target(make_target(), ["1"])
        with pytest.raises(AvailabilityLookupError) as excinfo:
            await client.fetch_for_booking(request)
        assert excinfo.value.status_code == 503

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        client = _client(lambda request: httpx.Response(200, text="<html>"))
        request = BookingAvailabilityRequest.from_target(make_target(), ["1"])
        with pytest.raises(AvailabilityLookupError, match="invalid JSON"):
            await client.fetch_for_booking(request)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        request = BookingAvailabilityRequest.from_target(make_target(), ["1"])
        with pytest.raises(AvailabilityLookupError, match="failed"):
            await client.fetch_for_booking(request)


class TestBulkCache:
    @staticmethod
    def _counting_handler(counter: list):
        def handler(request: httpx.Request) -> httpx.Response:
            counter.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {
                "1": [{"date": "2025-03-10", "start_time": "09:00", "end_time": "12:00"}],
            }})
        return handler

    @pytest.mark.asyncio
    async def test_repeat_lookup_served_from_cache(self):
        bodies = []
        client = _client(self._counting_handler(bodies), cache_ttl_sec=60)
        first = await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10")
        second = await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10")
        assert first is second
        assert len(bodies) == 1
        assert bodies[0] == {"photographer_ids": [1], "from_date": "2025-03-10", "to_date": "2025-03-10"}

    @pytest.mark.asyncio
    async def test_different_range_misses_cache(self):
        bodies = []
        client = _client(self._counting_handler(bodies), cache_ttl_sec=60)
        await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10")
        await client.fetch_bulk(["1"], "2025-03-11", "2025-03-11")
        assert len(bodies) == 2

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_cache(self):
        bodies = []
        client = _client(self._counting_handler(bodies), cache_ttl_sec=0)
        await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10")
        await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10")
        assert len(bodies) == 2

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        bodies = []
        client = _client(self._counting_handler(bodies), cache_ttl_sec=60)
        await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10")
        client.clear_cache()
        await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10")
        assert len(bodies) == 2

    @pytest.mark.asyncio
    async def test_expired_entries_pruned_on_write(self):
        client = _client(self._counting_handler([]), cache_ttl_sec=60)
        for day in ("2025-03-10", "2025-03-11", "2025-03-12"):
            await client.fetch_bulk(["1"], day, day)
        assert client.cache_size == 3

        # Age every entry past the TTL
        for key, (stored, grouped) in list(client._bulk_cache.items()):
            client._bulk_cache[key] = (stored - 61, grouped)
        await client.fetch_bulk(["1"], "2025-03-13", "2025-03-13")
        assert client.cache_size == 1

    @pytest.mark.asyncio
    async def test_non_list_schedule_over_http(self):
        client = _client(lambda request: httpx.Response(200, json={"data": {
            "1": 5,
            "2": [{"date": "2025-03-10", "start_time": "09:00", "end_time": "12:00"}],
        }}))
        grouped = await client.fetch_bulk(["1", "2"], "2025-03-10", "2025-03-10")
        assert list(grouped) == ["2"]

    @pytest.mark.asyncio
    async def test_empty_list_body_over_http(self):
        client = _client(lambda request: httpx.Response(200, json={"data": []}))
        assert await client.fetch_bulk(["1"], "2025-03-10", "2025-03-10") == {}
