"""Shared test fixtures and helpers."""

from datetime import date
from typing import Any, Optional

import pytest

from assignment_engine.orchestration.state_machine import ResolutionStateMachine
from assignment_engine.schemas.booking_schema import Address, BookingTarget
from assignment_engine.schemas.photographer_schema import EnrichedPhotographer
from assignment_engine.schemas.schedule_schema import ScheduleRecord, TimeRange
from assignment_engine.tools.in_memory import InMemoryAvailabilitySource, InMemoryGeocoder

SHOOT_ADDRESS = {"address": "100 Market St", "city": "Springfield", "state": "IL", "zip": "62701"}
P2_HOME = {"address": "12 Elm St", "city": "Chatham", "state": "IL", "zip": "62629"}
P3_HOME = {"address": "9 Lake Rd", "city": "Decatur", "state": "IL", "zip": "62521"}

COORDINATES = {
    "100 Market St Springfield IL 62701": (39.8017, -89.6437),
    "12 Elm St Chatham IL 62629": (39.6761, -89.7045),
    "9 Lake Rd Decatur IL 62521": (39.8403, -88.9548),
}

MONDAY = date(2025, 3, 10)


@pytest.fixture
def state_machine():
    return ResolutionStateMachine()


@pytest.fixture
def shoot_address():
    return Address(**SHOOT_ADDRESS)


@pytest.fixture
def geocoder():
    return InMemoryGeocoder(COORDINATES)


@pytest.fixture
def roster():
    return [
        {"id": 1, "name": "Avery Lane", "profile_address": SHOOT_ADDRESS},
        {"id": 2, "name": "Blake Moreno", "profile_address": P2_HOME},
    ]


@pytest.fixture
def scenario_source():
    """P1 lives at the shoot address; P2 has weekly Monday 13:00-16:00 and a 14:00 booking."""
    return InMemoryAvailabilitySource(
        comprehensive=[
            {"id": 1, "name": "Avery Lane", "distance_from": "home", "home_address": SHOOT_ADDRESS,
             "net_available_slots": [{"start_time": "09:00", "end_time": "17:00"}],
             "has_availability": True},
            {"id": 2, "name": "Blake Moreno", "distance_from": "home", "home_address": P2_HOME,
             "booked_slots": [{"start_time": "14:00", "end_time": "14:30", "shoot_id": 81}],
             "shoots_count_today": 1},
        ],
        schedules={
            2: [{"photographer_id": 2, "day_of_week": "monday",
                 "start_time": "13:00", "end_time": "16:00", "status": "available"}],
        },
    )


def make_target(
    when: Optional[date] = MONDAY,
    time: Optional[str] = None,
    **address: Any,
) -> BookingTarget:
    """Helper to create a BookingTarget at the shoot address by default."""
    fields = {**SHOOT_ADDRESS, **address}
    return BookingTarget(date=when, time=time, **fields)


def make_range(start: str, end: str) -> TimeRange:
    return TimeRange(start_time=start, end_time=end)


def make_record(
    start: str,
    end: str,
    on: Optional[str] = None,
    day: Optional[str] = None,
    status: Optional[str] = "available",
) -> ScheduleRecord:
    """Helper to create a raw schedule row (date-specific when ``on`` is set)."""
    return ScheduleRecord(date=on, day_of_week=day, start_time=start, end_time=end, status=status)


def make_photographer(
    pid: Any,
    name: str,
    distance: Optional[float] = None,
    has_availability: Optional[bool] = None,
    is_available_at_time: Optional[bool] = None,
    city: str = "",
    state: str = "",
) -> EnrichedPhotographer:
    """Helper to create an EnrichedPhotographer with sensible defaults."""
    profile = Address(city=city, state=state) if city or state else None
    return EnrichedPhotographer(
        id=pid,
        name=name,
        profile_address=profile,
        distance=distance,
        has_availability=has_availability,
        is_available_at_time=is_available_at_time,
    )
