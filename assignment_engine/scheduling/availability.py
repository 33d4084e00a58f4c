"""
Availability merger: raw schedule rows -> net open ranges for one date.

Date-specific rows replace recurring weekly rows outright for their
date; the two are never combined. Booked ranges (supplied separately
or as ``status == "booked"`` rows) are then subtracted.

Usage:
    merged = merge_availability(records, date(2025, 3, 10), booked_slots=booked)
    entry = merged.to_entry()
"""

import logging
from collections.abc import Iterable, Iterator, MutableMapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from assignment_engine.config import settings
from assignment_engine.schemas.photographer_schema import AvailabilityEntry
from assignment_engine.schemas.schedule_schema import ScheduleRecord, TimeRange, parse_ranges
from assignment_engine.scheduling.intervals import merge_ranges, subtract_ranges
from assignment_engine.utils import (
    day_of_week_for,
    normalize_date,
    normalize_day_of_week,
    normalize_id,
    to_12_hour,
)

logger = logging.getLogger(__name__)

SOURCE_SPECIFIC = "specific"
SOURCE_WEEKLY = "weekly"
SOURCE_NONE = "none"


@dataclass
class MergedAvailability:
    """Result of merging one photographer's schedule for one date."""

    available: list[TimeRange] = field(default_factory=list)
    booked: list[TimeRange] = field(default_factory=list)
    net: list[TimeRange] = field(default_factory=list)
    source: str = SOURCE_NONE
    pre_netted: bool = False

    @property
    def is_available(self) -> bool:
        return len(self.net) > 0

    def next_available_times(self, limit: Optional[int] = None) -> list[str]:
        limit = settings.resolution.next_available_limit if limit is None else limit
        return [to_12_hour(r.start_time) for r in self.net[:limit]]

    def to_entry(self, limit: Optional[int] = None) -> AvailabilityEntry:
        return AvailabilityEntry(
            is_available=self.is_available,
            next_available_times=self.next_available_times(limit),
        )


def select_relevant_records(
    records: Iterable[ScheduleRecord], target_date: date, day_of_week: Optional[str] = None
) -> tuple[list[ScheduleRecord], str]:
    """Pick the rows that govern ``target_date`` and say where they came from."""
    target = target_date.isoformat()
    weekday = normalize_day_of_week(day_of_week) if day_of_week else day_of_week_for(target_date)
    rows = list(records)

    specific = [r for r in rows if r.date and normalize_date(r.date) == target]
    if specific:
        return specific, SOURCE_SPECIFIC

    weekly = [
        r for r in rows
        if not r.date and normalize_day_of_week(r.day_of_week) == weekday
    ]
    return weekly, (SOURCE_WEEKLY if weekly else SOURCE_NONE)


def _to_ranges(records: Sequence[ScheduleRecord]) -> list[TimeRange]:
    return parse_ranges(
        [{"start_time": r.start_time, "end_time": r.end_time} for r in records]
    )


def merge_availability(
    records: Iterable[ScheduleRecord],
    target_date: date,
    day_of_week: Optional[str] = None,
    booked_slots: Optional[Iterable[TimeRange]] = None,
    pre_netted: Optional[Sequence[TimeRange]] = None,
) -> MergedAvailability:
    """
    Produce the net open ranges for one photographer on one date.

    Args:
        records: Raw schedule rows for the photographer (any dates).
        target_date: The query date.
        day_of_week: Canonical weekday of ``target_date``; derived if omitted.
        booked_slots: Booked ranges supplied separately from the rows.
        pre_netted: Upstream net ranges; when given, local subtraction is skipped.

    Returns:
        MergedAvailability with available, booked and net ranges.
    """
    relevant, source = select_relevant_records(records, target_date, day_of_week)
    available = merge_ranges(_to_ranges([r for r in relevant if r.is_available]))
    booked = list(booked_slots or []) + _to_ranges([r for r in relevant if r.is_booked])

    if pre_netted is not None:
        net = merge_ranges(pre_netted)
        logger.debug("Using pre-netted availability (%d ranges)", len(net))
        return MergedAvailability(
            available=available, booked=merge_ranges(booked), net=net,
            source=source, pre_netted=True,
        )

    net = subtract_ranges(available, booked)
    return MergedAvailability(
        available=available, booked=merge_ranges(booked), net=net, source=source,
    )


class AvailabilityMap(MutableMapping):
    """Photographer id -> AvailabilityEntry, tolerant of id spelling.

    Keys are canonicalized on every access, so ``7``, ``"7"`` and
    ``"007"`` all address the same entry.
    """

    def __init__(self, entries: Optional[dict[Any, AvailabilityEntry]] = None) -> None:
        self._entries: dict[str, AvailabilityEntry] = {}
        for key, value in (entries or {}).items():
            self[key] = value

    @staticmethod
    def _key(key: Any) -> str:
        try:
            return normalize_id(key)
        except ValueError:
            raise KeyError(key) from None

    def __getitem__(self, key: Any) -> AvailabilityEntry:
        return self._entries[self._key(key)]

    def __setitem__(self, key: Any, value: AvailabilityEntry) -> None:
        self._entries[self._key(key)] = value

    def __delitem__(self, key: Any) -> None:
        del self._entries[self._key(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AvailabilityMap({self._entries!r})"

    def copy(self) -> "AvailabilityMap":
        return AvailabilityMap(dict(self._entries))
