"""
Interval algebra over same-day time ranges.

All ranges are half-open ``[start, end)``: touching endpoints do not
overlap, and a booking that starts exactly when availability ends
leaves that availability intact.
"""

from collections.abc import Iterable, Sequence
from typing import Optional

from assignment_engine.schemas.schedule_schema import TimeRange
from assignment_engine.utils import normalize_time, time_to_minutes

DEFAULT_DAY_START_HOUR = 8
DEFAULT_DAY_END_HOUR = 20


def ranges_overlap(a: TimeRange, b: TimeRange) -> bool:
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Union of ranges, sorted by start; touching ranges coalesce."""
    spans = sorted((r.start_minutes, r.end_minutes) for r in ranges)
    merged: list[list[int]] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [TimeRange.from_minutes(start, end) for start, end in merged]


def subtract_ranges(
    available: Iterable[TimeRange], booked: Iterable[TimeRange]
) -> list[TimeRange]:
    """Remove every booked range from the available ranges.

    A booked range can leave zero, one, or two pieces of an available
    range behind.

    Example:
        available 09:00-12:00, booked 10:00-10:30
        -> [09:00-10:00, 10:30-12:00]
    """
    blocks = merge_ranges(booked)
    result: list[TimeRange] = []
    for window in merge_ranges(available):
        cursor = window.start_minutes
        end = window.end_minutes
        for block in blocks:
            if block.end_minutes <= cursor:
                continue
            if block.start_minutes >= end:
                break
            if block.start_minutes > cursor:
                result.append(TimeRange.from_minutes(cursor, block.start_minutes))
            cursor = max(cursor, block.end_minutes)
            if cursor >= end:
                break
        if cursor < end:
            result.append(TimeRange.from_minutes(cursor, end))
    return result


def is_time_within(ranges: Iterable[TimeRange], value: Optional[str]) -> bool:
    """True if the point in time falls inside any range (start inclusive)."""
    normalized = normalize_time(value)
    if not normalized:
        return False
    minute = time_to_minutes(normalized)
    return any(r.start_minutes <= minute < r.end_minutes for r in ranges)


def build_availability_segments(
    slots: Sequence[TimeRange],
    day_start_hour: int = DEFAULT_DAY_START_HOUR,
    day_end_hour: int = DEFAULT_DAY_END_HOUR,
) -> list[bool]:
    """One flag per hour bucket, set if any slot overlaps that hour.

    Visualization only; availability decisions use the ranges themselves.
    """
    segments: list[bool] = []
    for hour in range(day_start_hour, day_end_hour):
        bucket_start, bucket_end = hour * 60, (hour + 1) * 60
        segments.append(
            any(s.start_minutes < bucket_end and s.end_minutes > bucket_start for s in slots)
        )
    return segments


def format_availability_summary(slots: Sequence[TimeRange], limit: int = 3) -> str:
    """Comma-joined 12-hour labels for the first few ranges."""
    return ", ".join(slot.display() for slot in slots[:limit])
