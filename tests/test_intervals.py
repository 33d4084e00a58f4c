"""Tests for the time-range algebra."""

from assignment_engine.scheduling.intervals import (
    build_availability_segments,
    format_availability_summary,
    is_time_within,
    merge_ranges,
    ranges_overlap,
    subtract_ranges,
)
from assignment_engine.schemas.schedule_schema import BookedSlot, TimeRange, parse_ranges

from tests.conftest import make_range


def spans(ranges):
    return [(r.start_time, r.end_time) for r in ranges]


class TestTimeRange:
    def test_normalizes_times(self):
        r = TimeRange(start_time="1:00 PM", end_time="16:00:00")
        assert (r.start_time, r.end_time) == ("13:00", "16:00")

    def test_display(self):
        assert make_range("09:00", "10:00").display() == "9:00 AM–10:00 AM"

    def test_parse_ranges_skips_malformed(self):
        parsed = parse_ranges([
            {"start_time": "09:00", "end_time": "10:00"},
            {"start_time": "11:00", "end_time": "10:00"},
            {"start_time": "later", "end_time": "12:00"},
        ])
        assert spans(parsed) == [("09:00", "10:00")]

    def test_parse_booked_keeps_shoot_id(self):
        parsed = parse_ranges([{"start_time": "14:00", "end_time": "14:30", "shoot_id": 81}], BookedSlot)
        assert parsed[0].shoot_id == "81"


class TestOverlap:
    def test_touching_does_not_overlap(self):
        assert not ranges_overlap(make_range("09:00", "10:00"), make_range("10:00", "11:00"))

    def test_partial_overlap(self):
        assert ranges_overlap(make_range("09:00", "10:30"), make_range("10:00", "11:00"))


class TestMerge:
    def test_sorts_and_coalesces(self):
        merged = merge_ranges([
            make_range("13:00", "14:00"),
            make_range("09:00", "10:00"),
            make_range("09:30", "11:00"),
            make_range("14:00", "15:00"),
        ])
        assert spans(merged) == [("09:00", "11:00"), ("13:00", "15:00")]

    def test_empty(self):
        assert merge_ranges([]) == []


class TestSubtract:
    def test_booking_splits_window(self):
        net = subtract_ranges([make_range("09:00", "12:00")], [make_range("10:00", "10:30")])
        assert spans(net) == [("09:00", "10:00"), ("10:30", "12:00")]

    def test_booking_covering_window_removes_it(self):
        net = subtract_ranges([make_range("09:00", "10:00")], [make_range("08:00", "11:00")])
        assert net == []

    def test_booking_at_edge_trims(self):
        net = subtract_ranges([make_range("13:00", "16:00")], [make_range("15:00", "17:00")])
        assert spans(net) == [("13:00", "15:00")]

    def test_adjacent_booking_leaves_window_intact(self):
        net = subtract_ranges([make_range("09:00", "10:00")], [make_range("10:00", "11:00")])
        assert spans(net) == [("09:00", "10:00")]

    def test_multiple_bookings_across_windows(self):
        net = subtract_ranges(
            [make_range("09:00", "12:00"), make_range("13:00", "17:00")],
            [make_range("11:00", "14:00"), make_range("15:00", "15:30")],
        )
        assert spans(net) == [("09:00", "11:00"), ("14:00", "15:00"), ("15:30", "17:00")]

    def test_no_bookings(self):
        net = subtract_ranges([make_range("09:00", "12:00")], [])
        assert spans(net) == [("09:00", "12:00")]


class TestIsTimeWithin:
    def test_start_inclusive_end_exclusive(self):
        ranges = [make_range("13:00", "14:00")]
        assert is_time_within(ranges, "13:00")
        assert not is_time_within(ranges, "14:00")

    def test_accepts_12_hour_input(self):
        assert is_time_within([make_range("13:00", "14:00")], "1:30 PM")

    def test_invalid_time_is_false(self):
        assert not is_time_within([make_range("00:00", "23:59")], "noonish")


class TestSegments:
    def test_default_window_has_twelve_buckets(self):
        assert len(build_availability_segments([])) == 12

    def test_partial_hour_fills_bucket(self):
        segments = build_availability_segments([make_range("09:30", "10:15")])
        # buckets start at 08:00
        assert segments[:4] == [False, True, True, False]

    def test_range_ending_on_hour_does_not_fill_next(self):
        segments = build_availability_segments([make_range("08:00", "09:00")], 8, 10)
        assert segments == [True, False]


class TestSummary:
    def test_first_three_ranges(self):
        slots = [
            make_range("09:00", "10:00"),
            make_range("11:00", "12:00"),
            make_range("13:00", "14:00"),
            make_range("15:00", "16:00"),
        ]
        assert format_availability_summary(slots) == (
            "9:00 AM–10:00 AM, 11:00 AM–12:00 PM, 1:00 PM–2:00 PM"
        )

    def test_empty(self):
        assert format_availability_summary([]) == ""
