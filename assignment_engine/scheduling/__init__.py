from assignment_engine.scheduling.availability import (
    AvailabilityMap,
    MergedAvailability,
    merge_availability,
)
from assignment_engine.scheduling.distance import DistanceResolver
from assignment_engine.scheduling.intervals import (
    build_availability_segments,
    is_time_within,
    merge_ranges,
    ranges_overlap,
    subtract_ranges,
)
from assignment_engine.scheduling.ranking import SortBy, rank_photographers

__all__ = [
    "AvailabilityMap",
    "MergedAvailability",
    "merge_availability",
    "DistanceResolver",
    "build_availability_segments",
    "is_time_within",
    "merge_ranges",
    "ranges_overlap",
    "subtract_ranges",
    "SortBy",
    "rank_photographers",
]
