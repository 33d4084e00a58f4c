"""Free-text filtering and multi-policy sorting of enriched photographers."""

import logging
from collections.abc import Iterable
from enum import Enum
from typing import Optional

from assignment_engine.schemas.photographer_schema import EnrichedPhotographer

logger = logging.getLogger(__name__)


class SortBy(str, Enum):
    """User-selectable ordering policies."""
    DISTANCE = "distance"
    AVAILABILITY = "availability"
    NAME = "name"


def availability_of(photographer: EnrichedPhotographer, time_selected: bool) -> Optional[bool]:
    """Point-in-time availability when a time is chosen, else availability on the date."""
    if time_selected and photographer.is_available_at_time is not None:
        return photographer.is_available_at_time
    return photographer.has_availability


def _availability_rank(value: Optional[bool]) -> int:
    if value is True:
        return 0
    if value is False:
        return 1
    return 2


def _name_key(photographer: EnrichedPhotographer) -> tuple[str, str, str]:
    return (photographer.name.casefold(), photographer.name, photographer.id)


def _distance_key(photographer: EnrichedPhotographer) -> tuple[bool, float]:
    if photographer.distance is None:
        return (True, 0.0)
    return (False, photographer.distance)


def matches_query(photographer: EnrichedPhotographer, query: str) -> bool:
    needle = query.strip().casefold()
    if not needle:
        return True
    return any(
        needle in field.casefold()
        for field in (photographer.name, photographer.city, photographer.state)
        if field
    )


def sort_key(photographer: EnrichedPhotographer, sort_by: SortBy, time_selected: bool) -> tuple:
    """Total ordering key; name (then id) is always the final tie-break."""
    if sort_by == SortBy.NAME:
        return _name_key(photographer)
    availability = _availability_rank(availability_of(photographer, time_selected))
    if sort_by == SortBy.AVAILABILITY:
        return (availability, _distance_key(photographer), _name_key(photographer))
    if time_selected:
        return (availability, _distance_key(photographer), _name_key(photographer))
    return (_distance_key(photographer), _name_key(photographer))


def rank_photographers(
    photographers: Iterable[EnrichedPhotographer],
    query: str = "",
    sort_by: SortBy = SortBy.DISTANCE,
    show_all: bool = False,
    time_selected: bool = False,
) -> list[EnrichedPhotographer]:
    """
    Filter and order photographers for display.

    Args:
        photographers: Enriched photographer list from the orchestrator.
        query: Case-insensitive substring matched against name, city, state.
        sort_by: Ordering policy.
        show_all: When False, only available photographers are kept,
            unless no availability data exists at all.
        time_selected: Whether the booking has a time; switches availability
            to the point-in-time flag.

    Returns:
        A new, ordered list.
    """
    sort_by = SortBy(sort_by)
    candidates = [p for p in photographers if matches_query(p, query)]

    if not show_all:
        flags = [availability_of(p, time_selected) for p in candidates]
        if any(flag is not None for flag in flags):
            candidates = [p for p, flag in zip(candidates, flags) if flag is True]

    return sorted(candidates, key=lambda p: sort_key(p, sort_by, time_selected))
