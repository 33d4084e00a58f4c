"""
Fetch orchestrator: cancellable, progressively-committing resolution cycles.

Every change to the booking target (date, time, address key) or the
roster starts a new cycle with a higher generation number and cancels
the previous one. Each commit site checks the cycle's generation
against the orchestrator's, so a superseded cycle can never overwrite
newer state.

Usage:
    orchestrator = FetchOrchestrator(AvailabilityApiClient(), NominatimGeocoder())
    snapshot = await orchestrator.resolve(target, roster)
    ranked = orchestrator.ranked(sort_by=SortBy.AVAILABILITY)
"""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Optional, Union

from assignment_engine.config import ResolutionConfig, settings
from assignment_engine.logging_context import get_cycle_logger, set_cycle_id
from assignment_engine.orchestration.state_machine import (
    ResolutionState,
    ResolutionStateMachine,
    ResolutionTrigger,
)
from assignment_engine.schemas.booking_schema import Address, BookingAvailabilityRequest, BookingTarget
from assignment_engine.schemas.photographer_schema import (
    AvailabilityEntry,
    ComprehensiveRecord,
    EnrichedPhotographer,
    Photographer,
)
from assignment_engine.scheduling.availability import (
    AvailabilityMap,
    MergedAvailability,
    merge_availability,
)
from assignment_engine.scheduling.distance import DistanceResolver
from assignment_engine.scheduling.intervals import is_time_within
from assignment_engine.scheduling.ranking import SortBy, rank_photographers
from assignment_engine.tools.availability_api import AvailabilitySource
from assignment_engine.tools.geocoding import Geocoder
from assignment_engine.utils import normalize_address_key

logger = get_cycle_logger(__name__)


class ResolutionStatus(str, Enum):
    """Loading flag exposed to the presentation layer."""
    LOADING_AVAILABILITY = "loading-availability"
    LOADING_DISTANCE = "loading-distance"
    SETTLED = "settled"


class NoticeKind(str, Enum):
    PARTIAL_ENRICHMENT = "partial_enrichment"
    PRIMARY_LOOKUP_FAILURE = "primary_lookup_failure"
    FALLBACK_FAILURE = "fallback_failure"


@dataclass(frozen=True)
class EnrichmentNotice:
    """Non-fatal problem surfaced alongside the photographer list."""
    kind: NoticeKind
    message: str
    photographer_id: Optional[str] = None


@dataclass(frozen=True)
class ResolutionSnapshot:
    """Everything the presentation layer needs after a commit."""
    generation: int
    target: Optional[BookingTarget]
    photographers: list[EnrichedPhotographer]
    availability: AvailabilityMap
    status: ResolutionStatus
    state: ResolutionState
    notices: list[EnrichmentNotice] = field(default_factory=list)
    loading_availability: bool = False
    loading_distance: bool = False


class ResolutionCycle:
    """One run of the orchestrator, identified by its generation."""

    def __init__(
        self,
        orchestrator: "FetchOrchestrator",
        generation: int,
        target: BookingTarget,
        roster: list[Photographer],
    ) -> None:
        self._orchestrator = orchestrator
        self.generation = generation
        self.target = target
        self.roster = roster
        self.machine = ResolutionStateMachine()

    @property
    def is_current(self) -> bool:
        return self._orchestrator.generation == self.generation

    def commit(self, mutate: Callable[[], None], what: str) -> bool:
        """Apply a state mutation only if this cycle is still the active one."""
        if not self.is_current:
            logger.debug("Discarding stale %s from cycle %d", what, self.generation)
            return False
        mutate()
        return True

    def advance(self, trigger: ResolutionTrigger) -> None:
        if self.is_current and not self.machine.is_terminal():
            self.machine.transition(trigger)

    def supersede(self) -> None:
        if not self.machine.is_terminal():
            self.machine.transition(ResolutionTrigger.SUPERSEDED)


class FetchOrchestrator:
    """
    Owns the enriched photographer list and the availability map.

    Only the cycle whose generation matches ``self.generation`` may write
    to them. All collaborator failures are absorbed here and reported as
    EnrichmentNotice values; the roster is always shown.
    """

    def __init__(
        self,
        source: AvailabilitySource,
        geocoder: Geocoder,
        config: ResolutionConfig = settings.resolution,
    ) -> None:
        self._source = source
        self._geocoder = geocoder
        self._config = config
        self._generation = 0
        self._identity: Optional[tuple] = None
        self._cycle: Optional[ResolutionCycle] = None
        self._task: Optional[asyncio.Task] = None

        self._photographers: dict[str, EnrichedPhotographer] = {}
        self._availability = AvailabilityMap()
        self._notices: list[EnrichmentNotice] = []
        self._loading_availability = False
        self._loading_distance = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_cycle(self) -> Optional[ResolutionCycle]:
        return self._cycle

    @property
    def status(self) -> ResolutionStatus:
        if self._loading_availability:
            return ResolutionStatus.LOADING_AVAILABILITY
        if self._loading_distance:
            return ResolutionStatus.LOADING_DISTANCE
        return ResolutionStatus.SETTLED

    # ------------------------------------------------------------------
    # Cycle lifecycle
    # ------------------------------------------------------------------

    def update(
        self,
        target: BookingTarget,
        roster: Iterable[Union[Photographer, dict[str, Any]]],
    ) -> asyncio.Task:
        """Start a new cycle if the target identity or roster changed.

        Must be called from a running event loop. Returns the task of the
        active cycle.
        """
        photographers = [
            p if isinstance(p, Photographer) else Photographer.model_validate(p) for p in roster
        ]
        identity = (
            target.identity,
            tuple(
                (p.id, p.name, p.avatar, normalize_address_key(p.profile_address))
                for p in photographers
            ),
        )
        if identity == self._identity and self._task is not None:
            return self._task

        self._supersede()
        self._identity = identity
        self._generation += 1
        cycle = ResolutionCycle(self, self._generation, target, photographers)
        self._cycle = cycle
        self._task = asyncio.create_task(
            self._run_cycle(cycle), name=f"resolution-cycle-{cycle.generation}"
        )
        self._task.add_done_callback(self._log_task_result)
        return self._task

    async def resolve(
        self,
        target: BookingTarget,
        roster: Iterable[Union[Photographer, dict[str, Any]]],
    ) -> ResolutionSnapshot:
        """Start (or join) a cycle and wait until it settles or is superseded."""
        task = self.update(target, roster)
        if not task.done():
            await asyncio.wait({task})
        return self.snapshot()

    def cancel(self) -> None:
        """Abandon the active cycle, e.g. when the consuming view goes away."""
        self._supersede()
        self._identity = None
        self._generation += 1
        self._loading_availability = False
        self._loading_distance = False

    async def aclose(self) -> None:
        task = self._task
        self.cancel()
        if task is not None and not task.done():
            await asyncio.wait({task})

    def _supersede(self) -> None:
        if self._cycle is not None:
            self._cycle.supersede()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @staticmethod
    def _log_task_result(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Resolution task %s crashed: %r", task.get_name(), exc)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def snapshot(self) -> ResolutionSnapshot:
        cycle = self._cycle
        return ResolutionSnapshot(
            generation=self._generation,
            target=cycle.target if cycle else None,
            photographers=list(self._photographers.values()),
            availability=self._availability.copy(),
            status=self.status,
            state=cycle.machine.current_state if cycle else ResolutionState.IDLE,
            notices=list(self._notices),
            loading_availability=self._loading_availability,
            loading_distance=self._loading_distance,
        )

    def ranked(
        self,
        query: str = "",
        sort_by: SortBy = SortBy.DISTANCE,
        show_all: bool = False,
    ) -> list[EnrichedPhotographer]:
        time_selected = bool(self._cycle and self._cycle.target.time)
        return rank_photographers(
            self._photographers.values(),
            query=query,
            sort_by=sort_by,
            show_all=show_all,
            time_selected=time_selected,
        )

    # ------------------------------------------------------------------
    # Cycle body
    # ------------------------------------------------------------------

    async def _run_cycle(self, cycle: ResolutionCycle) -> None:
        set_cycle_id(f"cycle-{cycle.generation}")
        target = cycle.target

        if target.date is None or not cycle.roster:
            logger.info("No date or roster; showing roster unenriched")
            cycle.commit(partial(self._reset_to_roster, cycle.roster, loading=False), "roster")
            cycle.advance(ResolutionTrigger.NOTHING_TO_RESOLVE)
            return

        logger.info(
            "Resolution cycle %d started for %s %s at '%s'",
            cycle.generation, target.date_str, target.time or "(any time)", target.location.label(),
        )
        cycle.advance(ResolutionTrigger.CYCLE_STARTED)
        cycle.commit(partial(self._begin_loading, bool(target.address_key)), "loading flags")

        request = BookingAvailabilityRequest.from_target(target, [p.id for p in cycle.roster])
        try:
            try:
                records = await asyncio.wait_for(
                    self._source.fetch_for_booking(request), self._config.lookup_timeout_sec
                )
            except Exception as exc:
                # Any failure of the primary lookup, including a malformed body
                logger.warning("Primary availability lookup failed, falling back: %r", exc)
                cycle.advance(ResolutionTrigger.PRIMARY_FAILED)
                await self._run_fallback(cycle, exc)
                cycle.advance(ResolutionTrigger.FALLBACK_COMPLETE)
            else:
                cycle.advance(ResolutionTrigger.PRIMARY_SUCCEEDED)
                await self._run_enrichment(cycle, records)
                cycle.advance(ResolutionTrigger.ENRICHMENT_COMPLETE)
        finally:
            cycle.commit(self._clear_loading, "loading flags")

        if cycle.is_current:
            logger.info("Resolution cycle %d settled", cycle.generation)

    async def _run_enrichment(
        self, cycle: ResolutionCycle, records: list[ComprehensiveRecord]
    ) -> None:
        by_id = {record.id: record for record in records}
        cycle.commit(partial(self._commit_primary, cycle.roster, by_id), "primary results")
        origins = [
            (p.id, self._photographers[p.id].distance_origin)
            for p in cycle.roster
            if p.id in self._photographers
        ]
        await asyncio.gather(
            self._refresh_availability(cycle, by_id, fallback=False),
            self._resolve_distances(cycle, origins),
        )

    async def _run_fallback(self, cycle: ResolutionCycle, error: Exception) -> None:
        cycle.commit(partial(self._reset_to_roster, cycle.roster, loading=True), "fallback roster")
        origins = [(p.id, p.profile_address) for p in cycle.roster]
        await asyncio.gather(
            self._refresh_availability(cycle, {}, fallback=True, primary_error=error),
            self._resolve_distances(cycle, origins),
        )

    async def _refresh_availability(
        self,
        cycle: ResolutionCycle,
        server_records: dict[str, ComprehensiveRecord],
        fallback: bool,
        primary_error: Optional[Exception] = None,
    ) -> None:
        target = cycle.target
        ids = [p.id for p in cycle.roster]
        try:
            schedules = await asyncio.wait_for(
                self._source.fetch_bulk(ids, target.date_str, target.date_str),
                self._config.lookup_timeout_sec,
            )
        except Exception as exc:
            logger.warning("Bulk schedule lookup failed: %r", exc)
            if fallback:
                notices = [
                    EnrichmentNotice(
                        NoticeKind.PRIMARY_LOOKUP_FAILURE,
                        f"Availability service unavailable: {primary_error}",
                    ),
                    EnrichmentNotice(
                        NoticeKind.FALLBACK_FAILURE,
                        "Photographer availability could not be loaded; showing all photographers.",
                    ),
                ]
            else:
                notices = [
                    EnrichmentNotice(
                        NoticeKind.PARTIAL_ENRICHMENT,
                        "Schedule details unavailable; using server availability.",
                    )
                ]
            cycle.commit(partial(self._finish_availability, notices), "availability failure")
            return

        cycle.commit(
            partial(self._commit_availability, cycle, schedules, server_records), "availability"
        )

    async def _resolve_distances(
        self, cycle: ResolutionCycle, origins: list[tuple[str, Optional[Address]]]
    ) -> None:
        target = cycle.target
        if not target.address_key:
            logger.info("No booking address; skipping distance resolution")
            cycle.commit(self._finish_distances, "distance skip")
            return

        resolver = DistanceResolver(
            self._geocoder,
            target.location,
            timeout=self._config.geocode_timeout_sec,
            decimals=self._config.distance_decimals,
        )
        origin_keys = {pid: normalize_address_key(origin) for pid, origin in origins}
        async for photographer_id, distance in resolver.resolve_each(origins):
            cycle.commit(partial(self._set_distance, photographer_id, distance), "distance")
            if distance is None and resolver.failed_keys:
                failed = resolver.failed_keys
                if origin_keys[photographer_id] in failed or resolver.booking_key in failed:
                    cycle.commit(
                        partial(
                            self._add_notice,
                            EnrichmentNotice(
                                NoticeKind.PARTIAL_ENRICHMENT,
                                "Distance could not be calculated.",
                                photographer_id=photographer_id,
                            ),
                        ),
                        "distance notice",
                    )
        cycle.commit(self._finish_distances, "distance completion")

    # ------------------------------------------------------------------
    # Commit helpers (synchronous, run only for the active cycle)
    # ------------------------------------------------------------------

    def _begin_loading(self, with_distance: bool) -> None:
        self._notices = []
        self._loading_availability = True
        self._loading_distance = with_distance

    def _reset_to_roster(self, roster: list[Photographer], loading: bool) -> None:
        self._photographers = {p.id: EnrichedPhotographer.from_roster(p) for p in roster}
        self._availability = AvailabilityMap()
        if not loading:
            self._notices = []
            self._loading_availability = False
            self._loading_distance = False

    def _commit_primary(
        self, roster: list[Photographer], by_id: dict[str, ComprehensiveRecord]
    ) -> None:
        photographers: dict[str, EnrichedPhotographer] = {}
        availability = AvailabilityMap()
        limit = self._config.next_available_limit
        for p in roster:
            record = by_id.get(p.id)
            if record is None:
                photographers[p.id] = EnrichedPhotographer.from_roster(p)
                continue
            has_availability = (
                record.has_availability
                if record.has_availability is not None
                else bool(record.net_available_slots)
            )
            photographers[p.id] = EnrichedPhotographer(
                id=p.id,
                name=record.name or p.name,
                avatar=p.avatar or record.avatar,
                profile_address=p.profile_address,
                distance=None,
                distance_from=record.distance_from,
                previous_shoot_id=record.previous_shoot_id,
                origin_address=record.origin_address,
                availability_slots=record.availability_slots,
                booked_slots=record.booked_slots,
                net_available_slots=record.net_available_slots,
                is_available_at_time=record.is_available_at_time,
                has_availability=has_availability,
                shoots_count_today=record.shoots_count_today,
            )
            availability[p.id] = AvailabilityEntry(
                is_available=has_availability,
                next_available_times=MergedAvailability(
                    net=record.net_available_slots
                ).next_available_times(limit),
            )
        self._photographers = photographers
        self._availability = availability

    def _commit_availability(
        self,
        cycle: ResolutionCycle,
        schedules: dict[str, list],
        server_records: dict[str, ComprehensiveRecord],
    ) -> None:
        target = cycle.target
        limit = self._config.next_available_limit
        for p in cycle.roster:
            current = self._photographers.get(p.id)
            if current is None:
                continue
            rows = schedules.get(p.id, [])
            record = server_records.get(p.id)
            pre_netted = record.net_available_slots if record is not None and not rows else None
            merged = merge_availability(
                rows,
                target.date,
                target.day_of_week,
                booked_slots=current.booked_slots,
                pre_netted=pre_netted,
            )
            self._photographers[p.id] = current.model_copy(update={
                "availability_slots": merged.available if rows else current.availability_slots,
                "net_available_slots": merged.net,
                "has_availability": merged.is_available,
                "is_available_at_time": (
                    is_time_within(merged.net, target.time) if target.time else None
                ),
            })
            self._availability[p.id] = merged.to_entry(limit)
        self._loading_availability = False

    def _finish_availability(self, notices: list[EnrichmentNotice]) -> None:
        self._notices.extend(notices)
        self._loading_availability = False

    def _set_distance(self, photographer_id: str, distance: Optional[float]) -> None:
        current = self._photographers.get(photographer_id)
        if current is not None:
            self._photographers[photographer_id] = current.model_copy(
                update={"distance": distance}
            )

    def _add_notice(self, notice: EnrichmentNotice) -> None:
        self._notices.append(notice)

    def _finish_distances(self) -> None:
        self._loading_distance = False

    def _clear_loading(self) -> None:
        self._loading_availability = False
        self._loading_distance = False
