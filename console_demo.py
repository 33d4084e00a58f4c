"""
Offline console demo: resolves photographer availability without any network.

Runs the real orchestrator, merger, distance resolver and ranking engine
against in-memory availability and geocoding data. Designed for live
demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario fallback
    python console_demo.py --scenario superseded
"""

import argparse
import asyncio
import sys
from datetime import date
from typing import Any, Optional

from assignment_engine.config import settings
from assignment_engine.orchestration.orchestrator import FetchOrchestrator, ResolutionSnapshot
from assignment_engine.schemas.booking_schema import BookingTarget
from assignment_engine.schemas.photographer_schema import EnrichedPhotographer
from assignment_engine.scheduling.intervals import (
    build_availability_segments,
    format_availability_summary,
)
from assignment_engine.scheduling.ranking import SortBy, availability_of
from assignment_engine.tools.in_memory import InMemoryAvailabilitySource, InMemoryGeocoder

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

SHOOT_ADDRESS = {"address": "100 Market St", "city": "Springfield", "state": "IL", "zip": "62701"}

DEMO_ROSTER: list[dict[str, Any]] = [
    {"id": 1, "name": "Avery Lane", "profile_address": SHOOT_ADDRESS},
    {"id": 2, "name": "Blake Moreno",
     "profile_address": {"address": "12 Elm St", "city": "Chatham", "state": "IL", "zip": "62629"}},
    {"id": 3, "name": "Casey Park",
     "profile_address": {"address": "9 Lake Rd", "city": "Decatur", "state": "IL", "zip": "62521"}},
    {"id": 4, "name": "Devon Ruiz", "profile_address": {"city": "Peoria", "state": "IL"}},
]

DEMO_COORDINATES: dict[str, tuple[float, float]] = {
    "100 Market St Springfield IL 62701": (39.8017, -89.6437),
    "12 Elm St Chatham IL 62629": (39.6761, -89.7045),
    "9 Lake Rd Decatur IL 62521": (39.8403, -88.9548),
}

DEMO_COMPREHENSIVE: list[dict[str, Any]] = [
    {"id": 1, "name": "Avery Lane", "distance_from": "home",
     "home_address": SHOOT_ADDRESS,
     "availability_slots": [{"start_time": "09:00", "end_time": "17:00"}],
     "booked_slots": [{"start_time": "14:00", "end_time": "15:00", "shoot_id": 77}],
     "net_available_slots": [{"start_time": "09:00", "end_time": "14:00"},
                             {"start_time": "15:00", "end_time": "17:00"}],
     "is_available_at_time": False, "has_availability": True, "shoots_count_today": 1},
    {"id": 2, "name": "Blake Moreno", "distance_from": "home",
     "home_address": {"address": "12 Elm St", "city": "Chatham", "state": "IL", "zip": "62629"},
     "booked_slots": [{"start_time": "2:00 PM", "end_time": "2:30 PM", "shoot_id": 81}],
     "shoots_count_today": 1},
    {"id": 3, "name": "Casey Park", "distance_from": "home",
     "home_address": {"address": "9 Lake Rd", "city": "Decatur", "state": "IL", "zip": "62521"},
     "shoots_count_today": 0},
]

DEMO_SCHEDULES: dict[Any, list[dict[str, Any]]] = {
    1: [{"date": "2025-03-10", "start_time": "09:00", "end_time": "17:00", "status": "available"}],
    2: [{"day_of_week": "monday", "start_time": "13:00", "end_time": "16:00"}],
    3: [{"day_of_week": "mon", "start_time": "8:00 AM", "end_time": "12:00 PM"},
        {"date": "2025-03-10", "start_time": "10:00", "end_time": "11:00", "status": "booked"}],
}


class ConsoleSession:
    """Drives one orchestrator against in-memory collaborators in the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, dict[str, Any]] = {
        "booking": {
            "target": {**SHOOT_ADDRESS, "date": "2025-03-10", "time": "02:00 PM"},
            "sort_by": SortBy.DISTANCE,
        },
        "any-time": {
            "target": {**SHOOT_ADDRESS, "date": "2025-03-10"},
            "sort_by": SortBy.AVAILABILITY,
        },
        "fallback": {
            "target": {**SHOOT_ADDRESS, "date": "2025-03-10", "time": "1:30 PM"},
            "sort_by": SortBy.DISTANCE,
            "fail_primary": True,
        },
        "outage": {
            "target": {**SHOOT_ADDRESS, "date": "2025-03-10", "time": "1:30 PM"},
            "sort_by": SortBy.NAME,
            "fail_primary": True,
            "fail_bulk": True,
        },
        "no-date": {
            "target": dict(SHOOT_ADDRESS),
            "sort_by": SortBy.NAME,
        },
        "superseded": {
            "target": {**SHOOT_ADDRESS, "date": "2025-03-10", "time": "02:00 PM"},
            "first_date": "2025-03-11",
            "sort_by": SortBy.DISTANCE,
        },
    }

    def __init__(self, fail_primary: bool = False, fail_bulk: bool = False) -> None:
        self.source = InMemoryAvailabilitySource(
            comprehensive=DEMO_COMPREHENSIVE,
            schedules=DEMO_SCHEDULES,
            fail_primary=fail_primary,
            fail_bulk=fail_bulk,
        )
        self.geocoder = InMemoryGeocoder(DEMO_COORDINATES)
        self.orchestrator = FetchOrchestrator(self.source, self.geocoder, settings.resolution)

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  PHOTOGRAPHER ASSIGNMENT - {title}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        setup = self.SCENARIOS.get(scenario)
        if not setup:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self.source.fail_primary = setup.get("fail_primary", False)
        self.source.fail_bulk = setup.get("fail_bulk", False)
        self._banner(f"Scenario: {scenario}")
        target = BookingTarget.model_validate(setup["target"])
        snapshot = asyncio.run(self._resolve(target, setup.get("first_date")))
        self._render(snapshot, setup["sort_by"])

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        cycle = self.orchestrator.current_cycle
        if cycle is not None:
            print(f"{DIM}  State trace: {' -> '.join(cycle.machine.get_state_trace())}{RESET}")
        print(f"{DIM}  Geocoder calls: {len(self.geocoder.calls)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def _resolve(
        self, target: BookingTarget, first_date: Optional[str] = None
    ) -> ResolutionSnapshot:
        if first_date:
            # Hold the first cycle so the second one supersedes it mid-flight
            gate = self.source.hold(first_date)
            stale = target.model_copy(update={"date": date.fromisoformat(first_date)})
            self.orchestrator.update(stale, DEMO_ROSTER)
            await asyncio.sleep(0)
            self.system_log(f"Cycle {self.orchestrator.generation} started for {first_date}")
            snapshot = await self.orchestrator.resolve(target, DEMO_ROSTER)
            gate.set()
            self.system_log(f"Cycle {snapshot.generation} won for {target.date_str}")
            return snapshot
        return await self.orchestrator.resolve(target, DEMO_ROSTER)

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{DIM}  Blank date shows the roster unenriched. Type 'quit' to exit.{RESET}")

        while True:
            raw_date = input(f"\n{BLUE}[Date YYYY-MM-DD] {RESET}").strip()
            if raw_date.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            raw_time = input(f"{BLUE}[Time (optional)] {RESET}").strip()
            raw_sort = input(f"{BLUE}[Sort distance|availability|name] {RESET}").strip() or "distance"
            try:
                target = BookingTarget.model_validate(
                    {**SHOOT_ADDRESS, "date": raw_date or None, "time": raw_time or None}
                )
                sort_by = SortBy(raw_sort.lower())
            except ValueError as exc:
                print(f"{RED}{exc}{RESET}")
                continue
            snapshot = asyncio.run(self.orchestrator.resolve(target, DEMO_ROSTER))
            self._render(snapshot, sort_by)

    def _render(self, snapshot: ResolutionSnapshot, sort_by: SortBy) -> None:
        target = snapshot.target
        when = f"{target.date_str or 'no date'} {target.time or ''}".strip() if target else "-"
        self.system_log(f"Target: {when} | state: {snapshot.state.value} | status: {snapshot.status.value}")
        for notice in snapshot.notices:
            print(f"{YELLOW}  ! {notice.kind.value}: {notice.message}{RESET}")

        ranked = self.orchestrator.ranked(sort_by=sort_by, show_all=True)
        time_selected = bool(target and target.time)
        for photographer in ranked:
            self._render_row(photographer, snapshot, time_selected)

    def _render_row(
        self, photographer: EnrichedPhotographer, snapshot: ResolutionSnapshot, time_selected: bool
    ) -> None:
        flag = availability_of(photographer, time_selected)
        color = GREEN if flag else (RED if flag is False else DIM)
        distance = "--" if photographer.distance is None else f"{photographer.distance} mi"
        bar = "".join(
            "#" if filled else "."
            for filled in build_availability_segments(
                photographer.net_available_slots,
                settings.resolution.day_start_hour,
                settings.resolution.day_end_hour,
            )
        )
        summary = format_availability_summary(
            photographer.net_available_slots, settings.resolution.next_available_limit
        )
        entry = snapshot.availability.get(photographer.id)
        next_times = ", ".join(entry.next_available_times) if entry else ""
        print(
            f"{color}{BOLD}{photographer.name:<14}{RESET} "
            f"{distance:>8}  [{bar}]  {summary or '-'}"
        )
        if next_times:
            print(f"{DIM}{'':<14}  next: {next_times}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Photographer Assignment Console Demo")
    parser.add_argument(
        "--scenario",
        choices=list(ConsoleSession.SCENARIOS.keys()),
        help="Run a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    try:
        if args.scenario:
            session.run_scenario(args.scenario)
        else:
            session.run()
    except (KeyboardInterrupt, EOFError):
        print(f"\n{DIM}Session ended.{RESET}")
        sys.exit(0)


if __name__ == "__main__":
    main()
