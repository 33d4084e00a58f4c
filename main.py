"""
Photographer assignment entry point.

Resolves availability and distance for a roster against the live booking
backend and a Nominatim geocoder, then prints the ranked list.
Console mode runs the offline demo instead.

Usage:
    Live lookup:  python main.py --date 2025-03-10 --time "2:00 PM" \
                      --address "100 Market St" --city Springfield --state IL \
                      --roster roster.json
    Console mode: python main.py console
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from assignment_engine.config import settings
from assignment_engine.orchestration.orchestrator import FetchOrchestrator
from assignment_engine.schemas.booking_schema import BookingTarget
from assignment_engine.scheduling.intervals import format_availability_summary
from assignment_engine.scheduling.ranking import SortBy
from assignment_engine.tools.availability_api import AvailabilityApiClient
from assignment_engine.tools.geocoding import NominatimGeocoder

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve photographer availability for a shoot")
    parser.add_argument("--date", help="Shoot date, YYYY-MM-DD")
    parser.add_argument("--time", help="Shoot time, 12- or 24-hour")
    parser.add_argument("--address", default="")
    parser.add_argument("--city", default="")
    parser.add_argument("--state", default="")
    parser.add_argument("--zip", default="")
    parser.add_argument("--roster", required=True, type=Path,
                        help="JSON file with a list of {id, name, profile_address}")
    parser.add_argument("--sort", choices=[s.value for s in SortBy], default=SortBy.DISTANCE.value)
    parser.add_argument("--query", default="")
    parser.add_argument("--show-all", action="store_true")
    return parser.parse_args(argv)


async def _run_live(args: argparse.Namespace) -> int:
    """Run one resolution cycle against the configured services."""
    target = BookingTarget(
        address=args.address, city=args.city, state=args.state, zip=args.zip,
        date=args.date or None, time=args.time,
    )
    roster = json.loads(args.roster.read_text())

    source = AvailabilityApiClient()
    geocoder = NominatimGeocoder()
    orchestrator = FetchOrchestrator(source, geocoder, settings.resolution)
    try:
        snapshot = await orchestrator.resolve(target, roster)
    finally:
        await source.aclose()
        await geocoder.aclose()

    for notice in snapshot.notices:
        print(f"! {notice.kind.value}: {notice.message}")
    for p in orchestrator.ranked(args.query, SortBy(args.sort), args.show_all):
        distance = "--" if p.distance is None else f"{p.distance} mi"
        summary = format_availability_summary(
            p.net_available_slots, settings.resolution.next_available_limit
        )
        print(f"{p.id:>6}  {p.name:<24} {distance:>9}  {summary or '-'}")
    logger.info("Listed photographers for %s (%s)", target.date_str or "no date", snapshot.state.value)
    return 0


def _run_console_mode() -> None:
    """Start the offline console demo (no backend required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        sys.exit(asyncio.run(_run_live(_parse_args(sys.argv[1:]))))
