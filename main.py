"""
Coach booking engine command line.

Runs the scripted console demo, or prints a coach's slot grid for a day
after seeding a couple of bookings and an away block into the in-memory
store.

Usage:
    Demo scenario:  python main.py demo --scenario race
    Day view:       python main.py slots coach-maria --date 2025-03-18
"""

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime, time
from typing import Optional

from coachbook.config import settings
from coachbook.logging_context import new_request_id
from coachbook.service import build_service
from coachbook.tools.availability import add_blackout, get_available_slots
from coachbook.tools.booking import coach_accept, create_booking
from coachbook.utils import get_zone

logger = logging.getLogger(__name__)


def _run_demo(scenario: str) -> int:
    """Start the offline console demo (no external services required)."""
    from console_demo import ConsoleSession

    asyncio.run(ConsoleSession().run_scenario(scenario))
    return 0


async def _print_day(coach_ids: list[str], day: date, granularity: Optional[int]) -> int:
    service = build_service()
    zone = get_zone(settings.scheduling.timezone)

    def at(hour: int) -> datetime:
        return datetime.combine(day, time(hour), tzinfo=zone)

    # Seed: one accepted booking, one pending request and a lunch break.
    first = await create_booking(service, coach_ids[0], "client-seed-1", at(9), at(10))
    if first["success"]:
        await coach_accept(service, first["booking_id"], coach_ids[0])
    await create_booking(service, coach_ids[0], "client-seed-2", at(15), at(16))
    await add_blackout(service, coach_ids[0], at(12), at(13), note="Lunch")

    result = await get_available_slots(service, coach_ids, day, granularity)
    if not result["success"]:
        print(f"Error [{result['error_code']}]: {result['message']}", file=sys.stderr)
        return 1

    print(f"{', '.join(result['coach_ids'])} on {result['date']} ({settings.scheduling.timezone})")
    for slot in result["slots"]:
        blockers = f"  ({', '.join(slot['blocked_by'])})" if slot["blocked_by"] else ""
        print(f"  {slot['start'][11:16]}-{slot['end'][11:16]}  {slot['status']:<7}{blockers}")
    print(result["message"])
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coachbook", description=settings.service_name)
    sub = parser.add_subparsers(dest="command", required=True)

    demo = sub.add_parser("demo", help="Play a scripted booking scenario")
    demo.add_argument(
        "--scenario",
        default="happy",
        choices=["happy", "group", "conflict", "reject", "race"],
    )

    slots = sub.add_parser("slots", help="Print a seeded coach's slot grid for one day")
    slots.add_argument("coach_ids", nargs="+", help="One or more coach ids")
    slots.add_argument(
        "--date",
        type=date.fromisoformat,
        default=date.today(),
        help="Day to show, YYYY-MM-DD (default: today)",
    )
    slots.add_argument("--granularity", type=int, default=None, help="Slot size in minutes")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    new_request_id()
    logger.debug("Running command '%s'", args.command)

    if args.command == "demo":
        return _run_demo(args.scenario)
    return asyncio.run(_print_day(args.coach_ids, args.date, args.granularity))


if __name__ == "__main__":
    sys.exit(main())
