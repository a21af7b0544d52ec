"""
Offline console demo: walks bookings through their lifecycle in the terminal.

Runs against the real availability engine, lifecycle manager, lock
manager and tool functions, backed by the in-memory store. No database,
no push delivery, no network calls. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario group
    python console_demo.py --scenario race
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, time
from typing import Any, Optional

from coachbook.config import settings
from coachbook.notifications.dispatcher import (
    InMemoryNotificationDispatcher,
    StaticIdentityProvider,
    StaticNameResolver,
)
from coachbook.service import SchedulingService, build_service
from coachbook.tools import availability as availability_tools
from coachbook.tools import booking as booking_tools
from coachbook.utils import get_zone

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_DAY = date(2025, 3, 18)

DEMO_NAMES = {
    "coach-maria": "Coach Maria",
    "coach-liam": "Coach Liam",
    "client-ava": "Ava",
    "client-noah": "Noah",
    "client-zoe": "Zoe",
}


class ConsoleSession:
    """Runs scripted booking scenarios and narrates every step."""

    SCENARIOS: dict[str, str] = {
        "happy": "One coach, one client: request, accept, confirm.",
        "group": "Two coaches, two clients: partial acceptance and confirmation.",
        "conflict": "A second client requests a slot that is already taken.",
        "reject": "A coach rejects the request and the slot frees up again.",
        "race": "Three clients request the same slot at the same moment.",
    }

    def __init__(self, service: Optional[SchedulingService] = None) -> None:
        self.dispatcher = InMemoryNotificationDispatcher()
        self.service = service or build_service(
            dispatcher=self.dispatcher,
            name_resolver=StaticNameResolver(DEMO_NAMES),
        )
        self.zone = get_zone(settings.scheduling.timezone)
        self.actor = StaticIdentityProvider("client-ava")
        self._seen_notifications = 0

    # ------------------------------------------------------------------ #
    # Output helpers
    # ------------------------------------------------------------------ #

    def say(self, text: str) -> None:
        who = DEMO_NAMES.get(self.actor.current_user_id(), self.actor.current_user_id())
        print(f"{BLUE}{BOLD}[{who}]{RESET} {text}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def act_as(self, user_id: str) -> None:
        self.actor = StaticIdentityProvider(user_id)

    def at(self, hour: int, minute: int = 0) -> datetime:
        return datetime.combine(DEMO_DAY, time(hour, minute), tzinfo=self.zone)

    def show_result(self, result: dict[str, Any]) -> None:
        if result["success"]:
            print(f"{GREEN}  OK{RESET} {result['message']}")
        else:
            colour = YELLOW if result.get("retryable") else RED
            print(f"{colour}  FAILED [{result['error_code']}]{RESET} {result['message']}")
        self._flush_notifications()

    def _flush_notifications(self) -> None:
        for note in self.dispatcher.sent[self._seen_notifications:]:
            self.system_log(
                f"notify {DEMO_NAMES.get(note.recipient_id, note.recipient_id)}: "
                f"{note.title} / {note.body}"
            )
        self._seen_notifications = len(self.dispatcher.sent)

    async def show_day(self, coach_ids: list[str]) -> None:
        result = await availability_tools.get_available_slots(self.service, coach_ids, DEMO_DAY)
        if not result["success"]:
            self.show_result(result)
            return
        cells = []
        for slot in result["slots"]:
            hhmm = slot["start"][11:16]
            cells.append(f"{GREEN}{hhmm}{RESET}" if slot["status"] == "free" else f"{DIM}{hhmm}{RESET}")
        print(f"  {', '.join(coach_ids)} on {DEMO_DAY.isoformat()}: {result['free_count']} free")
        for i in range(0, len(cells), 8):
            print("    " + " ".join(cells[i:i + 8]))

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    async def _request(
        self, coaches: list[str], clients: list[str], start: datetime, end: datetime
    ) -> dict[str, Any]:
        self.act_as(clients[0])
        self.say(f"I'd like {start.strftime('%H:%M')}-{end.strftime('%H:%M')} with {', '.join(coaches)}.")
        result = await booking_tools.create_booking(
            self.service, coaches, clients, start, end, location="Court 3", rate_usd=60.0
        )
        self.show_result(result)
        return result

    async def _accept(
        self, booking_id: str, coach_id: str, rate_usd: Optional[float] = None, note: Optional[str] = None
    ) -> dict[str, Any]:
        self.act_as(coach_id)
        self.say("Accepting." if rate_usd is None else f"Accepting at ${rate_usd:.2f}/h.")
        result = await booking_tools.coach_accept(
            self.service, booking_id, self.actor.current_user_id(), rate_usd=rate_usd, coach_note=note
        )
        self.show_result(result)
        return result

    async def _confirm(self, booking_id: str, client_id: str) -> dict[str, Any]:
        self.act_as(client_id)
        self.say("Confirming.")
        result = await booking_tools.client_confirm(self.service, booking_id, self.actor.current_user_id())
        self.show_result(result)
        return result

    async def scenario_happy(self) -> None:
        created = await self._request(["coach-maria"], ["client-ava"], self.at(9), self.at(10))
        booking_id = created["booking_id"]
        await self._confirm(booking_id, "client-ava")
        await self._accept(booking_id, "coach-maria", rate_usd=45.0, note="Bring running shoes")
        await self._confirm(booking_id, "client-ava")
        await self.show_day(["coach-maria"])

    async def scenario_group(self) -> None:
        coaches = ["coach-maria", "coach-liam"]
        clients = ["client-ava", "client-noah"]
        await self.show_day(coaches)
        created = await self._request(coaches, clients, self.at(14), self.at(15, 30))
        booking_id = created["booking_id"]
        await self._accept(booking_id, "coach-maria")
        await self._accept(booking_id, "coach-maria")
        await self._accept(booking_id, "coach-liam")
        await self._confirm(booking_id, "client-noah")
        await self._confirm(booking_id, "client-ava")
        await self.show_day(coaches)

    async def scenario_conflict(self) -> None:
        await self._request(["coach-maria"], ["client-ava"], self.at(10), self.at(11))
        result = await self._request(["coach-maria"], ["client-noah"], self.at(10, 30), self.at(11, 30))
        if result.get("refresh_availability"):
            self.system_log("Refreshing availability before retrying...")
            await self.show_day(["coach-maria"])
        await self._request(["coach-maria"], ["client-noah"], self.at(11), self.at(12))

    async def scenario_reject(self) -> None:
        created = await self._request(["coach-liam"], ["client-zoe"], self.at(18), self.at(19))
        self.act_as("coach-liam")
        self.say("Sorry, I can't make that one.")
        result = await booking_tools.coach_reject(
            self.service, created["booking_id"], "coach-liam", reason="Travelling that evening"
        )
        self.show_result(result)
        await self._confirm(created["booking_id"], "client-zoe")
        await self.show_day(["coach-liam"])
        await self._request(["coach-liam"], ["client-noah"], self.at(18), self.at(19))

    async def scenario_race(self) -> None:
        clients = ["client-ava", "client-noah", "client-zoe"]
        self.system_log(f"{len(clients)} clients submit 08:00-09:00 with Coach Maria at once")
        results = await asyncio.gather(*(
            booking_tools.create_booking(
                self.service, ["coach-maria"], [client], self.at(8), self.at(9)
            )
            for client in clients
        ))
        for client, result in zip(clients, results):
            self.act_as(client)
            self.say("Requesting 08:00-09:00.")
            self.show_result(result)
        winners = sum(1 for r in results if r["success"])
        self.system_log(f"{winners} request succeeded, {len(results) - winners} refused")

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        handler = getattr(self, f"scenario_{scenario}", None)
        if scenario not in self.SCENARIOS or handler is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  COACH BOOKING ENGINE - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  {self.SCENARIOS[scenario]}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

        await handler()

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Notifications sent: {len(self.dispatcher.sent)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Coach booking engine console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default="happy",
        help="Scripted scenario to play (default: happy)",
    )
    args = parser.parse_args(argv)
    asyncio.run(ConsoleSession().run_scenario(args.scenario))
    return 0


if __name__ == "__main__":
    sys.exit(main())
