"""Tests for the result-dict tool functions used by the calling layer."""

from datetime import date

import pytest

from coachbook.errors import BookingTerminal, SlotUnavailable, Timeout
from coachbook.tools import availability as availability_tools
from coachbook.tools import booking as booking_tools
from coachbook.tools.results import error_result
from tests.conftest import DAY, at


class TestErrorResult:
    def test_slot_unavailable_requests_refresh(self):
        result = error_result(SlotUnavailable("taken", details={"conflicts": []}))
        assert result["success"] is False
        assert result["error_code"] == "slot_unavailable"
        assert result["refresh_availability"] is True
        assert result["retryable"] is False

    def test_timeout_is_retryable(self):
        result = error_result(Timeout("slow"))
        assert result["retryable"] is True
        assert "refresh_availability" not in result

    def test_details_default_empty(self):
        assert error_result(BookingTerminal("done"))["details"] == {}


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_success(self, service):
        result = await booking_tools.create_booking(
            service, "coach-1", "client-1", at(9), at(10), location="Court 1", rate_usd=50.0
        )
        assert result["success"] is True
        assert result["status"] == "requested"
        assert result["booking_id"].startswith("BK-")
        assert f"Reference number: {result['booking_id']}" in result["message"]
        assert result["booking"]["coach_ids"] == ["coach-1"]
        assert result["booking"]["location"] == "Court 1"

    @pytest.mark.asyncio
    async def test_conflict(self, service):
        await booking_tools.create_booking(service, "coach-1", "client-1", at(9), at(10))
        result = await booking_tools.create_booking(service, "coach-1", "client-2", at(9), at(10))
        assert result["success"] is False
        assert result["error_code"] == "slot_unavailable"
        assert result["refresh_availability"] is True
        assert result["details"]["conflicts"][0]["coach_id"] == "coach-1"

    @pytest.mark.asyncio
    async def test_invalid_range(self, service):
        result = await booking_tools.create_booking(service, "coach-1", "client-1", at(10), at(9))
        assert result["error_code"] == "invalid_time_range"

    @pytest.mark.asyncio
    async def test_no_participants(self, service):
        result = await booking_tools.create_booking(service, [], "client-1", at(9), at(10))
        assert result["error_code"] == "invalid_participants"


class TestLifecycleTools:
    @pytest.mark.asyncio
    async def test_accept_confirm(self, service):
        created = await booking_tools.create_booking(service, "coach-1", "client-1", at(9), at(10))
        accepted = await booking_tools.coach_accept(service, created["booking_id"], "coach-1")
        assert accepted["status"] == "pending_client_confirmation"
        confirmed = await booking_tools.client_confirm(service, created["booking_id"], "client-1")
        assert confirmed["status"] == "confirmed"
        assert confirmed["booking"]["confirmed_at"] is not None

    @pytest.mark.asyncio
    async def test_accept_with_rate_and_note(self, service):
        created = await booking_tools.create_booking(service, "coach-1", "client-1", at(9), at(10))
        accepted = await booking_tools.coach_accept(
            service, created["booking_id"], "coach-1", rate_usd=55.0, coach_note="Meet at gate B"
        )
        assert accepted["booking"]["rate_usd"] == 55.0
        assert accepted["booking"]["coach_note"] == "Meet at gate B"

    @pytest.mark.asyncio
    async def test_accept_with_bad_rate(self, service):
        created = await booking_tools.create_booking(service, "coach-1", "client-1", at(9), at(10))
        result = await booking_tools.coach_accept(service, created["booking_id"], "coach-1", rate_usd=-5)
        assert result["success"] is False
        assert result["error_code"] == "invalid_rate"

    @pytest.mark.asyncio
    async def test_confirm_too_early(self, service):
        created = await booking_tools.create_booking(service, "coach-1", "client-1", at(9), at(10))
        result = await booking_tools.client_confirm(service, created["booking_id"], "client-1")
        assert result["error_code"] == "not_ready_for_confirmation"

    @pytest.mark.asyncio
    async def test_reject_then_accept(self, service):
        created = await booking_tools.create_booking(service, "coach-1", "client-1", at(9), at(10))
        rejected = await booking_tools.coach_reject(service, created["booking_id"], "coach-1", "sick")
        assert rejected["booking"]["rejection_reason"] == "sick"
        result = await booking_tools.coach_accept(service, created["booking_id"], "coach-1")
        assert result["error_code"] == "booking_terminal"

    @pytest.mark.asyncio
    async def test_get_missing(self, service):
        result = await booking_tools.get_booking(service, "BK-MISSING")
        assert result["success"] is False
        assert result["error_code"] == "booking_not_found"

    @pytest.mark.asyncio
    async def test_payment_status(self, service):
        created = await booking_tools.create_booking(service, "coach-1", "client-1", at(9), at(10))
        paid = await booking_tools.update_payment_status(service, created["booking_id"], "paid")
        assert paid["booking"]["payment_status"] == "paid"

    @pytest.mark.asyncio
    async def test_invalid_payment_status(self, service):
        result = await booking_tools.update_payment_status(service, "BK-1", "refunded")
        assert result["error_code"] == "invalid_payment_status"


class TestAvailabilityTools:
    @pytest.mark.asyncio
    async def test_slots(self, service):
        await booking_tools.create_booking(service, "coach-1", "client-1", at(6), at(7))
        result = await availability_tools.get_available_slots(service, "coach-1", DAY)
        assert result["success"] is True
        assert result["coach_ids"] == ["coach-1"]
        assert result["free_count"] == 30
        assert result["slots"][0]["status"] == "blocked"
        assert result["next_free"] == at(7).isoformat()

    @pytest.mark.asyncio
    async def test_fully_booked_day(self, service):
        await availability_tools.add_blackout(service, "coach-1", at(6), at(22), note="Holiday")
        result = await availability_tools.get_available_slots(service, ["coach-1"], DAY)
        assert result["free_count"] == 0
        assert result["next_free"] is None
        assert result["message"] == f"No availability on {DAY.isoformat()}."

    @pytest.mark.asyncio
    async def test_invalid_granularity(self, service):
        result = await availability_tools.get_available_slots(service, "coach-1", date(2025, 3, 19), 7)
        assert result["error_code"] == "invalid_granularity"

    @pytest.mark.asyncio
    async def test_blackout_roundtrip(self, service):
        added = await availability_tools.add_blackout(service, "coach-1", at(12), at(13), "Lunch")
        blackout_id = added["blackout"]["id"]
        listed = await availability_tools.list_blackouts(service, "coach-1")
        assert [b["id"] for b in listed["blackouts"]] == [blackout_id]
        removed = await availability_tools.remove_blackout(service, "coach-1", blackout_id)
        assert removed["success"] is True
        again = await availability_tools.remove_blackout(service, "coach-1", blackout_id)
        assert again["error_code"] == "blackout_not_found"

    @pytest.mark.asyncio
    async def test_blackout_invalid_range(self, service):
        result = await availability_tools.add_blackout(service, "coach-1", at(13), at(12))
        assert result["error_code"] == "invalid_time_range"
