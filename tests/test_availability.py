"""Tests for slot generation, classification and the availability engine."""

from datetime import timedelta
from zoneinfo import ZoneInfo

import pytest

from coachbook.availability.slots import (
    BusyInterval,
    WorkingWindow,
    busy_from_bookings,
    classify_slots,
    generate_slot_windows,
    intersect_slots,
    validate_granularity,
)
from coachbook.errors import InvalidGranularity, InvalidParticipants, InvalidTimeRange
from coachbook.schemas.availability_schema import SlotStatus
from coachbook.schemas.booking_schema import BookingStatus
from tests.conftest import DAY, at, make_booking

UTC = ZoneInfo("UTC")


def _windows(granularity=30, window=None):
    return generate_slot_windows(DAY, granularity, window or WorkingWindow(6, 22), UTC)


class TestSlotGeneration:
    def test_default_window_has_32_half_hour_slots(self):
        windows = _windows()
        assert len(windows) == 32
        assert windows[0] == (at(6), at(6, 30))
        assert windows[-1] == (at(21, 30), at(22))

    def test_slots_are_contiguous(self):
        windows = _windows(15)
        for (_, end), (next_start, _) in zip(windows, windows[1:]):
            assert end == next_start
        assert all(e - s == timedelta(minutes=15) for s, e in windows)

    def test_result_is_restartable(self):
        windows = _windows()
        assert list(windows) == list(windows)

    @pytest.mark.parametrize("granularity", [0, -30, 7, 25])
    def test_invalid_granularity(self, granularity):
        with pytest.raises(InvalidGranularity):
            validate_granularity(granularity, WorkingWindow(6, 22))

    def test_granularity_must_divide_window(self):
        with pytest.raises(InvalidGranularity):
            _windows(90, WorkingWindow(8, 9))


class TestClassification:
    def test_overlapping_booking_blocks(self):
        busy = [BusyInterval("BK-1", at(10), at(11), "booking")]
        slots = classify_slots(_windows(), busy)
        blocked = [s for s in slots if not s.is_free]
        assert [s.start for s in blocked] == [at(10), at(10, 30)]
        assert blocked[0].blocked_by == ["BK-1"]

    def test_touching_booking_leaves_neighbours_free(self):
        busy = [BusyInterval("BK-1", at(10), at(10, 30), "booking")]
        slots = {s.start: s for s in classify_slots(_windows(), busy)}
        assert slots[at(9, 30)].is_free
        assert not slots[at(10)].is_free
        assert slots[at(10, 30)].is_free

    def test_partial_overlap_blocks_whole_slot(self):
        busy = [BusyInterval("BO-1", at(12, 10), at(12, 20), "blackout")]
        slots = {s.start: s for s in classify_slots(_windows(), busy)}
        assert slots[at(12)].status == SlotStatus.BLOCKED

    def test_rejected_bookings_never_block(self):
        bookings = [
            make_booking("BK-1", status=BookingStatus.REJECTED),
            make_booking("BK-2", start=at(11), end=at(12), status=BookingStatus.CONFIRMED),
        ]
        assert [b.source_id for b in busy_from_bookings(bookings)] == ["BK-2"]


class TestIntersection:
    def test_free_only_when_free_for_all(self):
        windows = _windows()
        coach_a = classify_slots(windows, [BusyInterval("BK-A", at(9), at(10), "booking")])
        coach_b = classify_slots(windows, [BusyInterval("BO-B", at(9, 30), at(10, 30), "blackout")])
        combined = {s.start: s for s in intersect_slots([coach_a, coach_b])}
        assert not combined[at(9)].is_free
        assert combined[at(9, 30)].blocked_by == ["BK-A", "BO-B"]
        assert not combined[at(10)].is_free
        assert combined[at(10, 30)].is_free

    def test_empty_input(self):
        assert intersect_slots([]) == []


class TestAvailabilityEngine:
    @pytest.mark.asyncio
    async def test_empty_day_is_all_free(self, service):
        slots = await service.engine.get_available_slots("coach-1", DAY)
        assert len(slots) == 32
        assert all(s.is_free for s in slots)

    @pytest.mark.asyncio
    async def test_booking_and_blackout_block(self, service):
        booking = await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        blackout = await service.engine.add_blackout("coach-1", at(12), at(13), note="Lunch")
        slots = {s.start: s for s in await service.engine.get_available_slots("coach-1", DAY)}
        assert slots[at(9)].blocked_by == [booking.id]
        assert slots[at(12, 30)].blocked_by == [blackout.id]
        assert slots[at(10)].is_free

    @pytest.mark.asyncio
    async def test_other_coach_unaffected(self, service):
        await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        free = await service.engine.get_free_slots("coach-2", DAY)
        assert len(free) == 32

    @pytest.mark.asyncio
    async def test_rejected_booking_frees_slot(self, service):
        booking = await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        await service.lifecycle.coach_reject(booking.id, "coach-1", "unavailable")
        slots = {s.start: s for s in await service.engine.get_available_slots("coach-1", DAY)}
        assert slots[at(9)].is_free

    @pytest.mark.asyncio
    async def test_multi_coach_intersection(self, service):
        await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        await service.engine.add_blackout("coach-2", at(10), at(11))
        slots = await service.engine.get_available_slots(["coach-1", "coach-2"], DAY)
        free_starts = {s.start for s in slots if s.is_free}
        assert at(9) not in free_starts
        assert at(10, 30) not in free_starts
        assert at(11) in free_starts
        assert len(free_starts) == 28

    @pytest.mark.asyncio
    async def test_custom_granularity(self, service):
        slots = await service.engine.get_available_slots("coach-1", DAY, granularity_minutes=60)
        assert len(slots) == 16

    @pytest.mark.asyncio
    async def test_invalid_granularity(self, service):
        with pytest.raises(InvalidGranularity):
            await service.engine.get_available_slots("coach-1", DAY, granularity_minutes=7)

    @pytest.mark.asyncio
    async def test_no_coaches(self, service):
        with pytest.raises(InvalidParticipants):
            await service.engine.get_available_slots([], DAY)


class TestRanges:
    def test_snap_range(self, service):
        assert service.engine.snap_range(at(14, 14, 59), at(14, 45)) == (at(14), at(15))

    def test_inverted_range(self, service):
        with pytest.raises(InvalidTimeRange):
            service.engine.snap_range(at(11), at(10))

    def test_range_collapsing_after_snap(self, service):
        with pytest.raises(InvalidTimeRange):
            service.engine.snap_range(at(14, 1), at(14, 10))

    def test_resolve_range_covers_raw_request(self, service):
        snapped, checked = service.engine.resolve_range(at(10, 15), at(10, 45))
        assert snapped == (at(10, 30), at(11))
        assert checked == (at(10, 15), at(11))


class TestBlackouts:
    @pytest.mark.asyncio
    async def test_add_list_remove(self, service):
        blackout = await service.engine.add_blackout("coach-1", at(12, 5), at(13))
        assert blackout.id.startswith("BO-")
        assert (blackout.start, blackout.end) == (at(12, 5), at(13))

        listed = await service.engine.list_blackouts("coach-1")
        assert [b.id for b in listed] == [blackout.id]

        assert await service.engine.remove_blackout("coach-1", blackout.id)
        assert await service.engine.list_blackouts("coach-1") == []

    @pytest.mark.asyncio
    async def test_remove_unknown(self, service):
        assert not await service.engine.remove_blackout("coach-1", "BO-MISSING")

    @pytest.mark.asyncio
    async def test_remove_requires_owner(self, service):
        blackout = await service.engine.add_blackout("coach-1", at(12), at(13))
        assert not await service.engine.remove_blackout("coach-2", blackout.id)

    @pytest.mark.asyncio
    async def test_blackout_blocks_booking(self, service):
        from coachbook.errors import SlotUnavailable

        await service.engine.add_blackout("coach-1", at(12), at(13))
        with pytest.raises(SlotUnavailable) as exc_info:
            await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(12, 30), at(13, 30))
        assert exc_info.value.details["conflicts"][0]["kind"] == "blackout"

    @pytest.mark.asyncio
    async def test_find_conflicts(self, service):
        booking = await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        conflicts = await service.engine.find_conflicts(["coach-1", "coach-2"], at(9, 30), at(10, 30))
        assert len(conflicts) == 1
        assert conflicts[0].coach_id == "coach-1"
        assert conflicts[0].source_id == booking.id
        assert conflicts[0].to_dict()["start"] == booking.start.isoformat()

    @pytest.mark.asyncio
    async def test_unaligned_blackout_blocks_every_touched_slot(self, service):
        from coachbook.errors import SlotUnavailable

        blackout = await service.engine.add_blackout("coach-1", at(10, 14), at(10, 44))
        assert (blackout.start, blackout.end) == (at(10, 14), at(10, 44))

        slots = {s.start: s for s in await service.engine.get_available_slots("coach-1", DAY)}
        assert slots[at(10)].status == SlotStatus.BLOCKED
        assert slots[at(10, 30)].status == SlotStatus.BLOCKED
        assert slots[at(11)].is_free

        with pytest.raises(SlotUnavailable):
            await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(10, 30), at(11))

    @pytest.mark.asyncio
    async def test_blackout_shorter_than_one_slot(self, service):
        blackout = await service.engine.add_blackout("coach-1", at(10, 20), at(10, 40))
        assert (blackout.start, blackout.end) == (at(10, 20), at(10, 40))
        slots = {s.start: s for s in await service.engine.get_available_slots("coach-1", DAY)}
        assert slots[at(10)].blocked_by == [blackout.id]
        assert slots[at(10, 30)].blocked_by == [blackout.id]

    @pytest.mark.asyncio
    async def test_inverted_blackout_rejected(self, service):
        with pytest.raises(InvalidTimeRange):
            await service.engine.add_blackout("coach-1", at(10, 40), at(10, 20))
