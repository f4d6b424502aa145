from datetime import date, datetime, time, timedelta, timezone

import pytest

from careconnect.core.exceptions import InvalidWindowError, NotFoundError, SlotUnavailableError, ValidationError
from careconnect.modules.schedule.schemas import SlotWindow
from careconnect.modules.schedule.service import SlotAllocator, has_started
from careconnect.shared.enums import Weekday
from careconnect.shared.timeutils import now
from helpers import MONDAY, SUNDAY, TUESDAY, create_provider, create_slots, insert_slot, no_cache


@pytest.mark.asyncio
async def test_create_slots_fills_working_day(db_session):
    provider = await create_provider(db_session)
    slots = await create_slots(db_session, provider)

    assert len(slots) == 8
    assert slots[0].start_time == time(9, 0)
    assert slots[-1].end_time == time(17, 0)
    assert all(slot.is_bookable for slot in slots)


@pytest.mark.asyncio
async def test_create_slots_from_windows_with_custom_length(db_session):
    provider = await create_provider(db_session)
    allocator = SlotAllocator(db_session, no_cache())
    windows = [SlotWindow(start=time(9, 0), end=time(10, 0)), SlotWindow(start=time(14, 0), end=time(15, 30))]

    slots = await allocator.create_slots(provider.provider_id, MONDAY, windows, slot_minutes=30)

    assert [(slot.start_time, slot.end_time) for slot in slots] == [
        (time(9, 0), time(9, 30)),
        (time(9, 30), time(10, 0)),
        (time(14, 0), time(14, 30)),
        (time(14, 30), time(15, 0)),
        (time(15, 0), time(15, 30)),
    ]


@pytest.mark.asyncio
async def test_window_outside_working_hours_rejected(db_session):
    provider = await create_provider(db_session)
    allocator = SlotAllocator(db_session, no_cache())

    with pytest.raises(InvalidWindowError):
        await allocator.create_slots(provider.provider_id, MONDAY, [SlotWindow(start=time(16, 0), end=time(18, 0))])


@pytest.mark.asyncio
async def test_window_on_unavailable_day_rejected(db_session):
    provider = await create_provider(db_session)
    assert Weekday.from_date(SUNDAY) == Weekday.SUNDAY

    with pytest.raises(InvalidWindowError):
        await create_slots(db_session, provider, SUNDAY)


@pytest.mark.asyncio
async def test_overlapping_windows_rejected(db_session):
    provider = await create_provider(db_session)
    allocator = SlotAllocator(db_session, no_cache())
    windows = [SlotWindow(start=time(9, 0), end=time(11, 0)), SlotWindow(start=time(10, 0), end=time(12, 0))]

    with pytest.raises(InvalidWindowError):
        await allocator.create_slots(provider.provider_id, MONDAY, windows)


@pytest.mark.asyncio
async def test_slots_cannot_overlap_existing_ones(db_session):
    provider = await create_provider(db_session)
    await create_slots(db_session, provider, windows=[SlotWindow(start=time(9, 0), end=time(11, 0))])

    with pytest.raises(InvalidWindowError):
        await create_slots(db_session, provider, windows=[SlotWindow(start=time(10, 0), end=time(12, 0))])


@pytest.mark.asyncio
async def test_slots_in_the_past_rejected(db_session):
    provider = await create_provider(db_session, available_days=[day.value for day in Weekday])

    with pytest.raises(ValidationError):
        await create_slots(db_session, provider, date.today() - timedelta(days=2))


@pytest.mark.asyncio
async def test_reserve_succeeds_once_until_released(db_session):
    provider = await create_provider(db_session)
    slot = (await create_slots(db_session, provider))[0]
    allocator = SlotAllocator(db_session, no_cache())

    reserved = await allocator.reserve_slot(slot.slot_id)
    assert reserved.is_booked
    with pytest.raises(SlotUnavailableError):
        await allocator.reserve_slot(slot.slot_id)
    with pytest.raises(SlotUnavailableError):
        await allocator.reserve_slot(slot.slot_id)

    released = await allocator.release_slot(slot.slot_id)
    assert not released.is_booked
    assert (await allocator.reserve_slot(slot.slot_id)).is_booked


@pytest.mark.asyncio
async def test_release_requires_booked_slot(db_session):
    provider = await create_provider(db_session)
    slot = (await create_slots(db_session, provider))[0]

    with pytest.raises(ValidationError):
        await SlotAllocator(db_session, no_cache()).release_slot(slot.slot_id)


@pytest.mark.asyncio
async def test_unknown_slot_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        await SlotAllocator(db_session, no_cache()).reserve_slot("01UNKNOWNSLOT0000000000000")


@pytest.mark.asyncio
async def test_blocked_slot_hidden_and_not_reservable(db_session):
    provider = await create_provider(db_session)
    slots = await create_slots(db_session, provider)
    allocator = SlotAllocator(db_session, no_cache())

    blocked = await allocator.block_slot(slots[0].slot_id)
    assert blocked.is_blocked

    available = await allocator.availability(provider.provider_id, MONDAY, MONDAY)
    assert slots[0].slot_id not in {slot.slot_id for slot in available}
    assert len(available) == 7

    with pytest.raises(SlotUnavailableError):
        await allocator.reserve_slot(slots[0].slot_id)

    unblocked = await allocator.unblock_slot(slots[0].slot_id)
    assert unblocked.is_bookable
    assert len(await allocator.availability(provider.provider_id, MONDAY, MONDAY)) == 8


@pytest.mark.asyncio
async def test_booked_slot_cannot_be_blocked(db_session):
    provider = await create_provider(db_session)
    slot = (await create_slots(db_session, provider))[0]
    slot_id = slot.slot_id
    allocator = SlotAllocator(db_session, no_cache())
    await allocator.reserve_slot(slot_id)
    await db_session.commit()

    with pytest.raises(SlotUnavailableError):
        await allocator.block_slot(slot_id)

    fresh = await allocator.get_slot(slot_id, refresh=True)
    assert fresh.is_booked and not fresh.is_blocked


@pytest.mark.asyncio
async def test_unblock_requires_blocked_slot(db_session):
    provider = await create_provider(db_session)
    slot = (await create_slots(db_session, provider))[0]

    with pytest.raises(SlotUnavailableError):
        await SlotAllocator(db_session, no_cache()).unblock_slot(slot.slot_id)


@pytest.mark.asyncio
async def test_availability_spans_range_in_order(db_session):
    provider = await create_provider(db_session)
    await create_slots(db_session, provider, TUESDAY)
    await create_slots(db_session, provider, MONDAY)

    available = await SlotAllocator(db_session, no_cache()).availability(provider.provider_id, MONDAY, TUESDAY)

    assert len(available) == 16
    assert [slot.slot_date for slot in available[:8]] == [MONDAY] * 8
    assert available[8].slot_date == TUESDAY


@pytest.mark.asyncio
async def test_availability_validates_range(db_session):
    provider = await create_provider(db_session)
    allocator = SlotAllocator(db_session, no_cache())

    with pytest.raises(ValidationError):
        await allocator.availability(provider.provider_id, TUESDAY, MONDAY)
    with pytest.raises(ValidationError):
        await allocator.availability(provider.provider_id, MONDAY, MONDAY + timedelta(days=60))
    with pytest.raises(NotFoundError):
        await allocator.availability("01UNKNOWNPROVIDER000000000", MONDAY, MONDAY)


@pytest.mark.asyncio
async def test_stale_readers_cannot_both_reserve(session_factory):
    async with session_factory() as setup:
        provider = await create_provider(setup)
        slot_id = (await create_slots(setup, provider))[0].slot_id

    async with session_factory() as first, session_factory() as second:
        first_allocator = SlotAllocator(first, no_cache())
        second_allocator = SlotAllocator(second, no_cache())
        # Both callers observe the slot as free before either writes.
        assert (await first_allocator.get_slot(slot_id)).is_bookable
        assert (await second_allocator.get_slot(slot_id)).is_bookable

        await first_allocator.reserve_slot(slot_id)
        await first.commit()

        with pytest.raises(SlotUnavailableError):
            await second_allocator.reserve_slot(slot_id)
        await second.rollback()

    async with session_factory() as check:
        slot = await SlotAllocator(check, no_cache()).get_slot(slot_id)
        assert slot.is_booked


@pytest.mark.asyncio
async def test_availability_hides_slots_that_already_started(db_session):
    provider = await create_provider(db_session)
    today = now().date()
    past = await insert_slot(db_session, provider, today - timedelta(days=1))
    upcoming = await insert_slot(db_session, provider, today + timedelta(days=1))
    past_id, upcoming_id = past.slot_id, upcoming.slot_id

    available = await SlotAllocator(db_session, no_cache()).availability(
        provider.provider_id, today - timedelta(days=1), today + timedelta(days=1)
    )

    assert [slot.slot_id for slot in available] == [upcoming_id]
    assert past_id not in {slot.slot_id for slot in available}


def test_has_started_compares_against_slot_start():
    at = datetime(2030, 5, 20, 10, 30, tzinfo=timezone.utc)
    assert has_started(MONDAY, time(10, 0), at)
    assert has_started(MONDAY, time(10, 30), at)
    assert not has_started(MONDAY, time(11, 0), at)
    assert has_started(MONDAY - timedelta(days=1), time(23, 0), at)
