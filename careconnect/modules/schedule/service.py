"""Time-slot allocation: slot generation, reservation and availability.

Every state change on a slot is a single conditional ``UPDATE`` whose ``WHERE``
clause carries the precondition, so two concurrent callers can never both
succeed. ``reserve_slot`` and ``release_slot`` do not commit; they join the
caller's unit of work (booking or appointment transition). Block, unblock and
slot creation are standalone operations and commit themselves.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, availability_key, cache as default_cache
from careconnect.core.config import settings
from careconnect.core.exceptions import InvalidWindowError, NotFoundError, SlotUnavailableError, ValidationError
from careconnect.modules.providers.models import Provider
from careconnect.modules.schedule.models import TimeSlot
from careconnect.modules.schedule.schemas import SlotWindow, TimeSlotPublic
from careconnect.shared.enums import Weekday
from careconnect.shared.timeutils import default_tz, now

logger = logging.getLogger(__name__)

Interval = tuple[time, time]


def _generate_slots(start: time, end: time, duration: timedelta) -> list[Interval]:
    anchor = date(2000, 1, 1)
    cursor = datetime.combine(anchor, start)
    limit = datetime.combine(anchor, end)
    slots: list[Interval] = []
    while cursor + duration <= limit:
        slots.append((cursor.time(), (cursor + duration).time()))
        cursor += duration
    return slots


def has_started(slot_date: date, start_time: time, at: datetime | None = None) -> bool:
    """True once the slot start, read in the service timezone, is not in the future."""
    return datetime.combine(slot_date, start_time, default_tz()) <= (at or now())


def _overlaps(slot_a: Interval, slot_b: Interval) -> bool:
    start_a, end_a = slot_a
    start_b, end_b = slot_b
    return start_a < end_b and end_a > start_b


def validate_windows(provider: Provider, slot_date: date, windows: list[SlotWindow]) -> list[Interval]:
    """Check windows against the provider's working days and hours."""
    weekday = Weekday.from_date(slot_date)
    if weekday.value not in (provider.available_days or []):
        raise InvalidWindowError(f"Provider does not work on {weekday.value}")
    if not windows:
        return [(provider.working_hours_start, provider.working_hours_end)]

    intervals: list[Interval] = []
    for window in windows:
        if window.start >= window.end:
            raise InvalidWindowError("Window start must be before its end")
        if window.start < provider.working_hours_start or window.end > provider.working_hours_end:
            raise InvalidWindowError(
                f"Window {window.start.isoformat('minutes')}-{window.end.isoformat('minutes')} "
                "falls outside working hours"
            )
        candidate = (window.start, window.end)
        if any(_overlaps(candidate, other) for other in intervals):
            raise InvalidWindowError("Windows must not overlap each other")
        intervals.append(candidate)
    return intervals


def _upcoming(slots: list[TimeSlotPublic]) -> list[TimeSlotPublic]:
    current = now()
    return [slot for slot in slots if not has_started(slot.slot_date, slot.start_time, current)]


class SlotAllocator:
    def __init__(self, db: AsyncSession, cache: Cache | None = None):
        self.db = db
        self.cache = cache or default_cache

    async def create_slots(
        self,
        provider_id: str,
        slot_date: date,
        windows: list[SlotWindow] | None = None,
        slot_minutes: int | None = None,
    ) -> list[TimeSlot]:
        provider = await self._get_provider(provider_id)
        if slot_date < now().date():
            raise ValidationError("Cannot create slots in the past")
        intervals = validate_windows(provider, slot_date, windows or [])

        duration = timedelta(minutes=slot_minutes or settings.default_slot_minutes)
        generated: list[Interval] = []
        for start, end in intervals:
            generated.extend(_generate_slots(start, end, duration))
        if not generated:
            raise InvalidWindowError("Windows are shorter than a single slot")

        existing = await self._slots_on(provider_id, slot_date)
        for candidate in generated:
            if any(_overlaps(candidate, (slot.start_time, slot.end_time)) for slot in existing):
                raise InvalidWindowError(
                    f"Slot starting {candidate[0].isoformat('minutes')} overlaps an existing slot"
                )

        slots = [
            TimeSlot(provider_id=provider_id, slot_date=slot_date, start_time=start, end_time=end)
            for start, end in generated
        ]
        self.db.add_all(slots)
        await self.db.commit()
        for slot in slots:
            await self.db.refresh(slot)
        await self.cache.invalidate_availability(provider_id)
        logger.info("Created %d slots for provider %s on %s", len(slots), provider_id, slot_date)
        return slots

    async def reserve_slot(self, slot_id: str) -> TimeSlot:
        """Move a slot from free to booked. Joins the caller's transaction."""
        stmt = (
            update(TimeSlot)
            .where(
                TimeSlot.slot_id == slot_id,
                TimeSlot.is_booked.is_(False),
                TimeSlot.is_blocked.is_(False),
            )
            .values(is_booked=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            slot = await self.get_slot(slot_id)
            logger.info("Reservation refused for slot %s (booked=%s blocked=%s)", slot_id, slot.is_booked, slot.is_blocked)
            raise SlotUnavailableError("Requested slot unavailable")
        return await self.get_slot(slot_id, refresh=True)

    async def release_slot(self, slot_id: str) -> TimeSlot:
        """Return a booked slot to the free pool. Joins the caller's transaction."""
        stmt = (
            update(TimeSlot)
            .where(TimeSlot.slot_id == slot_id, TimeSlot.is_booked.is_(True))
            .values(is_booked=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            await self.get_slot(slot_id)
            raise ValidationError("Slot is not booked")
        return await self.get_slot(slot_id, refresh=True)

    async def block_slot(self, slot_id: str) -> TimeSlot:
        stmt = (
            update(TimeSlot)
            .where(
                TimeSlot.slot_id == slot_id,
                TimeSlot.is_booked.is_(False),
                TimeSlot.is_blocked.is_(False),
            )
            .values(is_blocked=True)
            .execution_options(synchronize_session=False)
        )
        return await self._apply_manual_override(stmt, slot_id, "Only free slots can be blocked")

    async def unblock_slot(self, slot_id: str) -> TimeSlot:
        stmt = (
            update(TimeSlot)
            .where(TimeSlot.slot_id == slot_id, TimeSlot.is_blocked.is_(True))
            .values(is_blocked=False)
            .execution_options(synchronize_session=False)
        )
        return await self._apply_manual_override(stmt, slot_id, "Slot is not blocked")

    async def availability(self, provider_id: str, start_date: date, end_date: date) -> list[TimeSlotPublic]:
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")
        if (end_date - start_date).days >= settings.max_availability_days:
            raise ValidationError(f"Date range is limited to {settings.max_availability_days} days")
        await self._get_provider(provider_id)

        key = availability_key(provider_id, start_date, end_date)
        cached = await self.cache.get(key)
        if cached is not None:
            return _upcoming([TimeSlotPublic.model_validate(item) for item in cached])

        stmt = (
            select(TimeSlot)
            .where(
                TimeSlot.provider_id == provider_id,
                TimeSlot.slot_date >= start_date,
                TimeSlot.slot_date <= end_date,
                TimeSlot.is_booked.is_(False),
                TimeSlot.is_blocked.is_(False),
            )
            .order_by(TimeSlot.slot_date, TimeSlot.start_time)
        )
        result = await self.db.execute(stmt)
        slots = [TimeSlotPublic.model_validate(row) for row in result.scalars().all()]
        await self.cache.set(key, [slot.model_dump(mode="json") for slot in slots])
        return _upcoming(slots)

    async def get_slot(self, slot_id: str, refresh: bool = False) -> TimeSlot:
        slot = await self.db.get(TimeSlot, slot_id, populate_existing=refresh)
        if slot is None:
            raise NotFoundError("Time slot not found")
        return slot

    async def _apply_manual_override(self, stmt, slot_id: str, refusal: str) -> TimeSlot:
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            await self.db.rollback()
            await self.get_slot(slot_id)
            raise SlotUnavailableError(refusal)
        await self.db.commit()
        slot = await self.get_slot(slot_id, refresh=True)
        await self.cache.invalidate_availability(slot.provider_id)
        return slot

    async def _get_provider(self, provider_id: str) -> Provider:
        provider = await self.db.get(Provider, provider_id)
        if provider is None or not provider.is_active:
            raise NotFoundError("Provider not found")
        return provider

    async def _slots_on(self, provider_id: str, slot_date: date) -> list[TimeSlot]:
        stmt = select(TimeSlot).where(TimeSlot.provider_id == provider_id, TimeSlot.slot_date == slot_date)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
