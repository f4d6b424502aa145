"""Schedule routes: public availability plus slot management."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, get_cache
from careconnect.core.database import get_db
from careconnect.core.deps import require_provider_or_admin
from careconnect.modules.providers.service import ProviderService
from careconnect.modules.schedule.models import TimeSlot
from careconnect.modules.schedule.schemas import SlotBatchCreate, TimeSlotPublic
from careconnect.modules.schedule.service import SlotAllocator
from careconnect.modules.users.models import User

router = APIRouter(prefix="/api/v1/schedule", tags=["schedule"])


def get_allocator(db: AsyncSession = Depends(get_db), cache: Cache = Depends(get_cache)) -> SlotAllocator:
    return SlotAllocator(db, cache)


@router.get("/availability", response_model=list[TimeSlotPublic])
async def availability(
    provider_id: str = Query(...),
    start_date: date = Query(...),
    end_date: date | None = Query(None),
    allocator: SlotAllocator = Depends(get_allocator),
) -> list[TimeSlotPublic]:
    return await allocator.availability(provider_id, start_date, end_date or start_date)


@router.get("/slots", response_model=list[TimeSlotPublic])
async def list_slots(
    start_date: date = Query(...),
    end_date: date | None = Query(None),
    provider_id: str | None = Query(None),
    current_user: User = Depends(require_provider_or_admin),
    db: AsyncSession = Depends(get_db),
) -> list[TimeSlot]:
    managed_id = await ProviderService(db).resolve_managed_provider_id(current_user, provider_id)
    stmt = (
        select(TimeSlot)
        .where(
            TimeSlot.provider_id == managed_id,
            TimeSlot.slot_date >= start_date,
            TimeSlot.slot_date <= (end_date or start_date),
        )
        .order_by(TimeSlot.slot_date, TimeSlot.start_time)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.post("/slots", response_model=list[TimeSlotPublic], status_code=status.HTTP_201_CREATED)
async def create_slots(
    payload: SlotBatchCreate,
    current_user: User = Depends(require_provider_or_admin),
    db: AsyncSession = Depends(get_db),
    allocator: SlotAllocator = Depends(get_allocator),
) -> list[TimeSlot]:
    provider_id = await ProviderService(db).resolve_managed_provider_id(current_user, payload.provider_id)
    return await allocator.create_slots(provider_id, payload.slot_date, payload.windows, payload.slot_minutes)


@router.post("/slots/{slot_id}/block", response_model=TimeSlotPublic)
async def block_slot(
    slot_id: str,
    current_user: User = Depends(require_provider_or_admin),
    db: AsyncSession = Depends(get_db),
    allocator: SlotAllocator = Depends(get_allocator),
) -> TimeSlot:
    slot = await allocator.get_slot(slot_id)
    await ProviderService(db).resolve_managed_provider_id(current_user, slot.provider_id)
    return await allocator.block_slot(slot_id)


@router.post("/slots/{slot_id}/unblock", response_model=TimeSlotPublic)
async def unblock_slot(
    slot_id: str,
    current_user: User = Depends(require_provider_or_admin),
    db: AsyncSession = Depends(get_db),
    allocator: SlotAllocator = Depends(get_allocator),
) -> TimeSlot:
    slot = await allocator.get_slot(slot_id)
    await ProviderService(db).resolve_managed_provider_id(current_user, slot.provider_id)
    return await allocator.unblock_slot(slot_id)
