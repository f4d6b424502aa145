"""Builders shared by the test modules."""

from datetime import date, datetime, time, timezone
from decimal import Decimal

from careconnect.core.cache import Cache
from careconnect.modules.appointments.models import Appointment
from careconnect.modules.appointments.schemas import AppointmentCreate
from careconnect.modules.appointments.service import AppointmentService
from careconnect.modules.pricing.models import PromoCode
from careconnect.modules.providers.models import Provider
from careconnect.modules.schedule.models import TimeSlot
from careconnect.modules.schedule.service import SlotAllocator
from careconnect.modules.users.models import User
from careconnect.shared.enums import DiscountType, ProviderType, UserRole, VisitType, Weekday
from careconnect.shared.models import generate_ulid

MONDAY = date(2030, 5, 20)
TUESDAY = date(2030, 5, 21)
SUNDAY = date(2030, 5, 26)

WEEKDAYS = [Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY]


def no_cache() -> Cache:
    return Cache()


async def create_user(session, role: UserRole = UserRole.PATIENT, **fields) -> User:
    user = User(
        email=fields.pop("email", f"{generate_ulid().lower()}@example.com"),
        first_name=fields.pop("first_name", "Test"),
        last_name=fields.pop("last_name", role.value.title()),
        role=role,
        **fields,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def create_provider(session, user: User | None = None, **fields) -> Provider:
    if user is None:
        user = await create_user(session, UserRole.PROVIDER)
    values = {
        "provider_type": ProviderType.PHYSIOTHERAPIST,
        "specialization": "Sports rehabilitation",
        "consultation_fee": Decimal("50.00"),
        "home_visit_fee": Decimal("80.00"),
        "languages": ["english"],
        "certifications": [],
        "available_days": list(WEEKDAYS),
        "working_hours_start": time(9, 0),
        "working_hours_end": time(17, 0),
    }
    values.update(fields)
    provider = Provider(user_id=user.user_id, **values)
    session.add(provider)
    await session.commit()
    await session.refresh(provider)
    return provider


async def create_slots(session, provider: Provider, slot_date: date = MONDAY, windows=None) -> list[TimeSlot]:
    return await SlotAllocator(session, no_cache()).create_slots(provider.provider_id, slot_date, windows)


async def insert_slot(session, provider: Provider, slot_date: date, start: time = time(9, 0), end: time = time(10, 0)) -> TimeSlot:
    """Insert a free slot directly, bypassing the date checks of the allocator."""
    slot = TimeSlot(provider_id=provider.provider_id, slot_date=slot_date, start_time=start, end_time=end)
    session.add(slot)
    await session.commit()
    await session.refresh(slot)
    return slot


async def create_promo(session, code: str = "SAVE10", **fields) -> PromoCode:
    values = {
        "discount_type": DiscountType.FIXED,
        "discount_value": Decimal("5.00"),
        "valid_from": datetime(2020, 1, 1, tzinfo=timezone.utc),
        "valid_until": datetime(2099, 1, 1, tzinfo=timezone.utc),
        "is_active": True,
        "used_count": 0,
    }
    values.update(fields)
    promo = PromoCode(code=code, **values)
    session.add(promo)
    await session.commit()
    await session.refresh(promo)
    return promo


async def book(session, patient: User, provider: Provider, slot: TimeSlot, **payload) -> Appointment:
    request = AppointmentCreate(
        provider_id=provider.provider_id,
        slot_id=slot.slot_id,
        visit_type=payload.pop("visit_type", VisitType.CLINIC),
        **payload,
    )
    return await AppointmentService(session, no_cache()).book(patient, request)
