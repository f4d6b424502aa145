from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from careconnect.core.exceptions import (
    ConflictError,
    FeeNotConfiguredError,
    PromoInvalidError,
    PromoRejection,
    ValidationError,
)
from careconnect.modules.pricing.models import PromoCode, ProviderPricingOverride
from careconnect.modules.pricing.schemas import PricingOverrideCreate, PromoCodeCreate, PromoCodeUpdate
from careconnect.modules.pricing.service import PricingService, resolve_price, round_amount
from careconnect.modules.providers.models import Provider
from careconnect.shared.enums import DiscountType, VisitType
from helpers import book, create_promo, create_provider, create_slots, create_user

NOW = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_provider(consultation="50.00", home=None) -> Provider:
    return Provider(
        provider_id="01PROVIDER0000000000000000",
        consultation_fee=Decimal(consultation),
        home_visit_fee=Decimal(home) if home is not None else None,
    )


def make_promo(**fields) -> PromoCode:
    values = {
        "code": "SAVE10",
        "discount_type": DiscountType.FIXED,
        "discount_value": Decimal("5.00"),
        "max_uses": None,
        "used_count": 0,
        "valid_from": NOW - timedelta(days=30),
        "valid_until": NOW + timedelta(days=30),
        "is_active": True,
        "applicable_providers": None,
        "min_amount": None,
    }
    values.update(fields)
    return PromoCode(**values)


def make_override(**fields) -> ProviderPricingOverride:
    values = {"consultation_fee": None, "home_visit_fee": None, "discount_percentage": None, "is_active": True}
    values.update(fields)
    return ProviderPricingOverride(provider_id="01PROVIDER0000000000000000", **values)


def test_override_then_promo_example():
    override = make_override(consultation_fee=Decimal("40.00"), discount_percentage=Decimal("10"))
    promo = make_promo(min_amount=Decimal("30.00"))

    breakdown = resolve_price(make_provider(), VisitType.CLINIC, override, promo, at=NOW)

    assert breakdown.base_fee == Decimal("50.00")
    assert breakdown.override_fee == Decimal("40.00")
    assert breakdown.subtotal == Decimal("36.00")
    assert breakdown.promo_discount == Decimal("5.00")
    assert breakdown.total_amount == Decimal("31.00")


def test_home_visit_uses_home_fee_and_requires_it():
    assert resolve_price(make_provider(home="80"), VisitType.HOME).total_amount == Decimal("80.00")
    assert resolve_price(make_provider(home="80"), VisitType.ONLINE).total_amount == Decimal("50.00")
    with pytest.raises(FeeNotConfiguredError):
        resolve_price(make_provider(), VisitType.HOME)


def test_override_discount_applies_to_base_fee_when_no_replacement():
    override = make_override(discount_percentage=Decimal("20"))
    assert resolve_price(make_provider(), VisitType.CLINIC, override).total_amount == Decimal("40.00")


def test_inactive_override_is_ignored():
    override = make_override(consultation_fee=Decimal("10.00"), is_active=False)
    assert resolve_price(make_provider(), VisitType.CLINIC, override).total_amount == Decimal("50.00")


def test_percentage_promo_rounds_half_up():
    promo = make_promo(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("50"))
    breakdown = resolve_price(make_provider("10.01"), VisitType.CLINIC, promo=promo, at=NOW)
    assert breakdown.total_amount == Decimal("5.01")
    assert round_amount(Decimal("2.675")) == Decimal("2.68")


def test_fixed_promo_floors_at_zero():
    promo = make_promo(discount_value=Decimal("80.00"))
    assert resolve_price(make_provider(), VisitType.CLINIC, promo=promo, at=NOW).total_amount == Decimal("0.00")


@pytest.mark.parametrize(
    ("fields", "reason"),
    [
        ({"is_active": False}, PromoRejection.INACTIVE),
        ({"valid_from": NOW + timedelta(days=1)}, PromoRejection.NOT_YET_VALID),
        ({"valid_until": NOW - timedelta(days=1)}, PromoRejection.EXPIRED),
        ({"max_uses": 3, "used_count": 3}, PromoRejection.EXHAUSTED),
        ({"applicable_providers": ["01OTHERPROVIDER00000000000"]}, PromoRejection.NOT_APPLICABLE),
        ({"min_amount": Decimal("60.00")}, PromoRejection.BELOW_MINIMUM),
    ],
)
def test_promo_rejection_reasons(fields, reason):
    with pytest.raises(PromoInvalidError) as excinfo:
        resolve_price(make_provider(), VisitType.CLINIC, promo=make_promo(**fields), at=NOW)
    assert excinfo.value.reason == reason


def test_promo_scoped_to_provider_applies():
    promo = make_promo(applicable_providers=["01PROVIDER0000000000000000"])
    assert resolve_price(make_provider(), VisitType.CLINIC, promo=promo, at=NOW).total_amount == Decimal("45.00")


def test_promo_code_is_normalised_to_uppercase():
    payload = PromoCodeCreate(
        code="  spring24 ",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("15"),
        valid_from=NOW,
        valid_until=NOW + timedelta(days=1),
    )
    assert payload.code == "SPRING24"


@pytest.mark.asyncio
async def test_lookup_is_case_insensitive_and_unknown_code_rejected(db_session):
    await create_promo(db_session, "WELCOME5")
    service = PricingService(db_session)

    assert (await service.find_promo(" welcome5 ")).code == "WELCOME5"
    with pytest.raises(PromoInvalidError) as excinfo:
        await service.find_promo("NOPE")
    assert excinfo.value.reason == PromoRejection.NOT_FOUND


@pytest.mark.asyncio
async def test_quote_is_repeatable_and_does_not_redeem(db_session):
    provider = await create_provider(db_session)
    promo = await create_promo(db_session, max_uses=1)
    service = PricingService(db_session)

    first = await service.quote(provider.provider_id, VisitType.CLINIC, "save10")
    second = await service.quote(provider.provider_id, VisitType.CLINIC, "SAVE10")

    assert first == second
    assert first.total_amount == Decimal("45.00")
    assert first.currency == "USD"
    await db_session.refresh(promo)
    assert promo.used_count == 0


@pytest.mark.asyncio
async def test_booking_redeems_promo_once(db_session):
    patient = await create_user(db_session)
    provider = await create_provider(db_session)
    promo = await create_promo(db_session)
    await PricingService(db_session).create_override(
        PricingOverrideCreate(
            provider_id=provider.provider_id,
            consultation_fee=Decimal("40.00"),
            discount_percentage=Decimal("10"),
        )
    )
    promo.min_amount = Decimal("30.00")
    await db_session.commit()
    slot = (await create_slots(db_session, provider))[0]

    appointment = await book(db_session, patient, provider, slot, promo_code="save10")

    assert appointment.total_amount == Decimal("31.00")
    assert appointment.promo_code_id == promo.promo_id
    await db_session.refresh(promo)
    assert promo.used_count == 1


@pytest.mark.asyncio
async def test_rejected_promo_leaves_slot_free(db_session):
    patient = await create_user(db_session)
    provider = await create_provider(db_session)
    await create_promo(db_session, min_amount=Decimal("100.00"))
    slot = (await create_slots(db_session, provider))[0]

    with pytest.raises(PromoInvalidError):
        await book(db_session, patient, provider, slot, promo_code="SAVE10")

    await db_session.refresh(slot)
    assert slot.is_bookable


@pytest.mark.asyncio
async def test_concurrent_redemptions_never_exceed_max_uses(session_factory):
    async with session_factory() as setup:
        promo_id = (await create_promo(setup, "LIMITED", max_uses=2)).promo_id

    sessions = [session_factory() for _ in range(4)]
    try:
        services = [PricingService(session) for session in sessions]
        # Every caller validates against the same stale snapshot first.
        for service in services:
            promo = await service.find_promo("LIMITED")
            assert promo.used_count == 0

        outcomes = []
        for session, service in zip(sessions, services):
            try:
                await service.redeem_promo(promo_id)
                await session.commit()
                outcomes.append(True)
            except PromoInvalidError as exc:
                assert exc.reason == PromoRejection.EXHAUSTED
                await session.rollback()
                outcomes.append(False)
    finally:
        for session in sessions:
            await session.close()

    assert outcomes == [True, True, False, False]
    async with session_factory() as check:
        promo = await check.get(PromoCode, promo_id)
        assert promo.used_count == 2


@pytest.mark.asyncio
async def test_second_active_override_conflicts(db_session):
    provider = await create_provider(db_session)
    service = PricingService(db_session)
    first = await service.create_override(
        PricingOverrideCreate(provider_id=provider.provider_id, consultation_fee=Decimal("45.00"))
    )

    with pytest.raises(ConflictError):
        await service.create_override(
            PricingOverrideCreate(provider_id=provider.provider_id, discount_percentage=Decimal("5"))
        )

    inactive = await service.create_override(
        PricingOverrideCreate(provider_id=provider.provider_id, discount_percentage=Decimal("5"), is_active=False)
    )
    assert not inactive.is_active
    assert (await service.get_active_override(provider.provider_id)).override_id == first.override_id


@pytest.mark.asyncio
async def test_duplicate_promo_code_conflicts(db_session):
    service = PricingService(db_session)
    payload = PromoCodeCreate(
        code="dup",
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("1"),
        valid_from=NOW,
        valid_until=NOW + timedelta(days=1),
    )
    await service.create_promo(payload)

    with pytest.raises(ConflictError):
        await service.create_promo(payload)


def test_percentage_promo_above_hundred_floors_at_zero():
    promo = make_promo(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("150"))
    assert resolve_price(make_provider(), VisitType.CLINIC, promo=promo, at=NOW).total_amount == Decimal("0.00")


@pytest.mark.asyncio
async def test_partial_update_cannot_push_percentage_promo_past_hundred(db_session):
    provider = await create_provider(db_session)
    promo = await create_promo(db_session, discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"))
    promo_id = promo.promo_id
    provider_id = provider.provider_id
    service = PricingService(db_session)

    with pytest.raises(ValidationError):
        await service.update_promo(promo_id, PromoCodeUpdate(discount_value=Decimal("150")))

    stored = await db_session.get(PromoCode, promo_id, populate_existing=True)
    assert stored.discount_value == Decimal("10.00")
    quote = await service.quote(provider_id, VisitType.CLINIC, "SAVE10")
    assert quote.total_amount == Decimal("45.00")
