"""Fee resolution, promo redemption and admin pricing management.

``resolve_price`` is a pure function of its inputs; quotes go through it
without touching the database. Promo usage is incremented only by
``PricingService.redeem_promo``, which the booking commit calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.config import settings
from careconnect.core.exceptions import (
    ConflictError,
    FeeNotConfiguredError,
    NotFoundError,
    PromoInvalidError,
    PromoRejection,
    ValidationError,
)
from careconnect.modules.pricing.models import PromoCode, ProviderPricingOverride
from careconnect.modules.pricing.schemas import (
    PriceQuote,
    PricingOverrideCreate,
    PricingOverrideUpdate,
    PromoCodeCreate,
    PromoCodeUpdate,
)
from careconnect.modules.providers.models import Provider
from careconnect.shared.enums import DiscountType, VisitType
from careconnect.shared.timeutils import localize, now

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


class FeeSchedule(Protocol):
    consultation_fee: Decimal | None
    home_visit_fee: Decimal | None


@dataclass(frozen=True)
class PriceBreakdown:
    base_fee: Decimal
    override_fee: Decimal | None
    override_discount_percentage: Decimal | None
    subtotal: Decimal
    promo_code: str | None
    promo_discount: Decimal
    total_amount: Decimal


def select_base_fee(fees: FeeSchedule, visit_type: VisitType) -> Decimal:
    fee = fees.home_visit_fee if visit_type == VisitType.HOME else fees.consultation_fee
    if fee is None:
        raise FeeNotConfiguredError(f"Provider has no fee configured for {visit_type.value} visits")
    return Decimal(fee)


def apply_override(
    base_fee: Decimal,
    visit_type: VisitType,
    override: ProviderPricingOverride | None,
) -> tuple[Decimal | None, Decimal]:
    """Return (replacement fee or None, amount after the override)."""
    if override is None or not override.is_active:
        return None, base_fee
    replacement = override.home_visit_fee if visit_type == VisitType.HOME else override.consultation_fee
    amount = Decimal(replacement) if replacement is not None else base_fee
    if override.discount_percentage is not None:
        amount = amount * (HUNDRED - Decimal(override.discount_percentage)) / HUNDRED
    return (Decimal(replacement) if replacement is not None else None), amount


def validate_promo(promo: PromoCode, provider_id: str, amount: Decimal, at: datetime) -> None:
    if not promo.is_active:
        raise PromoInvalidError(PromoRejection.INACTIVE)
    if at < localize(promo.valid_from):
        raise PromoInvalidError(PromoRejection.NOT_YET_VALID)
    if at > localize(promo.valid_until):
        raise PromoInvalidError(PromoRejection.EXPIRED)
    if promo.max_uses is not None and (promo.used_count or 0) >= promo.max_uses:
        raise PromoInvalidError(PromoRejection.EXHAUSTED)
    if promo.applicable_providers and provider_id not in promo.applicable_providers:
        raise PromoInvalidError(PromoRejection.NOT_APPLICABLE)
    if promo.min_amount is not None and amount < Decimal(promo.min_amount):
        raise PromoInvalidError(
            PromoRejection.BELOW_MINIMUM,
            f"Promo code requires a minimum amount of {Decimal(promo.min_amount):.2f}",
        )


def apply_promo(amount: Decimal, promo: PromoCode) -> Decimal:
    value = Decimal(promo.discount_value)
    if promo.discount_type == DiscountType.PERCENTAGE:
        return max(amount * (HUNDRED - value) / HUNDRED, ZERO)
    return max(amount - value, ZERO)


def round_amount(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_price(
    provider: Provider,
    visit_type: VisitType,
    override: ProviderPricingOverride | None = None,
    promo: PromoCode | None = None,
    at: datetime | None = None,
) -> PriceBreakdown:
    """Compute the chargeable amount for a booking.

    Order: base fee by visit type, admin override (replacement then
    percentage), promo validation and discount, then half-up rounding to
    cents. Intermediate values keep full precision.
    """
    base_fee = select_base_fee(provider, visit_type)
    override_fee, subtotal = apply_override(base_fee, visit_type, override)
    amount = subtotal
    if promo is not None:
        validate_promo(promo, provider.provider_id, amount, at or now())
        amount = apply_promo(amount, promo)
    total = round_amount(amount)
    return PriceBreakdown(
        base_fee=round_amount(base_fee),
        override_fee=override_fee,
        override_discount_percentage=(
            Decimal(override.discount_percentage)
            if override is not None and override.is_active and override.discount_percentage is not None
            else None
        ),
        subtotal=round_amount(subtotal),
        promo_code=promo.code if promo is not None else None,
        promo_discount=round_amount(subtotal) - total if promo is not None else ZERO.quantize(CENT),
        total_amount=total,
    )


class PricingService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_override(self, provider_id: str) -> ProviderPricingOverride | None:
        stmt = select(ProviderPricingOverride).where(
            ProviderPricingOverride.provider_id == provider_id,
            ProviderPricingOverride.is_active.is_(True),
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_promo(self, code: str) -> PromoCode:
        normalized = code.strip().upper()
        result = await self.db.execute(select(PromoCode).where(func.upper(PromoCode.code) == normalized))
        promo = result.scalar_one_or_none()
        if promo is None:
            raise PromoInvalidError(PromoRejection.NOT_FOUND, "Promo code not found")
        return promo

    async def price_for(
        self,
        provider: Provider,
        visit_type: VisitType,
        promo_code: str | None = None,
    ) -> tuple[PriceBreakdown, PromoCode | None]:
        override = await self.get_active_override(provider.provider_id)
        promo = await self.find_promo(promo_code) if promo_code else None
        return resolve_price(provider, visit_type, override, promo), promo

    async def quote(self, provider_id: str, visit_type: VisitType, promo_code: str | None = None) -> PriceQuote:
        """Price preview; reads only, never redeems."""
        provider = await self.db.get(Provider, provider_id)
        if provider is None or not provider.is_active:
            raise NotFoundError("Provider not found")
        breakdown, _ = await self.price_for(provider, visit_type, promo_code)
        return PriceQuote(
            provider_id=provider_id,
            visit_type=visit_type,
            base_fee=breakdown.base_fee,
            override_fee=breakdown.override_fee,
            override_discount_percentage=breakdown.override_discount_percentage,
            subtotal=breakdown.subtotal,
            promo_code=breakdown.promo_code,
            promo_discount=breakdown.promo_discount,
            total_amount=breakdown.total_amount,
            currency=settings.currency,
        )

    async def redeem_promo(self, promo_id: str) -> None:
        """Count one use of a promo. Joins the caller's transaction."""
        stmt = (
            update(PromoCode)
            .where(
                PromoCode.promo_id == promo_id,
                PromoCode.is_active.is_(True),
                or_(PromoCode.max_uses.is_(None), PromoCode.used_count < PromoCode.max_uses),
            )
            .values(used_count=PromoCode.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            logger.info("Promo %s redemption refused, usage cap reached", promo_id)
            raise PromoInvalidError(PromoRejection.EXHAUSTED)

    async def list_promos(self) -> list[PromoCode]:
        result = await self.db.execute(select(PromoCode).order_by(PromoCode.created_at.desc()))
        return list(result.scalars().all())

    async def create_promo(self, payload: PromoCodeCreate) -> PromoCode:
        promo = PromoCode(**payload.model_dump())
        self.db.add(promo)
        await self._commit_unique("Promo code already exists")
        await self.db.refresh(promo)
        return promo

    async def update_promo(self, promo_id: str, payload: PromoCodeUpdate) -> PromoCode:
        promo = await self._get_promo(promo_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(promo, field, value)
        if promo.discount_type == DiscountType.PERCENTAGE and Decimal(promo.discount_value) > HUNDRED:
            await self.db.rollback()
            raise ValidationError("Percentage discounts cannot exceed 100")
        if localize(promo.valid_until) <= localize(promo.valid_from):
            await self.db.rollback()
            raise ValidationError("valid_until must be after valid_from")
        await self.db.commit()
        await self.db.refresh(promo)
        return promo

    async def delete_promo(self, promo_id: str) -> None:
        promo = await self._get_promo(promo_id)
        await self.db.delete(promo)
        await self.db.commit()

    async def list_overrides(self) -> list[ProviderPricingOverride]:
        stmt = select(ProviderPricingOverride).order_by(ProviderPricingOverride.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_override(self, payload: PricingOverrideCreate) -> ProviderPricingOverride:
        if await self.db.get(Provider, payload.provider_id) is None:
            raise NotFoundError("Provider not found")
        if payload.is_active and await self.get_active_override(payload.provider_id) is not None:
            raise ConflictError("Provider already has an active pricing override")
        override = ProviderPricingOverride(**payload.model_dump())
        self.db.add(override)
        await self._commit_unique("Provider already has an active pricing override")
        await self.db.refresh(override)
        logger.info("Pricing override %s created for provider %s", override.override_id, override.provider_id)
        return override

    async def update_override(self, override_id: str, payload: PricingOverrideUpdate) -> ProviderPricingOverride:
        override = await self._get_override(override_id)
        update_data = payload.model_dump(exclude_unset=True)
        if update_data.get("is_active") and not override.is_active:
            active = await self.get_active_override(override.provider_id)
            if active is not None:
                raise ConflictError("Provider already has an active pricing override")
        for field, value in update_data.items():
            setattr(override, field, value)
        await self._commit_unique("Provider already has an active pricing override")
        await self.db.refresh(override)
        return override

    async def delete_override(self, override_id: str) -> None:
        override = await self._get_override(override_id)
        await self.db.delete(override)
        await self.db.commit()

    async def _commit_unique(self, message: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(message) from exc

    async def _get_promo(self, promo_id: str) -> PromoCode:
        promo = await self.db.get(PromoCode, promo_id)
        if promo is None:
            raise NotFoundError("Promo code not found")
        return promo

    async def _get_override(self, override_id: str) -> ProviderPricingOverride:
        override = await self.db.get(ProviderPricingOverride, override_id)
        if override is None:
            raise NotFoundError("Pricing override not found")
        return override
