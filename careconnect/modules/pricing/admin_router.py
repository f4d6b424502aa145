"""Admin routes for promo codes and provider pricing overrides."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.database import get_db
from careconnect.core.deps import require_admin
from careconnect.modules.pricing.models import PromoCode, ProviderPricingOverride
from careconnect.modules.pricing.schemas import (
    PricingOverrideCreate,
    PricingOverridePublic,
    PricingOverrideUpdate,
    PromoCodeCreate,
    PromoCodePublic,
    PromoCodeUpdate,
)
from careconnect.modules.pricing.service import PricingService
from careconnect.modules.users.models import User

router = APIRouter(prefix="/api/v1/admin", tags=["admin-pricing"])


def get_service(db: AsyncSession = Depends(get_db)) -> PricingService:
    return PricingService(db)


@router.get("/promo-codes", response_model=list[PromoCodePublic])
async def list_promo_codes(
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> list[PromoCode]:
    return await service.list_promos()


@router.post("/promo-codes", response_model=PromoCodePublic, status_code=status.HTTP_201_CREATED)
async def create_promo_code(
    payload: PromoCodeCreate,
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> PromoCode:
    return await service.create_promo(payload)


@router.patch("/promo-codes/{promo_id}", response_model=PromoCodePublic)
async def update_promo_code(
    promo_id: str,
    payload: PromoCodeUpdate,
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> PromoCode:
    return await service.update_promo(promo_id, payload)


@router.delete("/promo-codes/{promo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_promo_code(
    promo_id: str,
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> None:
    await service.delete_promo(promo_id)


@router.get("/pricing-overrides", response_model=list[PricingOverridePublic])
async def list_pricing_overrides(
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> list[ProviderPricingOverride]:
    return await service.list_overrides()


@router.post("/pricing-overrides", response_model=PricingOverridePublic, status_code=status.HTTP_201_CREATED)
async def create_pricing_override(
    payload: PricingOverrideCreate,
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> ProviderPricingOverride:
    return await service.create_override(payload)


@router.patch("/pricing-overrides/{override_id}", response_model=PricingOverridePublic)
async def update_pricing_override(
    override_id: str,
    payload: PricingOverrideUpdate,
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> ProviderPricingOverride:
    return await service.update_override(override_id, payload)


@router.delete("/pricing-overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pricing_override(
    override_id: str,
    _: User = Depends(require_admin),
    service: PricingService = Depends(get_service),
) -> None:
    await service.delete_override(override_id)
