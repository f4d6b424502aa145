"""Public pricing routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.database import get_db
from careconnect.modules.pricing.schemas import PriceQuote, QuoteRequest
from careconnect.modules.pricing.service import PricingService

router = APIRouter(prefix="/api/v1/pricing", tags=["pricing"])


def get_service(db: AsyncSession = Depends(get_db)) -> PricingService:
    return PricingService(db)


@router.post("/quote", response_model=PriceQuote)
async def quote_price(
    payload: QuoteRequest,
    service: PricingService = Depends(get_service),
) -> PriceQuote:
    """Preview the price of a booking without redeeming the promo code."""
    return await service.quote(payload.provider_id, payload.visit_type, payload.promo_code)
