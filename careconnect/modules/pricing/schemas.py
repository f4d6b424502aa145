"""Pricing schemas: quotes, promo codes and provider overrides."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from careconnect.shared.enums import DiscountType, VisitType


def _normalize_code(value: str) -> str:
    cleaned = value.strip().upper()
    if not cleaned:
        raise ValueError("code cannot be blank")
    return cleaned


class QuoteRequest(BaseModel):
    provider_id: str
    visit_type: VisitType
    promo_code: str | None = None


class PriceQuote(BaseModel):
    provider_id: str
    visit_type: VisitType
    base_fee: Decimal
    override_fee: Decimal | None = None
    override_discount_percentage: Decimal | None = None
    subtotal: Decimal
    promo_code: str | None = None
    promo_discount: Decimal
    total_amount: Decimal
    currency: str


class _PromoRules(BaseModel):
    @model_validator(mode="after")
    def validate_rules(self):
        discount_type = getattr(self, "discount_type", None)
        value = getattr(self, "discount_value", None)
        if discount_type == DiscountType.PERCENTAGE and value is not None and value > 100:
            raise ValueError("percentage discounts cannot exceed 100")
        valid_from = getattr(self, "valid_from", None)
        valid_until = getattr(self, "valid_until", None)
        if valid_from is not None and valid_until is not None and valid_until <= valid_from:
            raise ValueError("valid_until must be after valid_from")
        return self


class PromoCodeCreate(_PromoRules):
    code: str = Field(..., max_length=64)
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    max_uses: int | None = Field(None, gt=0)
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True
    applicable_providers: list[str] | None = None
    min_amount: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return _normalize_code(value)


class PromoCodeUpdate(_PromoRules):
    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    max_uses: int | None = Field(None, gt=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool | None = None
    applicable_providers: list[str] | None = None
    min_amount: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)


class PromoCodePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    promo_id: str = Field(serialization_alias="id")
    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal
    max_uses: int | None = None
    used_count: int
    valid_from: datetime
    valid_until: datetime
    is_active: bool
    applicable_providers: list[str] | None = None
    min_amount: Decimal | None = None


class PricingOverrideCreate(BaseModel):
    provider_id: str
    consultation_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    home_visit_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount_percentage: Decimal | None = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    notes: str | None = None
    is_active: bool = True


class PricingOverrideUpdate(BaseModel):
    consultation_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    home_visit_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount_percentage: Decimal | None = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    notes: str | None = None
    is_active: bool | None = None


class PricingOverridePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    override_id: str = Field(serialization_alias="id")
    provider_id: str
    consultation_fee: Decimal | None = None
    home_visit_fee: Decimal | None = None
    discount_percentage: Decimal | None = None
    notes: str | None = None
    is_active: bool
