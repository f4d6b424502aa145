"""Promo code and pricing override ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careconnect.core.database import Base
from careconnect.shared.enums import DiscountType
from careconnect.shared.models import TimestampMixin, enum_column, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from careconnect.modules.providers.models import Provider


class PromoCode(Base, TimestampMixin):
    __tablename__ = "promo_codes"
    __table_args__ = (
        CheckConstraint("discount_value >= 0", name="ck_promo_codes_value_positive"),
        CheckConstraint("used_count >= 0", name="ck_promo_codes_used_positive"),
        CheckConstraint("max_uses IS NULL OR used_count <= max_uses", name="ck_promo_codes_usage_cap"),
        CheckConstraint("valid_until > valid_from", name="ck_promo_codes_window"),
    )

    promo_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    code: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    discount_type: Mapped[DiscountType] = mapped_column(enum_column(DiscountType, "discounttype"), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_uses: Mapped[int | None] = mapped_column(Integer)
    used_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    applicable_providers: Mapped[list[str] | None] = mapped_column(JSON)
    min_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))


class ProviderPricingOverride(Base, TimestampMixin):
    __tablename__ = "provider_pricing_overrides"
    __table_args__ = (
        # One active override per provider; inactive history rows are unrestricted.
        Index(
            "uq_pricing_override_active_provider",
            "provider_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        CheckConstraint(
            "discount_percentage IS NULL OR (discount_percentage >= 0 AND discount_percentage <= 100)",
            name="ck_pricing_overrides_discount_range",
        ),
    )

    override_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    provider_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("providers.provider_id", ondelete="CASCADE"),
        nullable=False,
    )
    consultation_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    home_visit_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    discount_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    provider: Mapped[Provider] = relationship(back_populates="pricing_overrides")
