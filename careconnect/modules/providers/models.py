"""Provider directory ORM models (profiles and their services)."""

from __future__ import annotations

from datetime import time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careconnect.core.database import Base
from careconnect.shared.enums import ProviderType
from careconnect.shared.models import TimestampMixin, enum_column, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from careconnect.modules.pricing.models import ProviderPricingOverride
    from careconnect.modules.schedule.models import TimeSlot
    from careconnect.modules.users.models import User


class Provider(Base, TimestampMixin):
    __tablename__ = "providers"
    __table_args__ = (
        CheckConstraint("consultation_fee >= 0", name="ck_providers_consultation_fee"),
        CheckConstraint("home_visit_fee IS NULL OR home_visit_fee >= 0", name="ck_providers_home_visit_fee"),
        CheckConstraint("working_hours_end > working_hours_start", name="ck_providers_working_hours"),
    )

    provider_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    provider_type: Mapped[ProviderType] = mapped_column(enum_column(ProviderType, "providertype"), nullable=False)
    specialization: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text)
    years_experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    education: Mapped[str | None] = mapped_column(String(255))
    certifications: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    languages: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    consultation_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    home_visit_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rating: Mapped[Decimal] = mapped_column(Numeric(2, 1), default=Decimal("0.0"), nullable=False)
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 8))
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(11, 8))
    available_days: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    working_hours_start: Mapped[time] = mapped_column(Time, default=time(9, 0), nullable=False)
    working_hours_end: Mapped[time] = mapped_column(Time, default=time(18, 0), nullable=False)

    user: Mapped[User] = relationship(back_populates="provider_profile")
    services: Mapped[list[Service]] = relationship(back_populates="provider", cascade="all,delete-orphan")
    time_slots: Mapped[list[TimeSlot]] = relationship(back_populates="provider", cascade="all,delete-orphan")
    pricing_overrides: Mapped[list[ProviderPricingOverride]] = relationship(
        back_populates="provider", cascade="all,delete-orphan"
    )


class Service(Base, TimestampMixin):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_services_price_positive"),
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    service_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    provider_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("providers.provider_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    provider: Mapped[Provider] = relationship(back_populates="services")
