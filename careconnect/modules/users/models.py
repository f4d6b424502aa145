"""ORM models for the users domain."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careconnect.core.database import Base
from careconnect.shared.enums import UserRole
from careconnect.shared.models import TimestampMixin, enum_column, generate_ulid

if TYPE_CHECKING:  # pragma: no cover - typing only
    from careconnect.modules.providers.models import Provider


class User(Base, TimestampMixin):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_non_negative"),)

    user_id: Mapped[str] = mapped_column(
        String(26),
        primary_key=True,
        default=generate_ulid,
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(
        enum_column(UserRole, "userrole"),
        nullable=False,
        default=UserRole.PATIENT,
    )
    avatar_url: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(120))
    wallet_balance: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    provider_profile: Mapped[Provider | None] = relationship(back_populates="user", uselist=False)


# Late imports so every relationship target is registered with the mapper.
from careconnect.modules.appointments.models import Appointment  # noqa: E402,F401
from careconnect.modules.chat.models import ChatMessage  # noqa: E402,F401
from careconnect.modules.payments.models import Payment  # noqa: E402,F401
from careconnect.modules.pricing.models import PromoCode, ProviderPricingOverride  # noqa: E402,F401
from careconnect.modules.providers.models import Provider  # noqa: E402,F811
from careconnect.modules.reviews.models import Review  # noqa: E402,F401
from careconnect.modules.schedule.models import TimeSlot  # noqa: E402,F401
