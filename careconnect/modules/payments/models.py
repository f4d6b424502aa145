"""Payment ORM model."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from careconnect.core.database import Base
from careconnect.shared.enums import PaymentMethod, PaymentStatus
from careconnect.shared.models import TimestampMixin, enum_column, generate_ulid


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_appointment", "appointment_id"),
        CheckConstraint("amount >= 0", name="ck_payments_amount_positive"),
    )

    payment_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    appointment_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        nullable=False,
    )
    patient_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    payment_method: Mapped[PaymentMethod] = mapped_column(
        enum_column(PaymentMethod, "paymentmethod"),
        nullable=False,
        default=PaymentMethod.CARD,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus, "paymentstatus"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    external_reference: Mapped[str | None] = mapped_column(String(255))
