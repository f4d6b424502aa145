"""Appointment ORM model."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careconnect.core.database import Base
from careconnect.shared.enums import AppointmentStatus, VisitType
from careconnect.shared.models import TimestampMixin, enum_column, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from careconnect.modules.providers.models import Provider, Service
    from careconnect.modules.schedule.models import TimeSlot
    from careconnect.modules.users.models import User


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_provider_date", "provider_id", "appointment_date"),
        Index("ix_appointments_patient", "patient_id"),
        CheckConstraint("end_time > start_time", name="ck_appointments_time_order"),
        CheckConstraint("total_amount >= 0", name="ck_appointments_amount_positive"),
    )

    appointment_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    patient_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    provider_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("providers.provider_id", ondelete="RESTRICT"),
        nullable=False,
    )
    service_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("services.service_id", ondelete="SET NULL"),
    )
    time_slot_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("time_slots.slot_id", ondelete="SET NULL"),
    )
    promo_code_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("promo_codes.promo_id", ondelete="SET NULL"),
    )
    rescheduled_from_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="SET NULL"),
    )
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    visit_type: Mapped[VisitType] = mapped_column(enum_column(VisitType, "visittype"), nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        enum_column(AppointmentStatus, "appointmentstatus"),
        default=AppointmentStatus.PENDING,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    patient_address: Mapped[str | None] = mapped_column(String(255))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    patient: Mapped[User] = relationship()
    provider: Mapped[Provider] = relationship()
    service: Mapped[Service | None] = relationship()
    time_slot: Mapped[TimeSlot | None] = relationship()
