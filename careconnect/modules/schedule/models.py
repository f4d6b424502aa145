"""Time slot ORM model."""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careconnect.core.database import Base
from careconnect.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from careconnect.modules.providers.models import Provider


class TimeSlot(Base, TimestampMixin):
    __tablename__ = "time_slots"
    __table_args__ = (
        UniqueConstraint("provider_id", "slot_date", "start_time", name="uq_time_slot_start"),
        CheckConstraint("end_time > start_time", name="ck_time_slots_time_order"),
        CheckConstraint("NOT (is_booked AND is_blocked)", name="ck_time_slots_booked_xor_blocked"),
        Index("ix_time_slots_provider_date", "provider_id", "slot_date"),
    )

    slot_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    provider_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("providers.provider_id", ondelete="CASCADE"),
        nullable=False,
    )
    slot_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    provider: Mapped[Provider] = relationship(back_populates="time_slots")

    @property
    def is_bookable(self) -> bool:
        return not self.is_booked and not self.is_blocked
