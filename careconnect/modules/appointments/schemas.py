"""Appointments schemas."""

from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from careconnect.shared.enums import AppointmentStatus, VisitType


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    appointment_id: str = Field(serialization_alias="id")
    patient_id: str
    provider_id: str
    service_id: str | None = None
    time_slot_id: str | None = None
    promo_code_id: str | None = None
    rescheduled_from_id: str | None = None
    appointment_date: date
    start_time: time
    end_time: time
    visit_type: VisitType
    status: AppointmentStatus
    notes: str | None = None
    patient_address: str | None = None
    total_amount: Decimal
    created_at: datetime


class AppointmentCreate(BaseModel):
    provider_id: str
    slot_id: str
    visit_type: VisitType
    service_id: str | None = None
    promo_code: str | None = Field(None, max_length=64)
    notes: str | None = None
    patient_address: str | None = Field(None, max_length=255)


class AppointmentTransition(BaseModel):
    target_status: AppointmentStatus
    new_slot_id: str | None = None
