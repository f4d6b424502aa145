"""Payment and wallet schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from careconnect.shared.enums import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    appointment_id: str
    payment_method: PaymentMethod = PaymentMethod.CARD
    external_reference: str | None = Field(None, max_length=255)


class PaymentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    payment_id: str = Field(serialization_alias="id")
    appointment_id: str
    patient_id: str
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    status: PaymentStatus
    external_reference: str | None = None
    created_at: datetime


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus
    external_reference: str | None = Field(None, max_length=255)


class WalletPublic(BaseModel):
    balance: Decimal
    currency: str


class WalletTopUp(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
