"""Review schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    appointment_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)


class ReviewPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    review_id: str = Field(serialization_alias="id")
    appointment_id: str
    patient_id: str
    provider_id: str
    rating: int
    comment: str | None = None
    created_at: datetime
