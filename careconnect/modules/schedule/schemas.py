"""Schedule schemas."""

from datetime import date, time

from pydantic import BaseModel, ConfigDict, Field


class SlotWindow(BaseModel):
    start: time
    end: time


class SlotBatchCreate(BaseModel):
    slot_date: date
    windows: list[SlotWindow] = Field(default_factory=list)
    slot_minutes: int | None = Field(None, gt=0, le=480)
    provider_id: str | None = None


class TimeSlotPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    slot_id: str = Field(serialization_alias="id")
    provider_id: str
    slot_date: date
    start_time: time
    end_time: time
    is_booked: bool
    is_blocked: bool
