"""Support chat schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from careconnect.shared.enums import ChatRole


class ChatMessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("content cannot be blank")
        return value


class ChatMessagePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    message_id: str = Field(serialization_alias="id")
    content: str
    role: ChatRole
    created_at: datetime
