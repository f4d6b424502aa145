"""Pydantic schemas for users."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from careconnect.shared.enums import UserRole


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_id: str = Field(serialization_alias="id")
    email: str
    first_name: str
    last_name: str
    role: UserRole
    phone: str | None = None
    avatar_url: str | None = None
    address: str | None = None
    city: str | None = None
    wallet_balance: Decimal
    is_active: bool
    created_at: datetime

    @computed_field(return_type=str)
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    avatar_url: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)


class UserAdminUpdate(BaseModel):
    role: UserRole | None = None
    is_active: bool | None = None
