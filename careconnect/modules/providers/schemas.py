"""Provider directory schemas."""

from datetime import time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from careconnect.shared.enums import Language, ProviderType, Weekday


def _unique(values: list) -> list:
    if len(set(values)) != len(values):
        raise ValueError("values must not repeat")
    return values


class _ProviderProfileFields(BaseModel):
    """Validation shared by create and update payloads."""

    certifications: list[str] | None = None
    languages: list[Language] | None = None
    available_days: list[Weekday] | None = None
    working_hours_start: time | None = None
    working_hours_end: time | None = None

    @field_validator("certifications")
    @classmethod
    def clean_certifications(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        cleaned = [item.strip() for item in value]
        if any(not item for item in cleaned):
            raise ValueError("certifications cannot contain blank entries")
        return _unique(cleaned)

    @field_validator("languages", "available_days")
    @classmethod
    def no_duplicates(cls, value: list | None) -> list | None:
        return value if value is None else _unique(value)

    @model_validator(mode="after")
    def validate_hours(self):
        start, end = self.working_hours_start, self.working_hours_end
        if start is not None and end is not None and start >= end:
            raise ValueError("working_hours_start must be before working_hours_end")
        return self


class ProviderCreate(_ProviderProfileFields):
    user_id: str
    provider_type: ProviderType
    specialization: str = Field(..., min_length=1, max_length=255)
    bio: str | None = None
    years_experience: int = Field(0, ge=0)
    education: str | None = None
    consultation_fee: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    home_visit_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    latitude: Decimal | None = None
    longitude: Decimal | None = None
    is_verified: bool = False
    certifications: list[str] = Field(default_factory=list)
    languages: list[Language] = Field(default_factory=list)
    available_days: list[Weekday] = Field(
        default_factory=lambda: [
            Weekday.MONDAY,
            Weekday.TUESDAY,
            Weekday.WEDNESDAY,
            Weekday.THURSDAY,
            Weekday.FRIDAY,
        ]
    )
    working_hours_start: time = time(9, 0)
    working_hours_end: time = time(18, 0)


class ProviderUpdate(_ProviderProfileFields):
    specialization: str | None = Field(None, min_length=1, max_length=255)
    bio: str | None = None
    years_experience: int | None = Field(None, ge=0)
    education: str | None = None
    consultation_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    home_visit_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    latitude: Decimal | None = None
    longitude: Decimal | None = None


class ProviderAdminUpdate(BaseModel):
    is_verified: bool | None = None
    is_active: bool | None = None


class ProviderPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    provider_id: str = Field(serialization_alias="id")
    user_id: str
    provider_type: ProviderType
    specialization: str
    bio: str | None = None
    years_experience: int
    education: str | None = None
    certifications: list[str]
    languages: list[Language]
    consultation_fee: Decimal
    home_visit_fee: Decimal | None = None
    is_verified: bool
    is_active: bool
    rating: Decimal
    total_reviews: int
    latitude: Decimal | None = None
    longitude: Decimal | None = None
    available_days: list[Weekday]
    working_hours_start: time
    working_hours_end: time


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    duration_minutes: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    is_active: bool = True


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    service_id: str = Field(serialization_alias="id")
    provider_id: str
    name: str
    description: str | None = None
    duration_minutes: int
    price: Decimal
    is_active: bool
