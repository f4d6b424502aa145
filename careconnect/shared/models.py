"""Reusable ORM mixins and column helpers."""

from datetime import datetime
from enum import StrEnum

import ulid
from sqlalchemy import DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from careconnect.shared.enums import enum_values


def generate_ulid() -> str:
    """String ULID used for every primary key; sorts by creation time."""
    return str(ulid.new())


def enum_column(enum_cls: type[StrEnum], name: str) -> Enum:
    """SQLAlchemy Enum storing member values rather than names."""
    return Enum(enum_cls, values_callable=enum_values, validate_strings=True, name=name)


class TimestampMixin:
    """Creation and last-update times, set by the database."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
