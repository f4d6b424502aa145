"""Review submission and provider rating aggregation."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, cache as default_cache
from careconnect.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from careconnect.modules.appointments.models import Appointment
from careconnect.modules.providers.models import Provider
from careconnect.modules.reviews.models import Review
from careconnect.modules.reviews.schemas import ReviewCreate
from careconnect.modules.users.models import User
from careconnect.shared.enums import AppointmentStatus

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


class ReviewService:
    def __init__(self, db: AsyncSession, cache: Cache | None = None):
        self.db = db
        self.cache = cache or default_cache

    async def create(self, patient: User, payload: ReviewCreate) -> Review:
        appointment = await self.db.get(Appointment, payload.appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        if appointment.patient_id != patient.user_id:
            raise PermissionDeniedError("Only the patient of an appointment can review it")
        if appointment.status != AppointmentStatus.COMPLETED:
            raise ValidationError("Only completed appointments can be reviewed")
        existing = await self.db.execute(select(Review.review_id).where(Review.appointment_id == appointment.appointment_id))
        if existing.first() is not None:
            raise ConflictError("Appointment already reviewed")

        review = Review(
            appointment_id=appointment.appointment_id,
            patient_id=patient.user_id,
            provider_id=appointment.provider_id,
            rating=payload.rating,
            comment=payload.comment,
        )
        self.db.add(review)
        try:
            await self.db.flush()
            await self._recompute_rating(appointment.provider_id)
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError("Appointment already reviewed") from exc

        await self.db.refresh(review)
        await self.cache.invalidate_provider(appointment.provider_id)
        logger.info("Review %s stored for provider %s", review.review_id, review.provider_id)
        return review

    async def list_for_provider(self, provider_id: str, limit: int = 50, offset: int = 0) -> list[Review]:
        provider = await self.db.get(Provider, provider_id)
        if provider is None or not provider.is_active:
            raise NotFoundError("Provider not found")
        stmt = (
            select(Review)
            .where(Review.provider_id == provider_id)
            .order_by(Review.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _recompute_rating(self, provider_id: str) -> None:
        stmt = select(func.avg(Review.rating), func.count(Review.review_id)).where(Review.provider_id == provider_id)
        average, count = (await self.db.execute(stmt)).one()
        provider = await self.db.get(Provider, provider_id)
        if provider is None:
            raise NotFoundError("Provider not found")
        provider.total_reviews = count
        provider.rating = (
            Decimal(str(average)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP) if count else Decimal("0.0")
        )
