"""Appointment booking and lifecycle service.

Each public write is one unit of work: slot reservation, promo redemption,
status changes and refunds are flushed inside a single transaction and any
failure rolls the whole thing back.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, cache as default_cache
from careconnect.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from careconnect.modules.appointments.models import Appointment
from careconnect.modules.appointments.schemas import AppointmentCreate
from careconnect.modules.appointments.transitions import RELEASES_SLOT, ensure_transition
from careconnect.modules.payments.models import Payment
from careconnect.modules.pricing.service import PricingService
from careconnect.modules.providers.models import Provider, Service
from careconnect.modules.providers.service import ProviderService
from careconnect.modules.schedule.models import TimeSlot
from careconnect.modules.schedule.service import SlotAllocator, has_started
from careconnect.modules.users.models import User
from careconnect.shared.enums import AppointmentStatus, PaymentStatus, UserRole, VisitType

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(self, db: AsyncSession, cache: Cache | None = None):
        self.db = db
        self.cache = cache or default_cache
        self.slots = SlotAllocator(db, self.cache)
        self.pricing = PricingService(db)
        self.providers = ProviderService(db, self.cache)

    async def book(self, patient: User, payload: AppointmentCreate) -> Appointment:
        provider = await self._get_provider(payload.provider_id)
        slot = await self.slots.get_slot(payload.slot_id)
        if slot.provider_id != provider.provider_id:
            raise ValidationError("Slot does not belong to this provider")
        self._ensure_upcoming(slot)
        if payload.service_id:
            await self._ensure_service(provider, payload.service_id)
        address = payload.patient_address or patient.address
        if payload.visit_type == VisitType.HOME and not address:
            raise ValidationError("Home visits require a patient address")

        breakdown, promo = await self.pricing.price_for(provider, payload.visit_type, payload.promo_code)

        try:
            await self.slots.reserve_slot(slot.slot_id)
            if promo is not None:
                await self.pricing.redeem_promo(promo.promo_id)
            appointment = Appointment(
                patient_id=patient.user_id,
                provider_id=provider.provider_id,
                service_id=payload.service_id,
                time_slot_id=slot.slot_id,
                promo_code_id=promo.promo_id if promo is not None else None,
                appointment_date=slot.slot_date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                visit_type=payload.visit_type,
                status=AppointmentStatus.PENDING,
                notes=payload.notes,
                patient_address=address if payload.visit_type == VisitType.HOME else payload.patient_address,
                total_amount=breakdown.total_amount,
            )
            self.db.add(appointment)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(appointment)
        await self.cache.invalidate_availability(provider.provider_id)
        logger.info(
            "Booked appointment %s for patient %s with provider %s (total %s)",
            appointment.appointment_id,
            patient.user_id,
            provider.provider_id,
            appointment.total_amount,
        )
        return appointment

    async def transition(
        self,
        appointment_id: str,
        actor: User,
        target: AppointmentStatus,
        new_slot_id: str | None = None,
    ) -> Appointment:
        """Apply a status change; rescheduling returns the replacement appointment."""
        appointment = await self._get_by_id(appointment_id)
        actor_role = await self._actor_role(appointment, actor)
        ensure_transition(appointment.status, target, actor_role)
        if target == AppointmentStatus.RESCHEDULED:
            return await self._reschedule(appointment, new_slot_id)

        current = appointment.status
        try:
            await self._set_status(appointment.appointment_id, current, target)
            if target in RELEASES_SLOT and appointment.time_slot_id:
                await self.slots.release_slot(appointment.time_slot_id)
            if target == AppointmentStatus.CANCELLED:
                await self._close_payments(appointment.appointment_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if target in RELEASES_SLOT:
            await self.cache.invalidate_availability(appointment.provider_id)
        logger.info(
            "Appointment %s moved %s -> %s by %s %s",
            appointment_id,
            current.value,
            target.value,
            actor_role.value,
            actor.user_id,
        )
        return await self._get_by_id(appointment_id, refresh=True)

    async def _reschedule(self, appointment: Appointment, new_slot_id: str | None) -> Appointment:
        if not new_slot_id:
            raise ValidationError("new_slot_id is required to reschedule")
        new_slot = await self.slots.get_slot(new_slot_id)
        if new_slot.provider_id != appointment.provider_id:
            raise ValidationError("Replacement slot must belong to the same provider")
        self._ensure_upcoming(new_slot)

        try:
            # Reserve first so a lost race leaves the original appointment untouched.
            await self.slots.reserve_slot(new_slot.slot_id)
            await self._set_status(
                appointment.appointment_id,
                AppointmentStatus.CONFIRMED,
                AppointmentStatus.RESCHEDULED,
            )
            if appointment.time_slot_id:
                await self.slots.release_slot(appointment.time_slot_id)
            replacement = Appointment(
                patient_id=appointment.patient_id,
                provider_id=appointment.provider_id,
                service_id=appointment.service_id,
                time_slot_id=new_slot.slot_id,
                promo_code_id=appointment.promo_code_id,
                rescheduled_from_id=appointment.appointment_id,
                appointment_date=new_slot.slot_date,
                start_time=new_slot.start_time,
                end_time=new_slot.end_time,
                visit_type=appointment.visit_type,
                status=AppointmentStatus.PENDING,
                notes=appointment.notes,
                patient_address=appointment.patient_address,
                total_amount=appointment.total_amount,
            )
            self.db.add(replacement)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(replacement)
        await self.cache.invalidate_availability(appointment.provider_id)
        logger.info(
            "Appointment %s rescheduled as %s on slot %s",
            appointment.appointment_id,
            replacement.appointment_id,
            new_slot.slot_id,
        )
        return replacement

    async def get_for_actor(self, appointment_id: str, actor: User) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        await self._actor_role(appointment, actor)
        return appointment

    async def list_for_patient(self, patient: User) -> list[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.patient_id == patient.user_id)
            .order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_provider(self, user: User) -> list[Appointment]:
        provider = await self.providers.get_own(user)
        stmt = (
            select(Appointment)
            .where(Appointment.provider_id == provider.provider_id)
            .order_by(Appointment.appointment_date, Appointment.start_time)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def admin_list(self, status: AppointmentStatus | None = None) -> list[Appointment]:
        stmt = select(Appointment).order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
        if status is not None:
            stmt = stmt.where(Appointment.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _actor_role(self, appointment: Appointment, actor: User) -> UserRole:
        if actor.role == UserRole.ADMIN:
            return UserRole.ADMIN
        if actor.role == UserRole.PROVIDER:
            provider = await self.providers.get_for_user(actor.user_id)
            if provider is not None and provider.provider_id == appointment.provider_id:
                return UserRole.PROVIDER
        if actor.user_id == appointment.patient_id:
            return UserRole.PATIENT
        raise PermissionDeniedError("Not a participant of this appointment")

    async def _set_status(self, appointment_id: str, current: AppointmentStatus, target: AppointmentStatus) -> None:
        stmt = (
            update(Appointment)
            .where(Appointment.appointment_id == appointment_id, Appointment.status == current)
            .values(status=target)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise InvalidTransitionError("Appointment was modified concurrently")

    async def _close_payments(self, appointment_id: str) -> None:
        """Refund completed payments and fail unsettled ones of a cancelled appointment."""
        # The gateway executes the refund; only the status is tracked here.
        for current, target in (
            (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED),
            (PaymentStatus.PENDING, PaymentStatus.FAILED),
        ):
            stmt = (
                update(Payment)
                .where(Payment.appointment_id == appointment_id, Payment.status == current)
                .values(status=target)
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(stmt)
            if result.rowcount:
                logger.info(
                    "Marked %d payment(s) %s for appointment %s", result.rowcount, target.value, appointment_id
                )

    @staticmethod
    def _ensure_upcoming(slot: TimeSlot) -> None:
        if has_started(slot.slot_date, slot.start_time):
            raise ValidationError("Slot has already started")

    async def _get_provider(self, provider_id: str) -> Provider:
        provider = await self.db.get(Provider, provider_id)
        if provider is None or not provider.is_active:
            raise NotFoundError("Provider not found")
        return provider

    async def _ensure_service(self, provider: Provider, service_id: str) -> Service:
        service = await self.db.get(Service, service_id)
        if service is None or not service.is_active:
            raise NotFoundError("Service not found")
        if service.provider_id != provider.provider_id:
            raise ValidationError("Service is not offered by this provider")
        return service

    async def _get_by_id(self, appointment_id: str, refresh: bool = False) -> Appointment:
        appointment = await self.db.get(Appointment, appointment_id, populate_existing=refresh)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment
