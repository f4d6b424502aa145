"""Payments and wallet service layer."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.config import settings
from careconnect.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from careconnect.modules.appointments.models import Appointment
from careconnect.modules.payments.models import Payment
from careconnect.modules.payments.schemas import PaymentCreate
from careconnect.modules.users.models import User
from careconnect.shared.enums import AppointmentStatus, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})
WITHDRAWN_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.RESCHEDULED})
SETTLED_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED})


class PaymentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(self, patient: User, payload: PaymentCreate) -> Payment:
        appointment = await self.db.get(Appointment, payload.appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        if appointment.patient_id != patient.user_id:
            raise PermissionDeniedError("Cannot pay for another patient's appointment")
        if appointment.status not in PAYABLE_STATUSES:
            raise ValidationError("Only pending or confirmed appointments can be paid")
        existing = await self.db.execute(
            select(Payment.payment_id).where(
                Payment.appointment_id == appointment.appointment_id,
                Payment.status != PaymentStatus.FAILED,
            )
        )
        if existing.first() is not None:
            raise ConflictError("Appointment already has a payment")

        amount = Decimal(appointment.total_amount)
        try:
            if payload.payment_method == PaymentMethod.WALLET:
                await self._debit_wallet(patient.user_id, amount)
                status = PaymentStatus.COMPLETED
            else:
                status = PaymentStatus.PENDING
            payment = Payment(
                appointment_id=appointment.appointment_id,
                patient_id=patient.user_id,
                amount=amount,
                currency=settings.currency,
                payment_method=payload.payment_method,
                status=status,
                external_reference=payload.external_reference,
            )
            self.db.add(payment)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(payment)
        logger.info(
            "Recorded %s payment %s of %s for appointment %s (%s)",
            payment.payment_method.value,
            payment.payment_id,
            payment.amount,
            appointment.appointment_id,
            payment.status.value,
        )
        return payment

    async def update_status(
        self,
        payment_id: str,
        target: PaymentStatus,
        external_reference: str | None = None,
    ) -> Payment:
        """Settle a pending payment the way a gateway callback would."""
        if target not in SETTLED_STATUSES:
            raise ValidationError("Payments can only be marked completed or failed")
        payment = await self._get(payment_id)
        if target == PaymentStatus.COMPLETED:
            appointment = await self.db.get(Appointment, payment.appointment_id, populate_existing=True)
            if appointment is not None and appointment.status in WITHDRAWN_STATUSES:
                raise InvalidTransitionError(
                    f"Cannot complete a payment for a {appointment.status.value} appointment"
                )
        values: dict = {"status": target}
        if external_reference is not None:
            values["external_reference"] = external_reference
        stmt = (
            update(Payment)
            .where(Payment.payment_id == payment_id, Payment.status == PaymentStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            await self.db.rollback()
            raise InvalidTransitionError("Only pending payments can be settled")
        await self.db.commit()
        logger.info("Payment %s marked %s", payment_id, target.value)
        return await self._get(payment_id, refresh=True)

    async def list_for_patient(self, patient: User) -> list[Payment]:
        stmt = select(Payment).where(Payment.patient_id == patient.user_id).order_by(Payment.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def admin_list(self, status: PaymentStatus | None = None) -> list[Payment]:
        stmt = select(Payment).order_by(Payment.created_at.desc())
        if status is not None:
            stmt = stmt.where(Payment.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def wallet_balance(self, user: User) -> Decimal:
        fresh = await self.db.get(User, user.user_id, populate_existing=True)
        if fresh is None:
            raise NotFoundError("User not found")
        return Decimal(fresh.wallet_balance)

    async def top_up(self, user: User, amount: Decimal) -> Decimal:
        if amount <= 0:
            raise ValidationError("Top-up amount must be positive")
        stmt = (
            update(User)
            .where(User.user_id == user.user_id)
            .values(wallet_balance=User.wallet_balance + amount)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)
        await self.db.commit()
        logger.info("Wallet of user %s topped up by %s", user.user_id, amount)
        return await self.wallet_balance(user)

    async def _debit_wallet(self, user_id: str, amount: Decimal) -> None:
        stmt = (
            update(User)
            .where(User.user_id == user_id, User.wallet_balance >= amount)
            .values(wallet_balance=User.wallet_balance - amount)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise ValidationError("Insufficient wallet balance")

    async def _get(self, payment_id: str, refresh: bool = False) -> Payment:
        payment = await self.db.get(Payment, payment_id, populate_existing=refresh)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment
