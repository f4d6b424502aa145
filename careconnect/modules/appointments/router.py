"""Appointment booking and lifecycle routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, get_cache
from careconnect.core.database import get_db
from careconnect.core.deps import get_current_user, require_admin, require_patient, require_provider
from careconnect.modules.appointments.models import Appointment
from careconnect.modules.appointments.schemas import AppointmentCreate, AppointmentPublic, AppointmentTransition
from careconnect.modules.appointments.service import AppointmentService
from careconnect.modules.users.models import User
from careconnect.shared.enums import AppointmentStatus

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])
admin_router = APIRouter(prefix="/api/v1/admin/appointments", tags=["admin-appointments"])


def get_service(db: AsyncSession = Depends(get_db), cache: Cache = Depends(get_cache)) -> AppointmentService:
    return AppointmentService(db, cache)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    payload: AppointmentCreate,
    current_user: User = Depends(require_patient),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.book(current_user, payload)


@router.get("/me", response_model=list[AppointmentPublic])
async def my_appointments(
    current_user: User = Depends(require_patient),
    service: AppointmentService = Depends(get_service),
) -> list[Appointment]:
    return await service.list_for_patient(current_user)


@router.get("/provider", response_model=list[AppointmentPublic])
async def provider_appointments(
    current_user: User = Depends(require_provider),
    service: AppointmentService = Depends(get_service),
) -> list[Appointment]:
    return await service.list_for_provider(current_user)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.get_for_actor(appointment_id, current_user)


@router.post("/{appointment_id}/transition", response_model=AppointmentPublic)
async def transition_appointment(
    appointment_id: str,
    payload: AppointmentTransition,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    """Move an appointment to a new status. Rescheduling returns the new appointment."""
    return await service.transition(appointment_id, current_user, payload.target_status, payload.new_slot_id)


@admin_router.get("", response_model=list[AppointmentPublic])
async def admin_list_appointments(
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> list[Appointment]:
    return await service.admin_list(status_filter)
