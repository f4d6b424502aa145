"""Payment and wallet routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.config import settings
from careconnect.core.database import get_db
from careconnect.core.deps import get_current_user, require_admin, require_patient
from careconnect.modules.payments.models import Payment
from careconnect.modules.payments.schemas import (
    PaymentCreate,
    PaymentPublic,
    PaymentStatusUpdate,
    WalletPublic,
    WalletTopUp,
)
from careconnect.modules.payments.service import PaymentService
from careconnect.modules.users.models import User
from careconnect.shared.enums import PaymentStatus

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])
wallet_router = APIRouter(prefix="/api/v1/wallet", tags=["wallet"])
admin_router = APIRouter(prefix="/api/v1/admin/payments", tags=["admin-payments"])


def get_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


@router.post("", response_model=PaymentPublic, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payload: PaymentCreate,
    current_user: User = Depends(require_patient),
    service: PaymentService = Depends(get_service),
) -> Payment:
    return await service.record(current_user, payload)


@router.get("/me", response_model=list[PaymentPublic])
async def my_payments(
    current_user: User = Depends(require_patient),
    service: PaymentService = Depends(get_service),
) -> list[Payment]:
    return await service.list_for_patient(current_user)


@wallet_router.get("", response_model=WalletPublic)
async def wallet(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_service),
) -> WalletPublic:
    balance = await service.wallet_balance(current_user)
    return WalletPublic(balance=balance, currency=settings.currency)


@wallet_router.post("/topup", response_model=WalletPublic)
async def top_up_wallet(
    payload: WalletTopUp,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_service),
) -> WalletPublic:
    balance = await service.top_up(current_user, payload.amount)
    return WalletPublic(balance=balance, currency=settings.currency)


@admin_router.get("", response_model=list[PaymentPublic])
async def admin_list_payments(
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    _: User = Depends(require_admin),
    service: PaymentService = Depends(get_service),
) -> list[Payment]:
    return await service.admin_list(status_filter)


@admin_router.patch("/{payment_id}", response_model=PaymentPublic)
async def settle_payment(
    payment_id: str,
    payload: PaymentStatusUpdate,
    _: User = Depends(require_admin),
    service: PaymentService = Depends(get_service),
) -> Payment:
    return await service.update_status(payment_id, payload.status, payload.external_reference)
