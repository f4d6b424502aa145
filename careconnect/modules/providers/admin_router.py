"""Admin provider management routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, get_cache
from careconnect.core.database import get_db
from careconnect.core.deps import require_admin
from careconnect.modules.providers.models import Provider
from careconnect.modules.providers.schemas import ProviderAdminUpdate, ProviderCreate, ProviderPublic
from careconnect.modules.providers.service import ProviderService
from careconnect.modules.users.models import User

router = APIRouter(prefix="/api/v1/admin/providers", tags=["admin-providers"])


def get_service(db: AsyncSession = Depends(get_db), cache: Cache = Depends(get_cache)) -> ProviderService:
    return ProviderService(db, cache)


@router.get("", response_model=list[ProviderPublic])
async def list_providers(
    _: User = Depends(require_admin),
    service: ProviderService = Depends(get_service),
) -> list[Provider]:
    return await service.admin_list()


@router.post("", response_model=ProviderPublic, status_code=status.HTTP_201_CREATED)
async def create_provider(
    payload: ProviderCreate,
    _: User = Depends(require_admin),
    service: ProviderService = Depends(get_service),
) -> Provider:
    return await service.admin_create(payload)


@router.patch("/{provider_id}", response_model=ProviderPublic)
async def update_provider(
    provider_id: str,
    payload: ProviderAdminUpdate,
    _: User = Depends(require_admin),
    service: ProviderService = Depends(get_service),
) -> Provider:
    return await service.admin_update(provider_id, payload)
