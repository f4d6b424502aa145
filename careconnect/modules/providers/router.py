"""Public provider directory and provider self-service routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, get_cache
from careconnect.core.database import get_db
from careconnect.core.deps import require_provider
from careconnect.modules.providers.models import Provider, Service
from careconnect.modules.providers.schemas import ProviderPublic, ProviderUpdate, ServiceCreate, ServicePublic
from careconnect.modules.providers.service import ProviderService
from careconnect.modules.users.models import User
from careconnect.shared.enums import Language, ProviderType

router = APIRouter(prefix="/api/v1/providers", tags=["providers"])


def get_service(db: AsyncSession = Depends(get_db), cache: Cache = Depends(get_cache)) -> ProviderService:
    return ProviderService(db, cache)


@router.get("", response_model=list[ProviderPublic])
async def search_providers(
    provider_type: ProviderType | None = Query(None, alias="type"),
    city: str | None = Query(None),
    q: str | None = Query(None),
    language: Language | None = Query(None),
    verified_only: bool = Query(False),
    limit: int = Query(50, gt=0, le=200),
    offset: int = Query(0, ge=0),
    service: ProviderService = Depends(get_service),
) -> list[Provider]:
    return await service.search(provider_type, city, q, language, verified_only, limit, offset)


@router.get("/me", response_model=ProviderPublic)
async def my_profile(
    current_user: User = Depends(require_provider),
    service: ProviderService = Depends(get_service),
) -> Provider:
    return await service.get_own(current_user)


@router.patch("/me", response_model=ProviderPublic)
async def update_my_profile(
    payload: ProviderUpdate,
    current_user: User = Depends(require_provider),
    service: ProviderService = Depends(get_service),
) -> Provider:
    return await service.update_own(current_user, payload)


@router.post("/me/services", response_model=ServicePublic, status_code=status.HTTP_201_CREATED)
async def add_service(
    payload: ServiceCreate,
    current_user: User = Depends(require_provider),
    service: ProviderService = Depends(get_service),
) -> Service:
    return await service.add_service(current_user, payload)


@router.get("/{provider_id}", response_model=ProviderPublic)
async def provider_detail(
    provider_id: str,
    service: ProviderService = Depends(get_service),
) -> ProviderPublic:
    return await service.get_public(provider_id)


@router.get("/{provider_id}/services", response_model=list[ServicePublic])
async def provider_services(
    provider_id: str,
    service: ProviderService = Depends(get_service),
) -> list[Service]:
    return await service.list_services(provider_id)
