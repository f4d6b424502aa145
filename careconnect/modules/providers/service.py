"""Provider directory service layer."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, cache as default_cache, provider_key
from careconnect.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from careconnect.modules.providers.models import Provider, Service
from careconnect.modules.providers.schemas import (
    ProviderAdminUpdate,
    ProviderCreate,
    ProviderPublic,
    ProviderUpdate,
    ServiceCreate,
)
from careconnect.modules.users.models import User
from careconnect.shared.enums import Language, ProviderType, UserRole

logger = logging.getLogger(__name__)


class ProviderService:
    def __init__(self, db: AsyncSession, cache: Cache | None = None):
        self.db = db
        self.cache = cache or default_cache

    async def get(self, provider_id: str, include_inactive: bool = False) -> Provider:
        provider = await self.db.get(Provider, provider_id)
        if provider is None or (not include_inactive and not provider.is_active):
            raise NotFoundError("Provider not found")
        return provider

    async def get_public(self, provider_id: str) -> ProviderPublic:
        key = provider_key(provider_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return ProviderPublic.model_validate(cached)
        profile = ProviderPublic.model_validate(await self.get(provider_id))
        await self.cache.set(key, profile.model_dump(mode="json"))
        return profile

    async def search(
        self,
        provider_type: ProviderType | None = None,
        city: str | None = None,
        query: str | None = None,
        language: Language | None = None,
        verified_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Provider]:
        stmt = select(Provider).join(User, User.user_id == Provider.user_id).where(Provider.is_active.is_(True))
        if provider_type is not None:
            stmt = stmt.where(Provider.provider_type == provider_type)
        if city:
            stmt = stmt.where(User.city.ilike(city.strip()))
        if query:
            stmt = stmt.where(Provider.specialization.ilike(f"%{query.strip()}%"))
        if verified_only:
            stmt = stmt.where(Provider.is_verified.is_(True))
        stmt = stmt.order_by(Provider.rating.desc(), Provider.created_at)
        result = await self.db.execute(stmt)
        providers = list(result.scalars().all())
        # JSON array containment differs per backend, so the language filter runs here.
        if language is not None:
            providers = [provider for provider in providers if language.value in (provider.languages or [])]
        return providers[offset : offset + limit]

    async def get_for_user(self, user_id: str) -> Provider | None:
        result = await self.db.execute(select(Provider).where(Provider.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_own(self, user: User) -> Provider:
        provider = await self.get_for_user(user.user_id)
        if provider is None:
            raise NotFoundError("Provider profile not found")
        return provider

    async def resolve_managed_provider_id(self, user: User, provider_id: str | None = None) -> str:
        """Return the provider the user may manage, enforcing ownership for providers."""
        if user.role == UserRole.ADMIN:
            if not provider_id:
                raise ValidationError("provider_id is required for admin requests")
            return (await self.get(provider_id, include_inactive=True)).provider_id
        own = await self.get_own(user)
        if provider_id and provider_id != own.provider_id:
            raise PermissionDeniedError("Cannot manage another provider")
        return own.provider_id

    async def update_own(self, user: User, payload: ProviderUpdate) -> Provider:
        provider = await self.get_own(user)
        update_data = payload.model_dump(exclude_unset=True)
        for field in ("specialization", "consultation_fee", "certifications", "languages", "available_days"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be null")
        for field, value in update_data.items():
            setattr(provider, field, value)
        if provider.working_hours_start >= provider.working_hours_end:
            raise ValidationError("working_hours_start must be before working_hours_end")
        await self.db.commit()
        await self.db.refresh(provider)
        await self.cache.invalidate_provider(provider.provider_id)
        return provider

    async def list_services(self, provider_id: str) -> list[Service]:
        await self.get(provider_id)
        stmt = (
            select(Service)
            .where(Service.provider_id == provider_id, Service.is_active.is_(True))
            .order_by(Service.name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add_service(self, user: User, payload: ServiceCreate) -> Service:
        provider = await self.get_own(user)
        service = Service(provider_id=provider.provider_id, **payload.model_dump())
        self.db.add(service)
        await self.db.commit()
        await self.db.refresh(service)
        return service

    async def admin_create(self, payload: ProviderCreate) -> Provider:
        user = await self.db.get(User, payload.user_id)
        if user is None:
            raise NotFoundError("User not found")
        if await self.get_for_user(user.user_id) is not None:
            raise ConflictError("User already has a provider profile")
        provider = Provider(**payload.model_dump())
        user.role = UserRole.PROVIDER
        self.db.add(provider)
        await self.db.commit()
        await self.db.refresh(provider)
        logger.info("Created provider profile %s for user %s", provider.provider_id, user.user_id)
        return provider

    async def admin_update(self, provider_id: str, payload: ProviderAdminUpdate) -> Provider:
        provider = await self.get(provider_id, include_inactive=True)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(provider, field, value)
        await self.db.commit()
        await self.db.refresh(provider)
        await self.cache.invalidate_provider(provider_id)
        await self.cache.invalidate_availability(provider_id)
        return provider

    async def admin_list(self) -> list[Provider]:
        result = await self.db.execute(select(Provider).order_by(Provider.created_at.desc()))
        return list(result.scalars().all())
