import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import update

from careconnect.core.cache import Cache, availability_key, provider_key
from careconnect.modules.appointments.schemas import AppointmentCreate
from careconnect.modules.appointments.service import AppointmentService
from careconnect.modules.providers.schemas import ProviderAdminUpdate
from careconnect.modules.providers.service import ProviderService
from careconnect.modules.schedule.models import TimeSlot
from careconnect.modules.schedule.service import SlotAllocator
from careconnect.shared.enums import VisitType
from helpers import MONDAY, create_provider, create_slots, create_user


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.expiries: dict[str, int | None] = {}
        self.closed = False

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiries[key] = ex
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def scan_iter(self, match=None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


class UnreachableRedis(FakeRedis):
    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("connection refused")

    async def scan_iter(self, match=None):
        raise RedisConnectionError("connection refused")
        yield  # pragma: no cover

    async def ping(self):
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_availability_read_through_and_invalidation(db_session):
    provider = await create_provider(db_session)
    slots = await create_slots(db_session, provider)
    client = FakeRedis()
    allocator = SlotAllocator(db_session, Cache(client=client, ttl=30))
    key = availability_key(provider.provider_id, MONDAY, MONDAY)

    assert len(await allocator.availability(provider.provider_id, MONDAY, MONDAY)) == 8
    assert key in client.store
    assert client.expiries[key] == 30

    # A write that bypasses the allocator is not visible until the key is dropped.
    await db_session.execute(update(TimeSlot).where(TimeSlot.slot_id == slots[0].slot_id).values(is_blocked=True))
    await db_session.commit()
    assert len(await allocator.availability(provider.provider_id, MONDAY, MONDAY)) == 8

    await allocator.block_slot(slots[1].slot_id)
    assert key not in client.store
    assert len(await allocator.availability(provider.provider_id, MONDAY, MONDAY)) == 6


@pytest.mark.asyncio
async def test_booking_drops_cached_availability(db_session):
    patient = await create_user(db_session)
    provider = await create_provider(db_session)
    slots = await create_slots(db_session, provider)
    client = FakeRedis()
    cache = Cache(client=client)
    await SlotAllocator(db_session, cache).availability(provider.provider_id, MONDAY, MONDAY)
    assert availability_key(provider.provider_id, MONDAY, MONDAY) in client.store

    await AppointmentService(db_session, cache).book(
        patient,
        AppointmentCreate(provider_id=provider.provider_id, slot_id=slots[0].slot_id, visit_type=VisitType.ONLINE),
    )

    assert client.store == {}
    assert len(await SlotAllocator(db_session, cache).availability(provider.provider_id, MONDAY, MONDAY)) == 7


@pytest.mark.asyncio
async def test_provider_profile_cached_until_admin_update(db_session):
    provider = await create_provider(db_session)
    client = FakeRedis()
    service = ProviderService(db_session, Cache(client=client))

    profile = await service.get_public(provider.provider_id)
    assert provider_key(provider.provider_id) in client.store
    assert (await service.get_public(provider.provider_id)) == profile

    await service.admin_update(provider.provider_id, ProviderAdminUpdate(is_verified=True))
    assert provider_key(provider.provider_id) not in client.store
    assert (await service.get_public(provider.provider_id)).is_verified


@pytest.mark.asyncio
async def test_unreachable_redis_degrades_to_database(db_session):
    provider = await create_provider(db_session)
    slots = await create_slots(db_session, provider)
    cache = Cache(client=UnreachableRedis())

    assert await cache.get("anything") is None
    assert await cache.set("anything", {"a": 1}) is False
    assert await cache.invalidate_availability(provider.provider_id) == 0

    allocator = SlotAllocator(db_session, cache)
    assert len(await allocator.availability(provider.provider_id, MONDAY, MONDAY)) == 8
    assert (await allocator.block_slot(slots[0].slot_id)).is_blocked


@pytest.mark.asyncio
async def test_cache_without_redis_is_noop():
    cache = Cache()
    assert not cache.enabled
    assert await cache.set("key", [1, 2]) is False
    assert await cache.get("key") is None
    assert await cache.delete("key") == 0


@pytest.mark.asyncio
async def test_close_releases_client():
    client = FakeRedis()
    cache = Cache(client=client)
    await cache.set("key", {"value": 1})
    assert await cache.get("key") == {"value": 1}

    await cache.close()
    assert client.closed


@pytest.mark.asyncio
async def test_ping_reports_reachability():
    assert await Cache(client=FakeRedis()).ping()
    assert not await Cache(client=UnreachableRedis()).ping()
    assert not await Cache().ping()
