"""User cache: key format, CacheService degradation and read-through in the user repository."""

import pytest
import redis.asyncio as redis

from fileflow.core.constants import COLLECTION_USERS
from fileflow.infrastructure.cache.keys import user_key
from fileflow.infrastructure.cache.redis_cache import CacheService
from fileflow.infrastructure.repositories import UserRepository


class InMemoryRedis:
    """Just enough of redis.asyncio.Redis for CacheService."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.broken = False

    async def get(self, key):
        if self.broken:
            raise redis.RedisError("boom")
        return self.values.get(key)

    async def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self.values.pop(key, None)

    async def aclose(self):
        pass


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def cache(settings, fake_redis) -> CacheService:
    return CacheService(settings, redis_client=fake_redis)


class TestKeys:
    def test_user_key(self) -> None:
        assert user_key("abc") == "fileflow:user:id:abc"

    @pytest.mark.parametrize("bad", ["", "a:b"])
    def test_rejects_ambiguous_components(self, bad: str) -> None:
        with pytest.raises(ValueError):
            user_key(bad)


class TestCacheService:
    async def test_set_get_delete(self, cache, fake_redis) -> None:
        assert await cache.set("k", {"a": 1}, ttl=30) is True
        assert fake_redis.ttls["k"] == 30
        assert await cache.get("k") == {"a": 1}
        assert await cache.delete("k") is True
        assert await cache.get("k") is None

    async def test_errors_degrade_to_miss(self, cache, fake_redis) -> None:
        await cache.set("k", 1)
        fake_redis.broken = True
        assert await cache.get("k") is None

    async def test_unreachable_redis_disables_cache(self, settings) -> None:
        unreachable = settings.model_copy(update={"redis_host": "127.0.0.1", "redis_port": 1})
        service = CacheService(unreachable)
        await service.connect()
        assert service.is_available() is False
        assert await service.get("k") is None
        assert await service.set("k", 1) is False


class TestReadThrough:
    async def test_get_by_id_is_cached_with_ttl(self, adapter, settings, cache, fake_redis) -> None:
        repo = UserRepository(adapter, settings, cache=cache)
        user = await repo.create_user("a@example.com", "hash", "Ann")

        assert await repo.get_by_id(user.id) == user
        key = user_key(user.id)
        assert key in fake_redis.values
        assert fake_redis.ttls[key] == settings.cache_ttl_users

        # Served from cache even if the record changes underneath.
        await adapter.update(COLLECTION_USERS, user.id, {"full_name": "Changed"})
        assert (await repo.get_by_id(user.id)).full_name == "Ann"

    async def test_update_profile_invalidates(self, adapter, settings, cache, fake_redis) -> None:
        repo = UserRepository(adapter, settings, cache=cache)
        user = await repo.create_user("a@example.com", "hash", "Ann")
        await repo.get_by_id(user.id)

        await repo.update_profile(user.id, full_name="Annie")
        assert user_key(user.id) not in fake_redis.values
        assert (await repo.get_by_id(user.id)).full_name == "Annie"
