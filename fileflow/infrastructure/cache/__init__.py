"""Optional Redis cache (user profiles)."""

from fileflow.infrastructure.cache.cache_protocol import CacheProtocol
from fileflow.infrastructure.cache.keys import user_key
from fileflow.infrastructure.cache.redis_cache import CacheService

__all__ = ["CacheProtocol", "CacheService", "user_key"]
