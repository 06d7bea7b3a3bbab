"""Redis-backed cache for user profiles.

Async Redis with TTL. A cache outage never fails a FileFlow operation:
every method degrades to a miss / no-op and logs. Key formats live in
fileflow.infrastructure.cache.keys.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from fileflow.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheService:
    """Async Redis cache service with TTL support.

    Call connect() at startup and disconnect() at shutdown (the
    composition root in fileflow.core.lifespan does both).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        redis_client: redis.Redis | None = None,
    ) -> None:
        """Initialize cache service.

        Args:
            settings: Connection settings; defaults to get_settings().
            redis_client: Optional pre-built client for testing or DI. It is
                treated as connected.
        """
        self.settings = settings or get_settings()
        self.redis = redis_client
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Failures leave the cache disabled."""
        if self.redis is not None:
            return
        password = self.settings.redis_password
        try:
            self.redis = redis.Redis(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=password.get_secret_value() if password else None,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
            )
            await self.redis.ping()
            self._connected = True
            logger.info(
                "Redis cache connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            self._connected = False
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    async def _reconnect(self) -> bool:
        """Drop the current client and connect again. Returns True if reconnected."""
        if self.redis is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError as e:
            logger.debug("Ignoring error while closing stale Redis client: %s", e)
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _run(self, op: str, key: str, default: T, call: Callable[[], Awaitable[T]]) -> T:
        """Run one Redis call with a single reconnect attempt on connection loss."""
        if not self.is_available():
            return default
        try:
            return await call()
        except (redis.ConnectionError, redis.TimeoutError):
            if await self._reconnect():
                try:
                    return await call()
                except redis.RedisError:
                    logger.exception("Cache %s error for key %s after reconnect", op, key)
                    return default
            logger.warning("Cache %s unavailable for key %s (Redis disconnected)", op, key)
            return default
        except redis.RedisError:
            logger.exception("Cache %s error for key %s", op, key)
            return default

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable."""

        async def _get() -> Any | None:
            value = await self.redis.get(key)
            if value is None:
                logger.debug("Cache MISS: %s", key)
                return None
            logger.debug("Cache HIT: %s", key)
            return json.loads(value)

        return await self._run("get", key, None, _get)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store a JSON-serializable value with TTL. Returns True on success."""
        serialized = json.dumps(value)

        async def _set() -> bool:
            await self.redis.setex(key, ttl, serialized)
            logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
            return True

        return await self._run("set", key, False, _set)

    async def delete(self, key: str) -> bool:
        """Remove key from cache. Returns True if the call reached Redis."""

        async def _delete() -> bool:
            await self.redis.delete(key)
            logger.debug("Cache DELETE: %s", key)
            return True

        return await self._run("delete", key, False, _delete)
