"""User repository with read-through cache. Interface methods return application DTOs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fileflow.application.dtos.user import UserResult
from fileflow.application.interfaces.storage import Filter, StorageAdapter
from fileflow.core.config import Settings
from fileflow.core.constants import COLLECTION_USERS
from fileflow.domain.exceptions import UserAlreadyExistsException
from fileflow.infrastructure.cache.cache_protocol import CacheProtocol
from fileflow.infrastructure.cache.keys import user_key
from fileflow.infrastructure.exceptions import RecordConflictError
from fileflow.infrastructure.repositories.base import BaseRepository
from fileflow.shared.telemetry import traced
from fileflow.shared.utils import (
    InputSanitizer,
    advance_timestamp,
    is_valid_identifier,
    parse_iso_utc,
    utc_now,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return (email or "").strip().lower()


class UserRepository(BaseRepository):
    """Users collection. get_by_id is cached when a cache is configured."""

    def __init__(
        self,
        adapter: StorageAdapter,
        settings: Settings | None = None,
        *,
        cache: CacheProtocol | None = None,
    ) -> None:
        super().__init__(adapter, settings)
        self.cache = cache
        self._registration_lock = asyncio.Lock()

    def _cache_on(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    async def _find_by_email(self, email: str) -> dict[str, Any] | None:
        records = await self.adapter.find(
            COLLECTION_USERS, [Filter("email", "==", normalize_email(email))]
        )
        return records[0] if records else None

    @traced("user_repo.get_by_id")
    async def get_by_id(self, user_id: str) -> UserResult | None:
        if not is_valid_identifier(user_id):
            return None
        if self._cache_on():
            cached = await self.cache.get(user_key(user_id))
            if cached is not None:
                return UserResult.from_record(cached)
        record = await self.adapter.get(COLLECTION_USERS, user_id)
        if record is None:
            return None
        user = UserResult.from_record(record)
        if self._cache_on():
            await self.cache.set(user_key(user_id), user.to_cache(), ttl=self.settings.cache_ttl_users)
        return user

    @traced("user_repo.get_by_email")
    async def get_by_email(self, email: str) -> UserResult | None:
        record = await self._find_by_email(email)
        return UserResult.from_record(record) if record else None

    async def get_password_hash(self, email: str) -> tuple[UserResult, str] | None:
        """User and stored bcrypt hash for sign-in; None for unknown emails."""
        record = await self._find_by_email(email)
        if record is None:
            return None
        return UserResult.from_record(record), record.get("hashed_password") or ""

    @traced("user_repo.create_user")
    async def create_user(self, email: str, hashed_password: str, full_name: str) -> UserResult:
        """Insert a user with a pre-hashed password.

        Raises:
            UserAlreadyExistsException: Email already registered (any case).
        """
        email = normalize_email(email)
        now = utc_now()
        record = {
            "id": self.adapter.generate_id(),
            "email": email,
            "hashed_password": hashed_password,
            "full_name": InputSanitizer.sanitize_text(full_name or ""),
            "avatar_url": None,
            "created_at": now,
            "updated_at": now,
        }
        # Firestore has no unique index; the lock keeps check and insert together in-process.
        async with self._registration_lock:
            if await self._find_by_email(email) is not None:
                raise UserAlreadyExistsException()
            try:
                await self.adapter.insert(COLLECTION_USERS, record)
            except RecordConflictError as e:
                # Unique email constraint caught a concurrent registration.
                raise UserAlreadyExistsException() from e
        logger.info("Created user %s", record["id"])
        return UserResult.from_record(record)

    @traced("user_repo.update_profile")
    async def update_profile(
        self,
        user_id: str,
        full_name: str | None = None,
        avatar_url: str | None = None,
    ) -> UserResult | None:
        """Update display fields and drop the cached profile. None when the user is missing."""
        if not is_valid_identifier(user_id):
            return None
        async with self._atomic():
            record = await self.adapter.get(COLLECTION_USERS, user_id)
            if record is None:
                return None
            changes: dict[str, Any] = {
                "updated_at": advance_timestamp(parse_iso_utc(record.get("updated_at")))
            }
            if full_name is not None:
                changes["full_name"] = InputSanitizer.sanitize_text(full_name)
            if avatar_url is not None:
                changes["avatar_url"] = avatar_url.strip() or None
            updated = await self.adapter.update(COLLECTION_USERS, user_id, changes)
        if self.cache is not None:
            await self.cache.delete(user_key(user_id))
        return UserResult.from_record(updated) if updated else None
