"""Composition root: startup and shutdown of the data layer.

Single place that wires infrastructure (storage adapter, optional Redis
cache, blob store) into repositories and services. No business logic.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fileflow.application.interfaces.storage import BlobStore, StorageAdapter
from fileflow.application.services.auth_service import AuthService
from fileflow.application.use_cases.files.file_details import FileDetailsService
from fileflow.core.config import Settings, get_settings
from fileflow.infrastructure.cache.redis_cache import CacheService
from fileflow.infrastructure.repositories import (
    FileRepository,
    UserRepository,
    VersionRepository,
)
from fileflow.infrastructure.storage.factory import StorageFactory

logger = logging.getLogger(__name__)


@dataclass
class FileFlow:
    """Everything a dashboard needs, built from one Settings instance."""

    settings: Settings
    adapter: StorageAdapter
    cache: CacheService | None
    blob_store: BlobStore | None
    users: UserRepository
    files: FileRepository
    versions: VersionRepository
    auth: AuthService
    file_details: FileDetailsService


def build_fileflow(
    settings: Settings,
    adapter: StorageAdapter,
    *,
    cache: CacheService | None = None,
    blob_store: BlobStore | None = None,
) -> FileFlow:
    """Wire repositories and services around an already-created adapter."""
    users = UserRepository(adapter, settings, cache=cache)
    versions = VersionRepository(adapter, settings, blob_store=blob_store)
    files = FileRepository(adapter, versions, settings, blob_store=blob_store)
    return FileFlow(
        settings=settings,
        adapter=adapter,
        cache=cache,
        blob_store=blob_store,
        users=users,
        files=files,
        versions=versions,
        auth=AuthService(users, settings),
        file_details=FileDetailsService(files, versions, users),
    )


@asynccontextmanager
async def open_fileflow(
    settings: Settings | None = None,
    *,
    adapter: StorageAdapter | None = None,
) -> AsyncIterator[FileFlow]:
    """Open the data layer, yield it, then release everything.

    Startup order: storage adapter, Redis cache (if enabled), blob store
    (if blob_storage_root is set). Shutdown order: cache disconnect,
    adapter close.

    Args:
        settings: Defaults to get_settings().
        adapter: Pre-built adapter (tests); otherwise chosen by
            settings.storage_backend.
    """
    settings = settings or get_settings()
    adapter = adapter or StorageFactory.create_adapter(settings)

    # ---- Startup ----
    await adapter.open()
    logger.info("Storage adapter opened: %s", type(adapter).__name__)

    cache: CacheService | None = None
    if settings.redis_enabled:
        cache = CacheService(settings)
        await cache.connect()

    blob_store: BlobStore | None = None
    if settings.blob_storage_root:
        from fileflow.infrastructure.external.blob import LocalBlobStore

        blob_store = LocalBlobStore(settings.blob_storage_root)

    try:
        yield build_fileflow(settings, adapter, cache=cache, blob_store=blob_store)
    finally:
        # ---- Shutdown ----
        if cache is not None:
            await cache.disconnect()
            logger.info("Cache disconnected")
        await adapter.close()
        logger.info("Storage adapter closed")
