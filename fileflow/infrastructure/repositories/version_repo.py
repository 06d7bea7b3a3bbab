"""Version repository: per-file monotonic numbering and history. Returns application DTOs."""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import datetime

from fileflow.application.dtos.version import VersionResult
from fileflow.application.interfaces.storage import BlobStore, Filter, StorageAdapter
from fileflow.core.config import Settings
from fileflow.core.constants import COLLECTION_FILES, COLLECTION_VERSIONS, INITIAL_VERSION_NOTE
from fileflow.domain.exceptions import ResourceNotFoundException
from fileflow.infrastructure.exceptions import RecordConflictError
from fileflow.infrastructure.repositories.base import BaseRepository
from fileflow.shared.telemetry import add_span_event, traced
from fileflow.shared.utils import (
    InputSanitizer,
    advance_timestamp,
    is_valid_identifier,
    parse_iso_utc,
    version_storage_path,
)

logger = logging.getLogger(__name__)


class VersionRepository(BaseRepository):
    """Version history of files.

    add_version() calls for one file are serialized by a per-file lock in
    this process. The SQL and local backends reject a duplicate
    (file_id, version_number); when another writer took the number, the
    call recomputes and retries up to settings.version_retry_attempts times.
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        settings: Settings | None = None,
        *,
        blob_store: BlobStore | None = None,
    ) -> None:
        super().__init__(adapter, settings)
        self.blob_store = blob_store
        # Entries vanish once no add_version call holds or awaits the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, file_id: str) -> asyncio.Lock:
        lock = self._locks.get(file_id)
        if lock is None:
            lock = self._locks[file_id] = asyncio.Lock()
        return lock

    async def _records_for(self, file_id: str) -> list[dict]:
        return await self.adapter.find(COLLECTION_VERSIONS, [Filter("file_id", "==", file_id)])

    @traced("version_repo.list_for_file")
    async def list_for_file(self, file_id: str) -> list[VersionResult]:
        """Return the file's versions, highest number first. Unknown ids yield []."""
        if not is_valid_identifier(file_id):
            return []
        versions = [VersionResult.from_record(r) for r in await self._records_for(file_id)]
        versions.sort(key=lambda v: v.version_number, reverse=True)
        return versions

    @traced("version_repo.get_latest")
    async def get_latest(self, file_id: str) -> VersionResult | None:
        versions = await self.list_for_file(file_id)
        return versions[0] if versions else None

    async def _insert(
        self,
        file_id: str,
        version_number: int,
        author_id: str,
        note: str,
        created_at: datetime,
    ) -> VersionResult:
        record = {
            "id": self.adapter.generate_id(),
            "file_id": file_id,
            "version_number": version_number,
            "created_at": created_at,
            "created_by": author_id,
            "changes": note,
            "storage_path": version_storage_path(file_id, version_number),
        }
        await self.adapter.insert(COLLECTION_VERSIONS, record)
        return VersionResult.from_record(record)

    async def _store_content(self, version: VersionResult, content: bytes | None) -> None:
        """Write version content; on failure drop the version record again (non-transactional)."""
        if content is None or self.blob_store is None:
            return
        try:
            await self.blob_store.put(version.storage_path, content)
        except Exception:
            if not self.transactional:
                logger.warning(
                    "Content write failed for %s; removing version record %s",
                    version.storage_path,
                    version.id,
                )
                await self.adapter.delete_many(COLLECTION_VERSIONS, "id", [version.id])
            raise

    async def create_initial(
        self,
        file_id: str,
        author_id: str,
        created_at: datetime,
        *,
        content: bytes | None = None,
    ) -> VersionResult:
        """Version 1 of a freshly uploaded file. Call inside the upload's atomic scope."""
        version = await self._insert(file_id, 1, author_id, INITIAL_VERSION_NOTE, created_at)
        await self._store_content(version, content)
        return version

    async def _discard(self, version: VersionResult, *, content_written: bool) -> None:
        """Undo a version whose parent update failed (non-transactional adapters)."""
        logger.warning(
            "Parent update failed for file %s; removing version record %s",
            version.file_id,
            version.id,
        )
        add_span_event("version_compensating_delete", {"file_id": version.file_id})
        await self.adapter.delete_many(COLLECTION_VERSIONS, "id", [version.id])
        if content_written and self.blob_store is not None:
            try:
                await self.blob_store.delete(version.storage_path)
            except Exception:
                logger.exception("Failed to remove content at %s", version.storage_path)

    async def _append(
        self, file_id: str, author_id: str, note: str, content: bytes | None
    ) -> VersionResult:
        file_record = await self.adapter.get(COLLECTION_FILES, file_id)
        if file_record is None:
            raise ResourceNotFoundException("File", file_id)
        existing = await self._records_for(file_id)
        next_number = max((int(r["version_number"]) for r in existing), default=0) + 1
        stamp = advance_timestamp(parse_iso_utc(file_record.get("updated_at")))
        version = await self._insert(file_id, next_number, author_id, note, stamp)
        await self._store_content(version, content)
        try:
            await self.adapter.update(COLLECTION_FILES, file_id, {"updated_at": stamp})
        except Exception:
            if not self.transactional:
                await self._discard(version, content_written=content is not None)
            raise
        return version

    @traced("version_repo.add_version")
    async def add_version(
        self,
        file_id: str,
        author_id: str,
        change_note: str,
        *,
        content: bytes | None = None,
    ) -> VersionResult:
        """Append the next version of a file and advance the file's updated_at.

        Args:
            file_id: Parent file id.
            author_id: User creating the version.
            change_note: Free-text description (HTML stripped).
            content: Optional bytes written to the version's storage_path.

        Raises:
            ValidationException: Malformed file or author id.
            ResourceNotFoundException: The file does not exist.
            RecordConflictError: Numbering still collided after every retry.
        """
        self._require_identifier(file_id, "file_id")
        self._require_identifier(author_id, "author_id")
        note = InputSanitizer.sanitize_text(change_note or "")
        attempts = self.settings.version_retry_attempts

        lock = self._lock_for(file_id)
        async with lock:
            for attempt in range(1, attempts + 1):
                try:
                    async with self._atomic():
                        version = await self._append(file_id, author_id, note, content)
                except RecordConflictError:
                    if attempt == attempts:
                        raise
                    logger.warning(
                        "Version number clash on file %s (attempt %d/%d); retrying",
                        file_id,
                        attempt,
                        attempts,
                    )
                    add_span_event("version_number_retry", {"attempt": attempt})
                    continue
                logger.info("Added version %d to file %s", version.version_number, file_id)
                return version
        raise AssertionError("unreachable")
