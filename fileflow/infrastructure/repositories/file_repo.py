"""File repository: upload, visibility-scoped listing, search and cascade delete. Returns application DTOs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fileflow.application.dtos.file import FileResult, FileUpload, Page
from fileflow.application.interfaces.storage import BlobStore, Filter, StorageAdapter
from fileflow.core.config import Settings
from fileflow.core.constants import (
    COLLECTION_FILES,
    COLLECTION_USERS,
    COLLECTION_VERSIONS,
    DEFAULT_SORT_FIELD,
    FILE_SORT_FIELDS,
)
from fileflow.domain.enums import SortDirection
from fileflow.domain.exceptions import ResourceNotFoundException, ValidationException
from fileflow.infrastructure.repositories.base import BaseRepository, dedupe
from fileflow.infrastructure.repositories.version_repo import VersionRepository
from fileflow.shared.telemetry import add_span_event, traced
from fileflow.shared.utils import (
    InputSanitizer,
    advance_timestamp,
    file_path_for,
    is_valid_identifier,
    parse_iso_utc,
    utc_now,
)

logger = logging.getLogger(__name__)


def _sort_key(sort_field: str) -> Callable[[FileResult], tuple[Any, str]]:
    kind = FILE_SORT_FIELDS[sort_field]

    def key(file: FileResult) -> tuple[Any, str]:
        value = getattr(file, sort_field)
        if kind == "string":
            value = value.casefold()
        return value, file.id

    return key


def _matches(file: FileResult, needle: str) -> bool:
    return (
        needle in file.name.lower()
        or needle in file.type.lower()
        or any(needle in tag.lower() for tag in file.tags)
    )


class FileRepository(BaseRepository):
    """Files owned by or shared with a user.

    Visibility: a caller sees a file when it is the owner or listed in
    shared_with. Mutations advance updated_at strictly.
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        versions: VersionRepository | None = None,
        settings: Settings | None = None,
        *,
        blob_store: BlobStore | None = None,
    ) -> None:
        super().__init__(adapter, settings)
        self.blob_store = blob_store
        self.versions = versions or VersionRepository(
            adapter, self.settings, blob_store=blob_store
        )

    @traced("file_repo.upload")
    async def upload(self, meta: FileUpload) -> FileResult:
        """Create a file record and its Version 1.

        Raises:
            ValidationException: Malformed owner id, empty name or negative size.
            ResourceNotFoundException: The owner does not exist.
        """
        owner_id = self._require_identifier(meta.owner_id, "owner_id")
        try:
            name = InputSanitizer.sanitize_filename(meta.name)
        except ValueError as e:
            raise ValidationException(str(e), field="name") from e
        if meta.size < 0:
            raise ValidationException("size must be >= 0", field="size")
        if await self.adapter.get(COLLECTION_USERS, owner_id) is None:
            raise ResourceNotFoundException("User", owner_id)

        shared_with = dedupe(
            [self._require_identifier(u, "shared_with") for u in meta.shared_with],
            skip=lambda u: u == owner_id,
        )
        now = utc_now()
        record = {
            "id": self.adapter.generate_id(),
            "name": name,
            "size": meta.size,
            "type": meta.type or "",
            "path": file_path_for(name),
            "owner_id": owner_id,
            "created_at": now,
            "updated_at": now,
            "shared": bool(shared_with),
            "shared_with": shared_with,
            "favorite": False,
            "tags": InputSanitizer.sanitize_tags(meta.tags),
        }

        async with self._atomic():
            await self.adapter.insert(COLLECTION_FILES, record)
            try:
                await self.versions.create_initial(
                    record["id"], owner_id, now, content=meta.content
                )
            except Exception:
                if not self.transactional:
                    logger.warning(
                        "Initial version write failed; removing file %s", record["id"]
                    )
                    add_span_event("upload_compensating_delete", {"file_id": record["id"]})
                    await self.adapter.delete_many(COLLECTION_FILES, "id", [record["id"]])
                raise

        logger.info("Uploaded file %s (%s) for owner %s", record["id"], name, owner_id)
        return FileResult.from_record(record)

    async def _visible_files(self, user_id: str) -> list[FileResult]:
        if not is_valid_identifier(user_id):
            return []
        owned = await self.adapter.find(COLLECTION_FILES, [Filter("owner_id", "==", user_id)])
        shared = await self.adapter.find(
            COLLECTION_FILES, [Filter("shared_with", "array_contains", user_id)]
        )
        by_id = {r["id"]: r for r in [*owned, *shared]}
        return [FileResult.from_record(r) for r in by_id.values()]

    def _sorted(
        self, files: list[FileResult], sort_field: str, sort_direction: str | SortDirection
    ) -> list[FileResult]:
        if sort_field not in FILE_SORT_FIELDS:
            raise ValidationException(
                f"sort_field must be one of {', '.join(FILE_SORT_FIELDS)}", field="sort_field"
            )
        try:
            direction = SortDirection.parse(sort_direction)
        except ValueError as e:
            raise ValidationException(
                f"sort_direction must be one of {', '.join(SortDirection.values())}",
                field="sort_direction",
            ) from e
        return sorted(files, key=_sort_key(sort_field), reverse=direction is SortDirection.DESC)

    async def _list(
        self,
        user_id: str,
        page: int,
        page_size: int | None,
        sort_field: str,
        sort_direction: str | SortDirection,
        keep: Callable[[FileResult], bool] | None = None,
    ) -> Page[FileResult]:
        self._page_bounds(page, page_size)
        files = await self._visible_files(user_id)
        if keep is not None:
            files = [f for f in files if keep(f)]
        return self._paginate(self._sorted(files, sort_field, sort_direction), page, page_size)

    @traced("file_repo.list_for_owner")
    async def list_for_owner(
        self,
        owner_id: str,
        page: int = 1,
        page_size: int | None = None,
        sort_field: str = DEFAULT_SORT_FIELD,
        sort_direction: str | SortDirection = SortDirection.DESC,
    ) -> Page[FileResult]:
        """Files owned by or shared with owner_id, sorted then paginated (1-based)."""
        return await self._list(owner_id, page, page_size, sort_field, sort_direction)

    @traced("file_repo.list_favorites")
    async def list_favorites(
        self,
        owner_id: str,
        page: int = 1,
        page_size: int | None = None,
        sort_field: str = DEFAULT_SORT_FIELD,
        sort_direction: str | SortDirection = SortDirection.DESC,
    ) -> Page[FileResult]:
        """Starred view: visible files with favorite set."""
        return await self._list(
            owner_id, page, page_size, sort_field, sort_direction, keep=lambda f: f.favorite
        )

    @traced("file_repo.list_shared")
    async def list_shared(
        self,
        owner_id: str,
        page: int = 1,
        page_size: int | None = None,
        sort_field: str = DEFAULT_SORT_FIELD,
        sort_direction: str | SortDirection = SortDirection.DESC,
    ) -> Page[FileResult]:
        """Shared view: visible files with at least one collaborator (either direction)."""
        return await self._list(
            owner_id, page, page_size, sort_field, sort_direction, keep=lambda f: f.shared
        )

    @traced("file_repo.search")
    async def search(
        self,
        owner_id: str,
        term: str,
        page: int = 1,
        page_size: int | None = None,
        sort_field: str = DEFAULT_SORT_FIELD,
        sort_direction: str | SortDirection = SortDirection.DESC,
    ) -> Page[FileResult]:
        """Case-insensitive substring match on name, type or any tag. Empty term matches all."""
        needle = (term or "").strip().lower()
        return await self._list(
            owner_id,
            page,
            page_size,
            sort_field,
            sort_direction,
            keep=(lambda f: _matches(f, needle)) if needle else None,
        )

    @traced("file_repo.get_by_id")
    async def get_by_id(self, file_id: str) -> FileResult | None:
        if not is_valid_identifier(file_id):
            return None
        record = await self.adapter.get(COLLECTION_FILES, file_id)
        return FileResult.from_record(record) if record else None

    async def _mutate(
        self, file_id: str, build: Callable[[dict[str, Any]], dict[str, Any]]
    ) -> FileResult | None:
        """Read-modify-write one file; stamps updated_at. None when the file is missing."""
        if not is_valid_identifier(file_id):
            return None
        async with self._atomic():
            record = await self.adapter.get(COLLECTION_FILES, file_id)
            if record is None:
                return None
            changes = build(record)
            changes["updated_at"] = advance_timestamp(parse_iso_utc(record.get("updated_at")))
            updated = await self.adapter.update(COLLECTION_FILES, file_id, changes)
        return FileResult.from_record(updated) if updated else None

    @traced("file_repo.toggle_favorite")
    async def toggle_favorite(self, file_id: str) -> FileResult | None:
        return await self._mutate(
            file_id, lambda r: {"favorite": not bool(r.get("favorite", False))}
        )

    @traced("file_repo.share")
    async def share(self, file_id: str, user_ids: list[str]) -> FileResult | None:
        """Add collaborators; the owner and existing collaborators are ignored."""
        additions = [self._require_identifier(u, "user_ids") for u in user_ids]

        def build(record: dict[str, Any]) -> dict[str, Any]:
            shared_with = dedupe(
                [*(record.get("shared_with") or []), *additions],
                skip=lambda u: u == record["owner_id"],
            )
            return {"shared_with": shared_with, "shared": bool(shared_with)}

        return await self._mutate(file_id, build)

    @traced("file_repo.unshare")
    async def unshare(self, file_id: str, user_ids: list[str]) -> FileResult | None:
        """Remove collaborators; shared turns false when none remain."""
        removals = set(user_ids)

        def build(record: dict[str, Any]) -> dict[str, Any]:
            shared_with = [u for u in record.get("shared_with") or [] if u not in removals]
            return {"shared_with": shared_with, "shared": bool(shared_with)}

        return await self._mutate(file_id, build)

    @traced("file_repo.set_tags")
    async def set_tags(self, file_id: str, tags: list[str]) -> FileResult | None:
        cleaned = InputSanitizer.sanitize_tags(tags)
        return await self._mutate(file_id, lambda _r: {"tags": cleaned})

    async def _remove_blobs(self, version_records: list[dict[str, Any]]) -> None:
        """Best-effort removal of version content; failures are logged, never raised."""
        if self.blob_store is None:
            return
        for record in version_records:
            path = record.get("storage_path")
            if not path:
                continue
            try:
                await self.blob_store.delete(path)
            except Exception:
                logger.exception("Failed to remove content at %s", path)

    async def _restore_versions(self, version_records: list[dict[str, Any]]) -> None:
        """Re-insert version records a failed cascade already removed."""
        for record in version_records:
            if await self.adapter.get(COLLECTION_VERSIONS, record["id"]) is not None:
                continue
            try:
                await self.adapter.insert(COLLECTION_VERSIONS, record)
            except Exception:
                logger.exception("Could not restore version %s", record["id"])

    async def _cascade(self, file_ids: list[str]) -> int:
        """Delete versions, then the files. Returns the number of files deleted."""
        version_records = await self.adapter.find(
            COLLECTION_VERSIONS, [Filter("file_id", "in", file_ids)]
        )
        async with self._atomic():
            try:
                await self.adapter.delete_many(COLLECTION_VERSIONS, "file_id", file_ids)
                deleted = await self.adapter.delete_many(COLLECTION_FILES, "id", file_ids)
            except Exception:
                if not self.transactional:
                    logger.warning("Cascade delete failed; restoring versions of %s", file_ids)
                    add_span_event("cascade_restore_versions", {"file_count": len(file_ids)})
                    await self._restore_versions(version_records)
                raise
        await self._remove_blobs(version_records)
        return deleted

    @traced("file_repo.delete")
    async def delete(self, file_id: str) -> bool:
        """Delete a file and every version of it. False when the file did not exist."""
        if not is_valid_identifier(file_id):
            return False
        if await self.adapter.get(COLLECTION_FILES, file_id) is None:
            return False
        deleted = await self._cascade([file_id])
        logger.info("Deleted file %s", file_id)
        return deleted > 0

    @traced("file_repo.bulk_delete")
    async def bulk_delete(self, file_ids: list[str]) -> int:
        """Delete several files with their versions. Malformed ids are skipped."""
        valid = dedupe([i for i in file_ids if is_valid_identifier(i)])
        if not valid:
            return 0
        existing = [
            r["id"] for r in await self.adapter.find(COLLECTION_FILES, [Filter("id", "in", valid)])
        ]
        if not existing:
            return 0
        deleted = await self._cascade(existing)
        logger.info("Bulk deleted %d file(s)", deleted)
        return deleted
