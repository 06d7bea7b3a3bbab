"""DTOs for file use cases (no dependency on any storage backend)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from fileflow.application.dtos.version import VersionResult
from fileflow.shared.utils.datetime import parse_iso_utc

T = TypeVar("T")


@dataclass(frozen=True)
class FileUpload:
    """Input for upload (write-model). Name is raw; the repository sanitizes it."""

    name: str
    size: int
    type: str
    owner_id: str
    tags: list[str] = field(default_factory=list)
    shared_with: list[str] = field(default_factory=list)
    content: bytes | None = None


@dataclass(frozen=True)
class FileResult:
    """File read-model."""

    id: str
    name: str
    size: int
    type: str
    path: str
    owner_id: str
    created_at: datetime
    updated_at: datetime
    shared: bool
    shared_with: tuple[str, ...]
    favorite: bool
    tags: tuple[str, ...]

    def is_visible_to(self, user_id: str) -> bool:
        """Owner and collaborators can see a file."""
        return self.owner_id == user_id or user_id in self.shared_with

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "FileResult":
        """Map an adapter record (dict) to the read-model."""
        return cls(
            id=record["id"],
            name=record["name"],
            size=int(record.get("size") or 0),
            type=record.get("type") or "",
            path=record.get("path") or "",
            owner_id=record["owner_id"],
            created_at=parse_iso_utc(record["created_at"]),
            updated_at=parse_iso_utc(record["updated_at"]),
            shared=bool(record.get("shared", False)),
            shared_with=tuple(record.get("shared_with") or ()),
            favorite=bool(record.get("favorite", False)),
            tags=tuple(record.get("tags") or ()),
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing plus the total match count across all pages."""

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        """Number of pages needed for total items (0 when empty)."""
        return -(-self.total // self.page_size) if self.page_size else 0


@dataclass(frozen=True)
class FileDetails:
    """File preview: the file, its history (newest first) and the creator's display name."""

    file: FileResult
    versions: list[VersionResult]
    creator_name: str

    @property
    def current_version(self) -> int:
        return self.versions[0].version_number if self.versions else 0
