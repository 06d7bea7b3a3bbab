"""Repository interfaces (ports) for the application layer.

Protocols define the contracts the dashboard and the application services
consume. Types reference application DTOs only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from fileflow.application.dtos.file import FileResult, FileUpload, Page
    from fileflow.application.dtos.user import UserResult
    from fileflow.application.dtos.version import VersionResult
    from fileflow.domain.enums import SortDirection


class IFileRepository(Protocol):
    """Protocol for file repository (DIP)."""

    async def upload(self, meta: FileUpload) -> FileResult:
        """Create a file and its first version."""

    async def list_for_owner(
        self,
        owner_id: str,
        page: int = 1,
        page_size: int | None = None,
        sort_field: str = "updated_at",
        sort_direction: str | SortDirection = "desc",
    ) -> Page[FileResult]:
        """Return files owned by or shared with owner_id, sorted and paginated."""

    async def get_by_id(self, file_id: str) -> FileResult | None:
        """Return file by ID."""

    async def toggle_favorite(self, file_id: str) -> FileResult | None:
        """Flip the favorite flag."""

    async def share(self, file_id: str, user_ids: list[str]) -> FileResult | None:
        """Grant collaborators access."""

    async def unshare(self, file_id: str, user_ids: list[str]) -> FileResult | None:
        """Revoke collaborator access."""

    async def set_tags(self, file_id: str, tags: list[str]) -> FileResult | None:
        """Replace the file's tags."""

    async def search(
        self, owner_id: str, term: str, page: int = 1, page_size: int | None = None
    ) -> Page[FileResult]:
        """Case-insensitive search over name, type and tags of visible files."""

    async def delete(self, file_id: str) -> bool:
        """Delete file and all its versions."""

    async def bulk_delete(self, file_ids: list[str]) -> int:
        """Delete several files and their versions; return files deleted."""


class IVersionRepository(Protocol):
    """Protocol for version repository (DIP)."""

    async def list_for_file(self, file_id: str) -> list[VersionResult]:
        """Return versions newest first."""

    async def get_latest(self, file_id: str) -> VersionResult | None:
        """Return the highest-numbered version."""

    async def add_version(
        self,
        file_id: str,
        author_id: str,
        change_note: str,
        *,
        content: bytes | None = None,
    ) -> VersionResult:
        """Append the next version and advance the parent file's updated_at."""


class IUserRepository(Protocol):
    """Protocol for user repository (DIP)."""

    async def get_by_id(self, user_id: str) -> UserResult | None:
        """Return user by ID (cached)."""

    async def get_by_email(self, email: str) -> UserResult | None:
        """Return user by email, case-insensitive."""

    async def get_password_hash(self, email: str) -> tuple[UserResult, str] | None:
        """Return user and stored hash for sign-in, or None."""

    async def create_user(
        self, email: str, hashed_password: str, full_name: str
    ) -> UserResult:
        """Create user; raise UserAlreadyExistsException on duplicate email."""

    async def update_profile(
        self,
        user_id: str,
        full_name: str | None = None,
        avatar_url: str | None = None,
    ) -> UserResult | None:
        """Update display fields; return None if the user does not exist."""
