"""Backend-agnostic repositories over a StorageAdapter."""

from fileflow.infrastructure.repositories.file_repo import FileRepository
from fileflow.infrastructure.repositories.user_repo import UserRepository
from fileflow.infrastructure.repositories.version_repo import VersionRepository

__all__ = ["FileRepository", "UserRepository", "VersionRepository"]
