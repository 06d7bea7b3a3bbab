"""Storage adapter factory: creates the local, postgres or firestore backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fileflow.application.interfaces.storage import StorageAdapter

if TYPE_CHECKING:
    from fileflow.core.config import Settings


class StorageFactory:
    """Factory for record store adapters based on configuration."""

    @staticmethod
    def create_adapter(settings: "Settings | None" = None) -> StorageAdapter:
        """Create the record store adapter selected by settings.storage_backend.

        The adapter is not opened; the caller owns open() and close().

        Raises:
            ValueError: Unknown backend.
        """
        from fileflow.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()

        if backend == "local":
            from fileflow.infrastructure.storage.local_adapter import LocalStorageAdapter

            return LocalStorageAdapter(s.local_storage_path)
        if backend == "postgres":
            from fileflow.infrastructure.storage.sql_adapter import SqlStorageAdapter

            return SqlStorageAdapter(s)
        if backend == "firestore":
            from fileflow.infrastructure.storage.firestore_adapter import (
                FirestoreStorageAdapter,
            )

            return FirestoreStorageAdapter(s)
        raise ValueError(
            f"Unknown storage backend: {backend}. Supported: 'local', 'postgres', 'firestore'"
        )
