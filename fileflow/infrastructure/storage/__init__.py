"""Record store adapters (local JSON, SQL, Firestore)."""

from fileflow.infrastructure.storage.factory import StorageFactory
from fileflow.infrastructure.storage.local_adapter import LocalStorageAdapter

__all__ = ["LocalStorageAdapter", "StorageFactory"]
