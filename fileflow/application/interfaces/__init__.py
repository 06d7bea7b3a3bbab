"""Application ports (protocols) implemented by infrastructure."""

from fileflow.application.interfaces.repositories import (
    IFileRepository,
    IUserRepository,
    IVersionRepository,
)
from fileflow.application.interfaces.storage import (
    BlobStore,
    Filter,
    StorageAdapter,
    TransactionalStorageAdapter,
    supports_transactions,
)

__all__ = [
    "BlobStore",
    "Filter",
    "IFileRepository",
    "IUserRepository",
    "IVersionRepository",
    "StorageAdapter",
    "TransactionalStorageAdapter",
    "supports_transactions",
]
