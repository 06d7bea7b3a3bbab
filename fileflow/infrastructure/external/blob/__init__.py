"""Blob stores for version content."""

from fileflow.infrastructure.external.blob.local_blob_store import LocalBlobStore

__all__ = ["LocalBlobStore"]
