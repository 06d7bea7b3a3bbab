"""Infrastructure exceptions for record and blob storage.

They extend FileFlowException so callers can handle every failure
through one base class.
"""

from fileflow.domain.exceptions import FileFlowException


class StorageException(FileFlowException):
    """Base exception for storage operations."""


class RecordConflictError(StorageException):
    """A write collided with a unique constraint (e.g. version number taken)."""

    def __init__(self, collection: str, reason: str) -> None:
        super().__init__(
            f"Conflicting write on {collection}",
            "RECORD_CONFLICT",
            {"collection": collection, "reason": reason},
        )


class StorageNotFoundError(StorageException):
    """Blob not found in storage."""

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"File not found: {file_path}",
            "STORAGE_NOT_FOUND",
            {"file_path": file_path},
        )


class StorageUploadError(StorageException):
    """Blob write failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to upload file: {file_path}",
            "STORAGE_UPLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Blob path escapes the storage root."""

    def __init__(self, file_path: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {file_path}",
            "STORAGE_PERMISSION_ERROR",
            {"file_path": file_path, "operation": operation},
        )
