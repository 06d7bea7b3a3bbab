"""Domain exceptions for FileFlow.

Business-rule failures independent of the storage backend. Callers (the
dashboard layer) map them to user-facing messages using message,
error_code and details.
"""

from typing import Any


class FileFlowException(Exception):
    """Base exception for all FileFlow errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(FileFlowException):
    """Raised when input validation fails (malformed id, bad page or sort)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(FileFlowException):
    """Raised when an operation requires a record that does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class UserAlreadyExistsException(FileFlowException):
    """Raised when registering an email that is already registered (any case)."""

    def __init__(self) -> None:
        super().__init__("User already exists", "USER_ALREADY_EXISTS", {})


class AuthenticationException(FileFlowException):
    """Base for authentication failures. Messages never say which part failed."""

    def __init__(
        self, message: str = "Authentication failed", error_code: str = "AUTHENTICATION_ERROR"
    ) -> None:
        super().__init__(message, error_code)


class InvalidCredentialsException(AuthenticationException):
    """Raised when email/password do not match (unknown email or wrong password)."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password", "INVALID_CREDENTIALS")


class InvalidCredentialException(AuthenticationException):
    """Raised when a session credential is malformed, tampered with, or expired."""

    def __init__(self) -> None:
        super().__init__("Invalid or expired credential", "INVALID_CREDENTIAL")


class StorageUnavailableException(FileFlowException):
    """Raised when the backing medium could not be written."""

    def __init__(self, operation: str, collection: str, reason: str | None = None) -> None:
        details: dict[str, Any] = {"operation": operation, "collection": collection}
        if reason:
            details["reason"] = reason
        super().__init__(
            f"Storage unavailable: {operation} on {collection}",
            "STORAGE_UNAVAILABLE",
            details,
        )
