"""Domain layer: exceptions and enums (no infrastructure imports)."""

from fileflow.domain.enums import SortDirection
from fileflow.domain.exceptions import (
    AuthenticationException,
    FileFlowException,
    InvalidCredentialException,
    InvalidCredentialsException,
    ResourceNotFoundException,
    StorageUnavailableException,
    UserAlreadyExistsException,
    ValidationException,
)

__all__ = [
    "SortDirection",
    "FileFlowException",
    "ValidationException",
    "ResourceNotFoundException",
    "UserAlreadyExistsException",
    "AuthenticationException",
    "InvalidCredentialsException",
    "InvalidCredentialException",
    "StorageUnavailableException",
]
