"""Password hashing and session credentials."""

from fileflow.infrastructure.security.jwt import create_access_token, verify_token
from fileflow.infrastructure.security.password import (
    dummy_hash,
    hash_password,
    hash_password_async,
    verify_password,
    verify_password_async,
)

__all__ = [
    "create_access_token",
    "dummy_hash",
    "hash_password",
    "hash_password_async",
    "verify_password",
    "verify_password_async",
    "verify_token",
]
