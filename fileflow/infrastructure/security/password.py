"""Password hashing (bcrypt with SHA-256 pre-hash).

Bcrypt truncates inputs at 72 bytes; pre-hashing with SHA-256 yields a
fixed-length input so long passwords are not silently truncated. Hashing
is CPU-bound, so the async helpers run it in a worker thread.
"""

import asyncio
import base64
import hashlib

import bcrypt

DEFAULT_ROUNDS = 12

_dummy_hash_cache: str | None = None


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if plain_password matches hashed_password. Malformed hashes never match."""
    try:
        return bool(bcrypt.checkpw(_prehash(plain_password), hashed_password.encode("utf-8")))
    except (ValueError, TypeError):
        return False


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return bcrypt hash of password (salted, SHA-256 pre-hashed)."""
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


async def hash_password_async(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return await asyncio.to_thread(hash_password, password, rounds)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    return await asyncio.to_thread(verify_password, plain_password, hashed_password)


async def dummy_hash() -> str:
    """Valid bcrypt hash for comparisons against unknown accounts (equal timing)."""
    global _dummy_hash_cache
    if _dummy_hash_cache is None:
        _dummy_hash_cache = await hash_password_async("not-a-real-password")
    return _dummy_hash_cache
