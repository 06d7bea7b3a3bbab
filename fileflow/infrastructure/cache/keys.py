"""Cache key builders. Single place for key format (DRY).

Key components must not contain CACHE_KEY_SEP to avoid colliding keys.
"""

from fileflow.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_USER


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the cache key separator."""
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def user_key(user_id: str) -> str:
    """Cache key for a user profile by ID."""
    _validate_key_component(user_id, "user_id")
    return f"{CACHE_PREFIX_USER}{CACHE_KEY_SEP}id{CACHE_KEY_SEP}{user_id}"
