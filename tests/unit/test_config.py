"""Settings validation for each storage backend."""

import pytest
from pydantic import ValidationError

from fileflow.core.config import Settings, get_settings


def test_defaults() -> None:
    s = Settings(secret_key="k")
    assert s.storage_backend == "local"
    assert s.access_token_expire_days == 7
    assert s.default_page_size == 20
    assert s.cache_ttl_users == 300


def test_secret_key_required(monkeypatch) -> None:
    monkeypatch.delenv("FILEFLOW_SECRET_KEY", raising=False)
    with pytest.raises(ValidationError, match="FILEFLOW_SECRET_KEY"):
        Settings(_env_file=None)


def test_unknown_backend_rejected() -> None:
    with pytest.raises(ValidationError, match="storage_backend"):
        Settings(secret_key="k", storage_backend="mongodb")


def test_postgres_requires_database_url() -> None:
    with pytest.raises(ValidationError, match="DATABASE_URL"):
        Settings(secret_key="k", storage_backend="postgres")
    s = Settings(
        secret_key="k",
        storage_backend="postgres",
        database_url="postgresql+asyncpg://u:p@localhost/db",
    )
    assert s.database_url.startswith("postgresql")


def test_firestore_requires_service_account() -> None:
    with pytest.raises(ValidationError, match="FIREBASE_SERVICE_ACCOUNT"):
        Settings(secret_key="k", storage_backend="firestore")
    s = Settings(secret_key="k", storage_backend="firestore", firebase_service_account_path="/x.json")
    assert s.firebase_service_account_path == "/x.json"


def test_page_sizes_validated() -> None:
    with pytest.raises(ValidationError, match="page_size"):
        Settings(secret_key="k", default_page_size=50, max_page_size=10)


def test_env_prefix(monkeypatch) -> None:
    monkeypatch.setenv("FILEFLOW_MAX_PAGE_SIZE", "250")
    get_settings.cache_clear()
    assert get_settings().max_page_size == 250
