"""Storage ports: record store adapters and the blob store (DIP).

Repositories depend only on these protocols. Implementations live in
fileflow.infrastructure.storage (records) and
fileflow.infrastructure.external.blob (content).
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

FilterOp = Literal["==", "in", "array_contains"]


@dataclass(frozen=True)
class Filter:
    """Single field filter understood by every adapter.

    ``==`` compares equality, ``in`` tests membership of the field value in
    a list, ``array_contains`` tests membership of value in a list field.
    """

    field: str
    op: FilterOp
    value: Any

    def matches(self, record: dict[str, Any]) -> bool:
        """Evaluate the filter in Python (local adapter and post-filtering)."""
        current = record.get(self.field)
        if self.op == "==":
            return current == self.value
        if self.op == "in":
            return current in self.value
        if self.op == "array_contains":
            return isinstance(current, list | tuple) and self.value in current
        raise ValueError(f"Unsupported filter op: {self.op!r}")


@runtime_checkable
class StorageAdapter(Protocol):
    """Record store for the users, files and versions collections.

    Records are plain dicts keyed by ``id``. Reads of a missing or corrupt
    store return empty results; failed writes raise
    StorageUnavailableException. No atomicity across calls.
    """

    def generate_id(self) -> str:
        """Return a new unique opaque id."""
        ...

    async def get_collection(self, name: str) -> list[dict[str, Any]]:
        """Return every record of a collection, in stored order."""
        ...

    async def save_collection(self, name: str, records: list[dict[str, Any]]) -> None:
        """Replace a collection wholesale."""
        ...

    async def get(self, name: str, record_id: str) -> dict[str, Any] | None:
        """Return one record by id, or None."""
        ...

    async def find(self, name: str, filters: list[Filter] | None = None) -> list[dict[str, Any]]:
        """Return records matching all filters."""
        ...

    async def insert(self, name: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record (must carry ``id``) and return it."""
        ...

    async def update(
        self, name: str, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Apply changes to one record; return the updated record or None if missing."""
        ...

    async def delete_many(self, name: str, field: str, values: list[Any]) -> int:
        """Delete records whose field value is in values; return the count removed."""
        ...

    async def open(self) -> None:
        """Connect / load the backing store. Called once by the composition root."""
        ...

    async def close(self) -> None:
        """Release connections and flush pending state."""
        ...


@runtime_checkable
class TransactionalStorageAdapter(StorageAdapter, Protocol):
    """Adapter that can group several calls into one atomic unit."""

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Context manager: calls made inside commit together or roll back together."""
        ...


def supports_transactions(adapter: StorageAdapter) -> bool:
    """True when adapter exposes a scoped-transaction capability."""
    return callable(getattr(adapter, "transaction", None))


class BlobStore(Protocol):
    """Durable content storage keyed by logical path."""

    async def put(self, path: str, content: bytes) -> None:
        """Write content at path (overwrites)."""
        ...

    async def get(self, path: str) -> bytes:
        """Read content at path; raise StorageNotFoundError if missing."""
        ...

    async def delete(self, path: str) -> bool:
        """Delete content at path; False if it did not exist."""
        ...
