"""Managed record store on Firestore (REST). Not transactional.

Each collection is a Firestore collection; the record id is the document
id and is also kept in the document fields.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from fileflow.application.interfaces.storage import Filter
from fileflow.core.config import Settings
from fileflow.core.constants import COLLECTIONS
from fileflow.domain.exceptions import StorageUnavailableException
from fileflow.infrastructure.exceptions import RecordConflictError
from fileflow.infrastructure.firebase._rest_client import (
    DocumentExistsError,
    DocumentSnapshot,
    FirestoreRESTClient,
)
from fileflow.infrastructure.firebase.client import create_firestore_client
from fileflow.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Firestore caps the value list of an IN filter.
IN_FILTER_LIMIT = 30
READ_ATTEMPTS = 2


def _record(snapshot: DocumentSnapshot) -> dict[str, Any]:
    data = dict(snapshot.to_dict())
    data["id"] = snapshot.id
    return data


def _chunks(values: list[Any], size: int) -> list[list[Any]]:
    return [values[i : i + size] for i in range(0, len(values), size)]


class FirestoreStorageAdapter:
    """StorageAdapter over the Firestore REST client.

    Args:
        settings: Used by open() to build the client from the service account.
        client: Pre-built client (tests, shared clients); not closed by close().
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: FirestoreRESTClient | None = None,
    ) -> None:
        if settings is None and client is None:
            raise ValueError("FirestoreStorageAdapter needs settings or a client")
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    def generate_id(self) -> str:
        return generate_cuid()

    async def open(self) -> None:
        if self._client is None:
            assert self._settings is not None
            self._client = create_firestore_client(self._settings)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.info("Firestore HTTP client closed")

    def _db(self) -> FirestoreRESTClient:
        if self._client is None:
            raise StorageUnavailableException("connect", "firestore", "adapter not opened")
        return self._client

    @staticmethod
    def _check_collection(name: str) -> None:
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {name!r}")

    async def _read(self, name: str, default: T, call: Callable[[], Awaitable[T]]) -> T:
        """Run a read, retrying once on transport errors, then degrade to default."""
        for attempt in range(1, READ_ATTEMPTS + 1):
            try:
                return await call()
            except httpx.HTTPError as e:
                if attempt < READ_ATTEMPTS:
                    logger.warning("Firestore read on %s failed, retrying: %s", name, e)
                    continue
                logger.error("Firestore read on %s failed; returning empty result: %s", name, e)
        return default

    async def _write(self, operation: str, name: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call()
        except DocumentExistsError as e:
            raise RecordConflictError(name, str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Firestore %s on %s failed: %s", operation, name, e)
            raise StorageUnavailableException(operation, name, str(e)) from e

    async def get_collection(self, name: str) -> list[dict[str, Any]]:
        self._check_collection(name)

        async def _list() -> list[dict[str, Any]]:
            return [_record(doc) async for doc in self._db().collection(name).stream()]

        return await self._read(name, [], _list)

    async def save_collection(self, name: str, records: list[dict[str, Any]]) -> None:
        """Replace a collection: delete documents not in records, then write records."""
        self._check_collection(name)
        existing = await self.get_collection(name)
        keep = {r["id"] for r in records}
        coll = self._db().collection(name)

        async def _replace() -> None:
            stale = [r["id"] for r in existing if r["id"] not in keep]
            await asyncio.gather(*(coll.document(i).delete() for i in stale))
            await asyncio.gather(*(coll.document(r["id"]).set(r) for r in records))

        await self._write("save_collection", name, _replace)

    async def get(self, name: str, record_id: str) -> dict[str, Any] | None:
        self._check_collection(name)

        async def _get() -> dict[str, Any] | None:
            snapshot = await self._db().collection(name).document(record_id).get()
            return _record(snapshot) if snapshot is not None else None

        return await self._read(name, None, _get)

    async def find(self, name: str, filters: list[Filter] | None = None) -> list[dict[str, Any]]:
        """Query with every filter on the server; IN lists larger than 30 are split."""
        self._check_collection(name)
        filters = list(filters or ())
        in_filter = next(
            (f for f in filters if f.op == "in" and len(f.value) > IN_FILTER_LIMIT), None
        )
        if in_filter is None:
            return await self._read(name, [], lambda: self._query(name, filters))

        others = [f for f in filters if f is not in_filter]

        async def _chunked() -> list[dict[str, Any]]:
            seen: set[str] = set()
            out: list[dict[str, Any]] = []
            for chunk in _chunks(list(in_filter.value), IN_FILTER_LIMIT):
                part = Filter(in_filter.field, "in", chunk)
                for record in await self._query(name, [*others, part]):
                    if record["id"] not in seen:
                        seen.add(record["id"])
                        out.append(record)
            return out

        return await self._read(name, [], _chunked)

    async def _query(self, name: str, filters: list[Filter]) -> list[dict[str, Any]]:
        coll = self._db().collection(name)
        if not filters:
            return [_record(doc) async for doc in coll.stream()]
        query = coll.query()
        for f in filters:
            if f.op == "in" and not f.value:
                return []
            query = query.where(f.field, f.op, list(f.value) if f.op == "in" else f.value)
        return [_record(doc) async for doc in query.stream()]

    async def insert(self, name: str, record: dict[str, Any]) -> dict[str, Any]:
        self._check_collection(name)
        if "id" not in record:
            raise ValueError("Record must carry an id")
        await self._write(
            "insert", name, lambda: self._db().collection(name).create(record["id"], record)
        )
        return dict(record)

    async def update(
        self, name: str, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        self._check_collection(name)
        if not changes:
            return await self.get(name, record_id)
        updated = await self._write(
            "update",
            name,
            lambda: self._db().collection(name).document(record_id).update(changes),
        )
        if updated is None:
            return None
        updated["id"] = record_id
        return updated

    async def delete_many(self, name: str, field: str, values: list[Any]) -> int:
        if not values:
            return 0
        self._check_collection(name)
        # id is stored in the fields too, so one query shape covers every field.
        targets = [r["id"] for r in await self.find(name, [Filter(field, "in", list(values))])]
        coll = self._db().collection(name)

        async def _delete() -> None:
            await asyncio.gather(*(coll.document(i).delete() for i in targets))

        await self._write("delete", name, _delete)
        return len(targets)
