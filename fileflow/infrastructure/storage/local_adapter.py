"""Local record store: in-memory collections, optionally mirrored to one JSON file.

Equivalent of the browser build's single ``fileflow-data`` localStorage
entry. Every mutation rewrites the whole document (temp file + rename).
There is no atomicity across calls; the file and version repositories
compensate for that themselves.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from fileflow.application.interfaces.storage import Filter
from fileflow.core.constants import COLLECTIONS, UNIQUE_FIELDS
from fileflow.domain.exceptions import StorageUnavailableException
from fileflow.infrastructure.exceptions import RecordConflictError
from fileflow.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

Records = list[dict[str, Any]]


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, tuple | set):
        return list(value)
    raise TypeError(f"Unsupported value type in record: {type(value).__name__}")


def _empty_store() -> dict[str, Records]:
    return {name: [] for name in COLLECTIONS}


class LocalStorageAdapter:
    """StorageAdapter over process memory with an optional JSON mirror.

    Args:
        path: JSON file to load at open() and rewrite after each mutation.
            None keeps everything in memory (tests, throwaway sessions).
    """

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self._path = Path(path).resolve() if path else None
        self._data: dict[str, Records] = _empty_store()
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path | None:
        return self._path

    def generate_id(self) -> str:
        return generate_cuid()

    async def open(self) -> None:
        """Load the JSON mirror. Missing or corrupt files start an empty store."""
        if self._path is None:
            return
        self._data = await self._load()

    async def close(self) -> None:
        """Nothing to release; every mutation has already been flushed."""

    async def _load(self) -> dict[str, Records]:
        if self._path is None or not self._path.exists():
            return _empty_store()
        try:
            async with aiofiles.open(self._path, encoding="utf-8") as f:
                raw = await f.read()
            parsed = json.loads(raw) if raw.strip() else {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            logger.exception("Local store %s unreadable; starting empty", self._path)
            return _empty_store()
        if not isinstance(parsed, dict):
            logger.error("Local store %s is not a JSON object; starting empty", self._path)
            return _empty_store()
        data = _empty_store()
        for name in COLLECTIONS:
            records = parsed.get(name)
            if isinstance(records, list):
                data[name] = [r for r in records if isinstance(r, dict) and "id" in r]
            elif records is not None:
                logger.warning("Local store collection %s is corrupt; treating as empty", name)
        return data

    async def _flush(self, snapshot: dict[str, Records]) -> None:
        """Write snapshot atomically. Raises StorageUnavailableException on I/O failure."""
        if self._path is None:
            return
        try:
            payload = json.dumps(snapshot, default=_json_default)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent, prefix=".tmp_", suffix=".json"
            )
            os.close(fd)
            try:
                async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                    await f.write(payload)
                await aiofiles.os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to persist local store %s: %s", self._path, e)
            raise StorageUnavailableException("write", str(self._path), str(e)) from e

    async def _mutate(self, name: str, change: Callable[[Records], Records]) -> None:
        """Apply change to a copy of one collection, flush, then publish it."""
        self._check_collection(name)
        async with self._write_lock:
            updated = change(copy.deepcopy(self._data[name]))
            snapshot = {**self._data, name: updated}
            await self._flush(snapshot)
            self._data = snapshot

    @staticmethod
    def _check_collection(name: str) -> None:
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {name!r}")

    async def get_collection(self, name: str) -> Records:
        self._check_collection(name)
        return copy.deepcopy(self._data[name])

    async def save_collection(self, name: str, records: Records) -> None:
        await self._mutate(name, lambda _current: copy.deepcopy(list(records)))

    async def get(self, name: str, record_id: str) -> dict[str, Any] | None:
        self._check_collection(name)
        for record in self._data[name]:
            if record.get("id") == record_id:
                return copy.deepcopy(record)
        return None

    async def find(self, name: str, filters: list[Filter] | None = None) -> Records:
        self._check_collection(name)
        return [
            copy.deepcopy(r)
            for r in self._data[name]
            if all(f.matches(r) for f in filters or ())
        ]

    async def insert(self, name: str, record: dict[str, Any]) -> dict[str, Any]:
        if "id" not in record:
            raise ValueError("Record must carry an id")
        stored = copy.deepcopy(record)
        keys = (("id",), *UNIQUE_FIELDS.get(name, ()))

        def _append(current: Records) -> Records:
            # Called under _write_lock.
            for fields in keys:
                wanted = tuple(stored.get(f) for f in fields)
                if None in wanted:
                    continue
                if any(tuple(r.get(f) for f in fields) == wanted for r in current):
                    raise RecordConflictError(name, f"duplicate {', '.join(fields)}")
            current.append(stored)
            return current

        await self._mutate(name, _append)
        return copy.deepcopy(stored)

    async def update(
        self, name: str, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        found: list[dict[str, Any]] = []

        def _apply(current: Records) -> Records:
            for record in current:
                if record.get("id") == record_id:
                    record.update(copy.deepcopy(changes))
                    found.append(record)
                    break
            return current

        if await self.get(name, record_id) is None:
            return None
        await self._mutate(name, _apply)
        return copy.deepcopy(found[0]) if found else None

    async def delete_many(self, name: str, field: str, values: list[Any]) -> int:
        if not values:
            return 0
        targets = set(values)
        removed = 0

        def _drop(current: Records) -> Records:
            nonlocal removed
            kept = [r for r in current if r.get(field) not in targets]
            removed = len(current) - len(kept)
            return kept

        await self._mutate(name, _drop)
        return removed
