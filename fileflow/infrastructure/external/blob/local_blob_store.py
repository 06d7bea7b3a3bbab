"""Local filesystem blob store with path validation and atomic writes."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os

from fileflow.infrastructure.exceptions import (
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Version content under a root directory.

    Logical paths (``/<file_id>/<version_number>``) are resolved below
    storage_root; anything escaping it raises StoragePermissionError.
    Writes go to a temp file in the target directory, then rename.
    """

    def __init__(self, storage_root: str | os.PathLike[str]) -> None:
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, path: str) -> Path:
        relative = path.lstrip("/")
        if not relative:
            raise StoragePermissionError(path, "path_validation")
        full_path = (self.storage_root / relative).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(path, "path_validation") from e
        return full_path

    async def put(self, path: str, content: bytes) -> None:
        target = self._get_full_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True, mode=0o750)
            fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=".tmp_")
            os.close(fd)
            try:
                async with aiofiles.open(tmp_path, "wb") as f:
                    await f.write(content)
                await aiofiles.os.replace(tmp_path, target)
            finally:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
        except OSError as e:
            logger.error("Blob write failed for %s: %s", path, e)
            raise StorageUploadError(path, str(e)) from e

    async def get(self, path: str) -> bytes:
        target = self._get_full_path(path)
        if not target.is_file():
            raise StorageNotFoundError(path)
        async with aiofiles.open(target, "rb") as f:
            return await f.read()

    async def delete(self, path: str) -> bool:
        """Remove one blob and any directories it leaves empty. False if absent."""
        target = self._get_full_path(path)
        if not target.is_file():
            return False
        await aiofiles.os.remove(target)
        parent = target.parent
        while parent != self.storage_root:
            try:
                if any(parent.iterdir()):
                    break
                parent.rmdir()
            except OSError:
                break
            parent = parent.parent
        return True
