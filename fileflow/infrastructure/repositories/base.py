"""Base repository: adapter access, atomic scopes and pagination shared by all repositories."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from fileflow.application.dtos.file import Page
from fileflow.application.interfaces.storage import StorageAdapter, supports_transactions
from fileflow.core.config import Settings, get_settings
from fileflow.domain.exceptions import ValidationException
from fileflow.shared.utils.sanitization import is_valid_identifier

T = TypeVar("T")


class BaseRepository:
    """Repository over a StorageAdapter (any backend).

    Subclasses group multi-record writes in _atomic(): one transaction on a
    transactional adapter, a plain scope otherwise (callers compensate).
    """

    def __init__(self, adapter: StorageAdapter, settings: Settings | None = None) -> None:
        self.adapter = adapter
        self.settings = settings or get_settings()

    @property
    def transactional(self) -> bool:
        return supports_transactions(self.adapter)

    @asynccontextmanager
    async def _atomic(self) -> AsyncIterator[None]:
        if self.transactional:
            async with self.adapter.transaction():  # type: ignore[attr-defined]
                yield
        else:
            yield

    @staticmethod
    def _require_identifier(value: str, field: str) -> str:
        """Ids on create paths must be well-formed."""
        if not is_valid_identifier(value):
            raise ValidationException(f"Invalid {field}", field=field)
        return value

    def _page_bounds(self, page: int, page_size: int | None) -> tuple[int, int]:
        size = self.settings.default_page_size if page_size is None else page_size
        if page < 1:
            raise ValidationException("page must be >= 1", field="page")
        if size < 1 or size > self.settings.max_page_size:
            raise ValidationException(
                f"page_size must be between 1 and {self.settings.max_page_size}",
                field="page_size",
            )
        return page, size

    def _paginate(
        self, items: list[T], page: int, page_size: int | None
    ) -> Page[T]:
        page, size = self._page_bounds(page, page_size)
        start = (page - 1) * size
        return Page(items=items[start : start + size], total=len(items), page=page, page_size=size)


def dedupe(values: list[T], skip: Callable[[T], Any] | None = None) -> list[T]:
    """Drop duplicates (and values for which skip is truthy), keeping first-seen order."""
    seen: dict[T, None] = {}
    for value in values:
        if skip is not None and skip(value):
            continue
        seen.setdefault(value, None)
    return list(seen)
