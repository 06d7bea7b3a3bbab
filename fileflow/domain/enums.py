"""Domain enumerations for FileFlow."""

from enum import Enum


class SortDirection(str, Enum):
    """Sort order for file listings. The dashboard defaults to newest first."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def values(cls) -> list[str]:
        return [direction.value for direction in cls]

    @classmethod
    def parse(cls, value: "str | SortDirection") -> "SortDirection":
        """Accept enum members, 'asc'/'desc' (any case), or the legacy 1/-1 strings."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("1", "ascending"):
            return cls.ASC
        if normalized in ("-1", "descending"):
            return cls.DESC
        return cls(normalized)
