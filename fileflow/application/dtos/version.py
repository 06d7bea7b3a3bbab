"""DTOs for version history."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fileflow.shared.utils.datetime import parse_iso_utc


@dataclass(frozen=True)
class VersionResult:
    """Version read-model. Versions are immutable once written."""

    id: str
    file_id: str
    version_number: int
    created_at: datetime
    created_by: str
    changes: str
    storage_path: str

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "VersionResult":
        return cls(
            id=record["id"],
            file_id=record["file_id"],
            version_number=int(record["version_number"]),
            created_at=parse_iso_utc(record["created_at"]),
            created_by=record.get("created_by") or "",
            changes=record.get("changes") or "",
            storage_path=record.get("storage_path") or "",
        )
