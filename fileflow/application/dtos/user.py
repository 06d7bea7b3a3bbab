"""DTOs for identity use cases (no dependency on storage)."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from fileflow.shared.utils.datetime import parse_iso_utc


@dataclass(frozen=True)
class UserResult:
    """User read-model. Never carries the password hash."""

    id: str
    email: str
    full_name: str
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "UserResult":
        return cls(
            id=record["id"],
            email=record["email"],
            full_name=record.get("full_name") or "",
            avatar_url=record.get("avatar_url"),
            created_at=parse_iso_utc(record["created_at"]),
            updated_at=parse_iso_utc(record["updated_at"]),
        )

    def to_cache(self) -> dict[str, Any]:
        """JSON-safe dict for the user cache."""
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data


@dataclass(frozen=True)
class AuthSession:
    """Result of a successful sign-in: the user and the credential to present later."""

    user: UserResult
    credential: str
    expires_at: datetime
