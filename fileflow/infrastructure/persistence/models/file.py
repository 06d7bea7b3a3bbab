"""File and version ORM models (files and versions collections)."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from fileflow.infrastructure.persistence.database import Base
from fileflow.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class FileModel(CuidMixin, TimestampMixin, Base):
    """Table file. shared_with and tags are JSON arrays (portable across dialects)."""

    __tablename__ = "file"

    name: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    type: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    owner_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("app_user.id"), nullable=False, index=True
    )
    shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    shared_with: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tags: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)


class VersionModel(CuidMixin, Base):
    """Table file_version. (file_id, version_number) is unique; rows go with their file."""

    __tablename__ = "file_version"

    file_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("file.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    changes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    storage_path: Mapped[str] = mapped_column(String(1024), nullable=False)

    __table_args__ = (
        UniqueConstraint("file_id", "version_number", name="uq_file_version_number"),
    )
