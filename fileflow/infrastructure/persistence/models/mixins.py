"""SQLAlchemy mixins shared by the FileFlow tables.

Timestamps are written by the repositories (updated_at must strictly
advance, which a server-side now() cannot guarantee), so there are no
server defaults or onupdate hooks here.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from fileflow.shared.utils.generators import generate_cuid


class CuidMixin:
    """Primary key ``id``: CUID string, generated client-side when absent."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String(64), primary_key=True, default=generate_cuid)


class TimestampMixin:
    """created_at / updated_at, timezone-aware, set by the repository layer."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), nullable=False)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), nullable=False, index=True)
