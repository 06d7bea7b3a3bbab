"""User ORM model (users collection)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fileflow.infrastructure.persistence.database import Base
from fileflow.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class UserModel(CuidMixin, TimestampMixin, Base):
    """Table app_user. email is stored lowercase, so a plain unique index is case-insensitive."""

    __tablename__ = "app_user"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
