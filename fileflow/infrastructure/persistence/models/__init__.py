"""ORM models; importing this package registers every table on Base.metadata."""

from fileflow.infrastructure.persistence.models.file import FileModel, VersionModel
from fileflow.infrastructure.persistence.models.user import UserModel

__all__ = ["FileModel", "UserModel", "VersionModel"]
