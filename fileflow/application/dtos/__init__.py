"""Application DTOs: read-models and write-models returned by repositories."""

from fileflow.application.dtos.file import FileDetails, FileResult, FileUpload, Page
from fileflow.application.dtos.user import AuthSession, UserResult
from fileflow.application.dtos.version import VersionResult

__all__ = [
    "AuthSession",
    "FileDetails",
    "FileResult",
    "FileUpload",
    "Page",
    "UserResult",
    "VersionResult",
]
