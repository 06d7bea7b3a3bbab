"""File details query: the preview pane's file, history and creator name."""

from __future__ import annotations

from fileflow.application.dtos.file import FileDetails
from fileflow.application.interfaces.repositories import (
    IFileRepository,
    IUserRepository,
    IVersionRepository,
)
from fileflow.domain.exceptions import ResourceNotFoundException
from fileflow.shared.telemetry import traced


class FileDetailsService:
    """Assembles FileDetails for a viewer allowed to see the file."""

    def __init__(
        self,
        files: IFileRepository,
        versions: IVersionRepository,
        users: IUserRepository,
    ) -> None:
        self._files = files
        self._versions = versions
        self._users = users

    @traced("file_details.get_details")
    async def get_details(self, file_id: str, viewer_id: str) -> FileDetails:
        """Raises ResourceNotFoundException when the file is missing or not visible to viewer_id."""
        file = await self._files.get_by_id(file_id)
        if file is None or not file.is_visible_to(viewer_id):
            raise ResourceNotFoundException("File", file_id)
        versions = await self._versions.list_for_file(file_id)
        creator_id = versions[-1].created_by if versions else file.owner_id
        creator = await self._users.get_by_id(creator_id)
        creator_name = (creator.full_name or creator.email) if creator else "Unknown"
        return FileDetails(file=file, versions=versions, creator_name=creator_name)
