"""File details query used by the preview pane."""

import pytest

from fileflow.application.dtos.file import FileUpload
from fileflow.domain.exceptions import ResourceNotFoundException


@pytest.fixture
async def shared_file(fileflow, alice, bob):
    return await fileflow.files.upload(
        FileUpload(name="deck.pptx", size=5, type="application/vnd.ms-powerpoint", owner_id=alice.id)
    )


async def test_details_for_owner(fileflow, shared_file, alice) -> None:
    await fileflow.versions.add_version(shared_file.id, alice.id, "Polish")
    details = await fileflow.file_details.get_details(shared_file.id, alice.id)

    assert details.file.id == shared_file.id
    assert [v.version_number for v in details.versions] == [2, 1]
    assert details.current_version == 2
    assert details.creator_name == "Alice Doe"


async def test_collaborator_can_view(fileflow, shared_file, alice, bob) -> None:
    await fileflow.files.share(shared_file.id, [bob.id])
    details = await fileflow.file_details.get_details(shared_file.id, bob.id)
    assert details.file.shared is True


async def test_stranger_gets_not_found(fileflow, shared_file, bob) -> None:
    with pytest.raises(ResourceNotFoundException):
        await fileflow.file_details.get_details(shared_file.id, bob.id)


async def test_missing_file(fileflow, alice) -> None:
    with pytest.raises(ResourceNotFoundException):
        await fileflow.file_details.get_details("missing", alice.id)
