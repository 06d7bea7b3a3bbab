"""File repository against the local adapter: upload, listing, sharing, search, delete."""

import asyncio

import pytest

from fileflow.application.dtos.file import FileUpload
from fileflow.core.constants import COLLECTION_FILES, COLLECTION_VERSIONS, INITIAL_VERSION_NOTE
from fileflow.domain.exceptions import (
    ResourceNotFoundException,
    StorageUnavailableException,
    ValidationException,
)


def _upload(owner_id: str, name: str = "report.pdf", **kwargs) -> FileUpload:
    kwargs.setdefault("size", 1024)
    kwargs.setdefault("type", "application/pdf")
    return FileUpload(name=name, owner_id=owner_id, **kwargs)


class TestUpload:
    async def test_upload_creates_file_and_version_one(self, files, versions, alice) -> None:
        created = await files.upload(_upload(alice.id))

        assert created.owner_id == alice.id
        assert created.favorite is False
        assert created.shared is False
        assert created.created_at == created.updated_at
        history = await versions.list_for_file(created.id)
        assert [v.version_number for v in history] == [1]
        assert history[0].changes == INITIAL_VERSION_NOTE
        assert history[0].created_by == alice.id
        assert history[0].storage_path == f"/{created.id}/1"

    async def test_upload_sanitizes_name_and_path(self, files, alice) -> None:
        created = await files.upload(_upload(alice.id, name="my report (v2).pdf"))
        assert created.name == "my_report__v2_.pdf"
        assert created.path == "/my_report__v2_.pdf"

    async def test_upload_with_collaborators_is_shared(self, files, alice, bob) -> None:
        created = await files.upload(_upload(alice.id, shared_with=[bob.id, bob.id, alice.id]))
        assert created.shared is True
        assert created.shared_with == (bob.id,)

    async def test_upload_dedupes_tags(self, files, alice) -> None:
        created = await files.upload(_upload(alice.id, tags=["q1", " q1 ", "", "<b>fin</b>"]))
        assert created.tags == ("q1", "fin")

    async def test_upload_unknown_owner_raises(self, files) -> None:
        with pytest.raises(ResourceNotFoundException):
            await files.upload(_upload("ghost-user"))

    async def test_upload_malformed_owner_raises(self, files) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await files.upload(_upload("../etc/passwd"))
        assert exc_info.value.details == {"field": "owner_id"}

    async def test_upload_empty_name_raises(self, files, alice) -> None:
        with pytest.raises(ValidationException):
            await files.upload(_upload(alice.id, name=""))

    async def test_failed_version_write_removes_file(self, files, adapter, alice, monkeypatch) -> None:
        """Without transactions the file record is deleted again when Version 1 cannot be written."""
        original_insert = adapter.insert

        async def failing_insert(name, record):
            if name == COLLECTION_VERSIONS:
                raise StorageUnavailableException("insert", name, "disk full")
            return await original_insert(name, record)

        monkeypatch.setattr(adapter, "insert", failing_insert)
        with pytest.raises(StorageUnavailableException):
            await files.upload(_upload(alice.id))
        assert await adapter.get_collection(COLLECTION_FILES) == []


class TestListing:
    async def test_pagination_is_exhaustive_and_stable(self, files, alice) -> None:
        for i in range(25):
            await files.upload(_upload(alice.id, name=f"file-{i:02d}.txt"))

        seen: list[str] = []
        for page in (1, 2, 3):
            result = await files.list_for_owner(alice.id, page=page, page_size=10)
            assert result.total == 25
            assert result.pages == 3
            seen.extend(f.id for f in result.items)
        assert len(seen) == 25
        assert len(set(seen)) == 25

        again = await files.list_for_owner(alice.id, page=1, page_size=10)
        first = await files.list_for_owner(alice.id, page=1, page_size=10)
        assert [f.id for f in again.items] == [f.id for f in first.items]

    async def test_default_sort_is_newest_first(self, files, alice) -> None:
        older = await files.upload(_upload(alice.id, name="a.txt"))
        newer = await files.upload(_upload(alice.id, name="b.txt"))
        await files.toggle_favorite(older.id)

        result = await files.list_for_owner(alice.id)
        assert [f.id for f in result.items] == [older.id, newer.id]

    async def test_sort_by_name_ascending(self, files, alice) -> None:
        for name in ("charlie.txt", "Alpha.txt", "bravo.txt"):
            await files.upload(_upload(alice.id, name=name))
        result = await files.list_for_owner(alice.id, sort_field="name", sort_direction="asc")
        assert [f.name for f in result.items] == ["Alpha.txt", "bravo.txt", "charlie.txt"]

    async def test_sort_by_size_is_numeric(self, files, alice) -> None:
        for size in (100, 9, 20):
            await files.upload(_upload(alice.id, name=f"s{size}.bin", size=size))
        result = await files.list_for_owner(alice.id, sort_field="size", sort_direction=1)
        assert [f.size for f in result.items] == [9, 20, 100]

    async def test_page_beyond_end_is_empty(self, files, alice) -> None:
        await files.upload(_upload(alice.id))
        result = await files.list_for_owner(alice.id, page=5, page_size=10)
        assert result.items == []
        assert result.total == 1

    @pytest.mark.parametrize(
        ("kwargs", "field"),
        [
            ({"page": 0}, "page"),
            ({"page_size": 0}, "page_size"),
            ({"page_size": 101}, "page_size"),
            ({"sort_field": "owner_id"}, "sort_field"),
            ({"sort_direction": "sideways"}, "sort_direction"),
        ],
    )
    async def test_bad_listing_arguments_raise(self, files, alice, kwargs, field) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await files.list_for_owner(alice.id, **kwargs)
        assert exc_info.value.details["field"] == field

    async def test_unknown_user_sees_nothing(self, files, alice) -> None:
        await files.upload(_upload(alice.id))
        result = await files.list_for_owner("nobody")
        assert result.total == 0


class TestMutations:
    async def test_toggle_favorite_twice_restores_value(self, files, alice) -> None:
        created = await files.upload(_upload(alice.id))
        once = await files.toggle_favorite(created.id)
        twice = await files.toggle_favorite(created.id)
        assert once.favorite is True
        assert twice.favorite is False

    async def test_updated_at_strictly_increases(self, files, alice, bob) -> None:
        created = await files.upload(_upload(alice.id))
        stamps = [created.updated_at]
        stamps.append((await files.toggle_favorite(created.id)).updated_at)
        stamps.append((await files.share(created.id, [bob.id])).updated_at)
        stamps.append((await files.set_tags(created.id, ["x"])).updated_at)
        stamps.append((await files.unshare(created.id, [bob.id])).updated_at)
        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    async def test_mutating_missing_file_returns_none(self, files) -> None:
        assert await files.toggle_favorite("missing") is None
        assert await files.set_tags("missing", ["a"]) is None
        assert await files.toggle_favorite("bad id!") is None

    async def test_share_makes_file_visible_to_collaborator(self, files, alice, bob) -> None:
        created = await files.upload(_upload(alice.id))
        assert (await files.list_for_owner(bob.id)).total == 0

        shared = await files.share(created.id, [bob.id, alice.id, bob.id])
        assert shared.shared is True
        assert shared.shared_with == (bob.id,)
        listing = await files.list_for_owner(bob.id)
        assert [f.id for f in listing.items] == [created.id]

    async def test_unshare_last_collaborator_clears_flag(self, files, alice, bob) -> None:
        created = await files.upload(_upload(alice.id, shared_with=[bob.id]))
        updated = await files.unshare(created.id, [bob.id])
        assert updated.shared is False
        assert updated.shared_with == ()
        assert (await files.list_for_owner(bob.id)).total == 0

    async def test_share_rejects_malformed_user_id(self, files, alice) -> None:
        created = await files.upload(_upload(alice.id))
        with pytest.raises(ValidationException):
            await files.share(created.id, ["not valid"])

    async def test_set_tags_replaces_tags(self, files, alice) -> None:
        created = await files.upload(_upload(alice.id, tags=["old"]))
        updated = await files.set_tags(created.id, ["new", "new", "  "])
        assert updated.tags == ("new",)

    async def test_favorites_and_shared_views(self, files, alice, bob) -> None:
        starred = await files.upload(_upload(alice.id, name="starred.txt"))
        shared = await files.upload(_upload(alice.id, name="shared.txt", shared_with=[bob.id]))
        await files.upload(_upload(alice.id, name="plain.txt"))
        await files.toggle_favorite(starred.id)

        favorites = await files.list_favorites(alice.id)
        assert [f.id for f in favorites.items] == [starred.id]
        shared_view = await files.list_shared(alice.id)
        assert [f.id for f in shared_view.items] == [shared.id]
        assert [f.id for f in (await files.list_shared(bob.id)).items] == [shared.id]


class TestSearch:
    async def test_search_matches_name_type_and_tags_case_insensitively(self, files, alice) -> None:
        by_name = await files.upload(_upload(alice.id, name="Budget-2024.xlsx", type="application/vnd.ms-excel"))
        by_type = await files.upload(_upload(alice.id, name="photo.png", type="image/PNG"))
        by_tag = await files.upload(_upload(alice.id, name="notes.txt", type="text/plain", tags=["Finance"]))

        assert {f.id for f in (await files.search(alice.id, "budget")).items} == {by_name.id}
        assert {f.id for f in (await files.search(alice.id, "png")).items} == {by_type.id}
        assert {f.id for f in (await files.search(alice.id, "FINANCE")).items} == {by_tag.id}

    async def test_search_never_returns_other_users_files(self, files, alice, bob) -> None:
        await files.upload(_upload(bob.id, name="secret-plan.txt"))
        mine = await files.upload(_upload(alice.id, name="plan.txt"))
        result = await files.search(alice.id, "plan")
        assert [f.id for f in result.items] == [mine.id]

    async def test_empty_term_matches_all_visible(self, files, alice) -> None:
        await files.upload(_upload(alice.id, name="a.txt"))
        await files.upload(_upload(alice.id, name="b.txt"))
        assert (await files.search(alice.id, "  ")).total == 2


class TestDelete:
    async def test_delete_cascades_to_versions(self, files, versions, adapter, alice) -> None:
        created = await files.upload(_upload(alice.id))
        await versions.add_version(created.id, alice.id, "second draft")

        assert await files.delete(created.id) is True
        assert await files.get_by_id(created.id) is None
        assert await versions.list_for_file(created.id) == []
        assert await adapter.get_collection(COLLECTION_VERSIONS) == []

    async def test_delete_missing_returns_false(self, files) -> None:
        assert await files.delete("missing") is False
        assert await files.delete("../../x") is False

    async def test_bulk_delete_skips_malformed_and_missing(self, files, versions, alice) -> None:
        a = await files.upload(_upload(alice.id, name="a.txt"))
        b = await files.upload(_upload(alice.id, name="b.txt"))
        keep = await files.upload(_upload(alice.id, name="keep.txt"))

        deleted = await files.bulk_delete([a.id, b.id, "missing", "bad id", a.id])
        assert deleted == 2
        remaining = await files.list_for_owner(alice.id)
        assert [f.id for f in remaining.items] == [keep.id]
        assert await versions.list_for_file(a.id) == []

    async def test_bulk_delete_nothing_valid(self, files) -> None:
        assert await files.bulk_delete(["<script>", ""]) == 0

    async def test_failed_file_delete_restores_versions(
        self, files, versions, adapter, alice, monkeypatch
    ) -> None:
        """Without transactions a file that survives a failed delete keeps its history."""
        created = await files.upload(_upload(alice.id))
        await versions.add_version(created.id, alice.id, "second draft")
        original_delete_many = adapter.delete_many

        async def failing_delete_many(name, field, values):
            if name == COLLECTION_FILES:
                raise StorageUnavailableException("delete", name, "disk full")
            return await original_delete_many(name, field, values)

        monkeypatch.setattr(adapter, "delete_many", failing_delete_many)
        with pytest.raises(StorageUnavailableException):
            await files.delete(created.id)

        assert await files.get_by_id(created.id) is not None
        history = await versions.list_for_file(created.id)
        assert [v.version_number for v in history] == [2, 1]

    async def test_failed_version_delete_keeps_file(
        self, files, versions, adapter, alice, monkeypatch
    ) -> None:
        created = await files.upload(_upload(alice.id))

        async def failing_delete_many(name, field, values):
            raise StorageUnavailableException("delete", name, "disk full")

        monkeypatch.setattr(adapter, "delete_many", failing_delete_many)
        with pytest.raises(StorageUnavailableException):
            await files.bulk_delete([created.id])

        assert await files.get_by_id(created.id) is not None
        assert len(await versions.list_for_file(created.id)) == 1


async def test_concurrent_uploads_get_distinct_ids(files, alice) -> None:
    """Parallel uploads all persist with their own Version 1."""
    created = await asyncio.gather(
        *(files.upload(_upload(alice.id, name=f"p{i}.txt")) for i in range(5))
    )
    assert len({f.id for f in created}) == 5
    assert (await files.list_for_owner(alice.id)).total == 5
