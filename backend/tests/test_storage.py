"""
Tests for local file storage and the thread repository.
"""

import pytest

from genie.core.exceptions import NotFoundError, StoreError
from genie.storage import LocalStorage, ThreadRepository


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


class TestLocalStorage:

    @pytest.mark.asyncio
    async def test_save_and_load(self, storage):
        assert await storage.save("a/b/doc.json", '{"x": 1}') is True
        assert await storage.load("a/b/doc.json") == b'{"x": 1}'
        assert await storage.exists("a/b/doc.json") is True

    @pytest.mark.asyncio
    async def test_save_bytes(self, storage):
        assert await storage.save("blob.bin", b"\x00\x01") is True
        assert await storage.load("blob.bin") == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_no_temp_file_left_behind(self, storage):
        await storage.save("doc.json", "{}")
        assert await storage.list("", pattern="*.tmp") == []

    @pytest.mark.asyncio
    async def test_missing(self, storage):
        assert await storage.load("nope.json") is None
        assert await storage.exists("nope.json") is False
        assert await storage.delete("nope.json") is False
        assert await storage.list("nope") == []

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        await storage.save("doc.json", "{}")
        assert await storage.delete("doc.json") is True
        assert await storage.exists("doc.json") is False

    @pytest.mark.asyncio
    async def test_list_with_pattern(self, storage):
        await storage.save("dir/one.json", "{}")
        await storage.save("dir/two.json", "{}")
        await storage.save("dir/notes.txt", "")
        assert await storage.list("dir", pattern="*.json") == ["dir/one.json", "dir/two.json"]

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, storage):
        # Failures are reported, not raised
        assert await storage.save("../escape.json", "{}") is False
        assert await storage.load("../../etc/passwd") is None
        assert await storage.exists("../escape.json") is False


class TestThreadRepository:

    @pytest.fixture
    def repository(self, storage):
        return ThreadRepository(storage)

    @pytest.mark.asyncio
    async def test_create_and_get(self, repository):
        thread = await repository.create_thread("u1", "Hello")
        loaded = await repository.get_thread("u1", thread.id)
        assert loaded == thread
        assert loaded.message_count == 0

    @pytest.mark.asyncio
    async def test_get_is_owner_scoped(self, repository):
        thread = await repository.create_thread("u1", "Hello")
        with pytest.raises(NotFoundError):
            await repository.get_thread("u2", thread.id)

    @pytest.mark.asyncio
    async def test_get_with_invalid_id(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get_thread("u1", "../../u2/secret")

    @pytest.mark.asyncio
    async def test_corrupt_thread_document(self, repository, storage):
        thread = await repository.create_thread("u1", "Hello")
        await storage.save(f"threads/u1/{thread.id}.json", "{broken")
        with pytest.raises(StoreError):
            await repository.get_thread("u1", thread.id)

    @pytest.mark.asyncio
    async def test_list_skips_unreadable_documents(self, repository, storage):
        good = await repository.create_thread("u1", "Good")
        await storage.save("threads/u1/00000000-0000-0000-0000-000000000001.json", "not json")
        threads = await repository.list_threads("u1")
        assert [t.id for t in threads] == [good.id]

    @pytest.mark.asyncio
    async def test_list_orders_by_updated_at(self, repository):
        older = await repository.create_thread("u1", "Older")
        newer = await repository.create_thread("u1", "Newer")
        assert [t.id for t in await repository.list_threads("u1")] == [newer.id, older.id]

        await repository.add_message("u1", older.id, "user", "bump")
        assert [t.id for t in await repository.list_threads("u1")] == [older.id, newer.id]

    @pytest.mark.asyncio
    async def test_add_message_updates_thread(self, repository):
        thread = await repository.create_thread("u1", "Chat")
        first = await repository.add_message("u1", thread.id, "user", "one")
        second = await repository.add_message("u1", thread.id, "assistant", "two")

        updated = await repository.get_thread("u1", thread.id)
        assert updated.message_count == 2
        assert updated.updated_at == second.created_at

        messages = await repository.list_messages("u1", thread.id)
        assert [m.id for m in messages] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_add_message_to_foreign_thread(self, repository):
        thread = await repository.create_thread("u1", "Chat")
        with pytest.raises(NotFoundError):
            await repository.add_message("u2", thread.id, "user", "hi")
        assert (await repository.get_thread("u1", thread.id)).message_count == 0

    @pytest.mark.asyncio
    async def test_delete_removes_messages(self, repository, storage):
        thread = await repository.create_thread("u1", "Chat")
        await repository.add_message("u1", thread.id, "user", "hi")

        await repository.delete_thread("u1", thread.id)

        assert await repository.list_threads("u1") == []
        assert await storage.exists(f"messages/{thread.id}.json") is False
        with pytest.raises(NotFoundError):
            await repository.delete_thread("u1", thread.id)

    @pytest.mark.asyncio
    async def test_delete_foreign_thread(self, repository):
        thread = await repository.create_thread("u1", "Chat")
        with pytest.raises(NotFoundError):
            await repository.delete_thread("u2", thread.id)
        assert await repository.get_thread("u1", thread.id) == thread
