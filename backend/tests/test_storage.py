"""
Tests for the storage backend and the account/session document stores.
"""

import asyncio

import pytest
from pydantic import ValidationError

from therapy_chat.models import Turn
from therapy_chat.storage import (
    AccountExistsError, LocalStorage, SessionConflictError, StorageError,
    create_storage,
)


class TestLocalStorage:

    @pytest.mark.asyncio
    async def test_save_and_load(self, storage):
        await storage.save("a/b.json", '{"x": 1}')

        assert await storage.load("a/b.json") == b'{"x": 1}'
        assert await storage.exists("a/b.json")

    @pytest.mark.asyncio
    async def test_load_missing_returns_none(self, storage):
        assert await storage.load("nope.json") is None

    @pytest.mark.asyncio
    async def test_save_replaces_content(self, storage):
        await storage.save("doc.json", "old")
        await storage.save("doc.json", b"new")

        assert await storage.load("doc.json") == b"new"

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, storage):
        with pytest.raises(StorageError):
            await storage.save("../outside.json", "x")

    @pytest.mark.asyncio
    async def test_list_and_delete(self, storage):
        await storage.save("dir/one.json", "1")
        await storage.save("dir/two.json", "2")
        await storage.save("dir/readme.txt", "3")

        assert await storage.list("dir", pattern="*.json") == ["dir/one.json", "dir/two.json"]
        assert await storage.delete("dir/one.json") is True
        assert await storage.delete("dir/one.json") is False
        assert await storage.list("missing") == []

    @pytest.mark.asyncio
    async def test_concurrent_saves_to_one_path(self, storage):
        results = await asyncio.gather(
            *(storage.save("doc.json", f"version {i}") for i in range(8)),
            return_exceptions=True,
        )

        assert results == [None] * 8
        assert (await storage.load("doc.json")).decode() in {f"version {i}" for i in range(8)}
        assert list(storage.base_dir.glob("*.tmp")) == []

    def test_create_storage(self, tmp_path):
        assert isinstance(create_storage("local", str(tmp_path)), LocalStorage)
        with pytest.raises(ValueError, match="Unsupported"):
            create_storage("s3", str(tmp_path))


class TestAccountStorage:

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, accounts):
        created = await accounts.create_account("Alice@Example.com", "Alice", "hash")

        by_id = await accounts.get_account(created.id)
        by_email = await accounts.get_account_by_email("alice@example.com")

        assert by_id == created
        assert by_email.id == created.id
        assert by_id.hashed_password == "hash"

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, accounts):
        await accounts.create_account("bob@example.com", "Bob", "hash")

        with pytest.raises(AccountExistsError):
            await accounts.create_account("BOB@example.com", "Bobby", "hash")

    @pytest.mark.asyncio
    async def test_concurrent_registrations_all_reachable(self, accounts):
        emails = [f"user{i}@example.com" for i in range(8)]

        created = await asyncio.gather(
            *(accounts.create_account(email, "User", "hash") for email in emails)
        )

        for email, account in zip(emails, created):
            found = await accounts.get_account_by_email(email)
            assert found is not None
            assert found.id == account.id

    @pytest.mark.asyncio
    async def test_concurrent_same_email_creates_one(self, accounts, storage):
        results = await asyncio.gather(
            *(accounts.create_account("dup@example.com", "Dup", "hash") for _ in range(4)),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert len(created) == 1
        assert len(rejected) == 3
        assert all(isinstance(r, AccountExistsError) for r in rejected)
        assert (await accounts.get_account_by_email("dup@example.com")).id == created[0].id
        assert await storage.list("accounts", pattern="*-*.json") == [f"accounts/{created[0].id}.json"]

    @pytest.mark.asyncio
    async def test_failed_index_write_leaves_no_account(self, accounts, storage):
        original_save = storage.save

        async def save_without_index(path, content):
            if path.endswith("email_index.json"):
                raise StorageError("disk full")
            await original_save(path, content)

        storage.save = save_without_index

        with pytest.raises(StorageError):
            await accounts.create_account("dave@example.com", "Dave", "hash")

        assert await storage.list("accounts") == []
        storage.save = original_save
        created = await accounts.create_account("dave@example.com", "Dave", "hash")
        assert (await accounts.get_account_by_email("dave@example.com")).id == created.id

    @pytest.mark.asyncio
    async def test_delete(self, accounts):
        created = await accounts.create_account("carol@example.com", "Carol", "hash")

        assert await accounts.delete_account(created.id) is True
        assert await accounts.get_account(created.id) is None
        assert await accounts.get_account_by_email("carol@example.com") is None

    @pytest.mark.asyncio
    async def test_non_uuid_id_is_unknown(self, accounts):
        assert await accounts.get_account("../sessions/x") is None


class TestSessionStorage:

    @pytest.mark.asyncio
    async def test_create_and_load(self, sessions):
        created = await sessions.create("3F2504E0-4F89-41D3-9A0C-0305E82C3301")

        loaded = await sessions.load(created.session_id)

        assert loaded == created
        assert loaded.user_id == "3f2504e0-4f89-41d3-9a0c-0305e82c3301"
        assert loaded.status == "active"
        assert loaded.messages == []

    @pytest.mark.asyncio
    async def test_document_uses_camel_case_keys(self, sessions, storage):
        created = await sessions.create("3f2504e0-4f89-41d3-9a0c-0305e82c3301")

        raw = (await storage.load(f"sessions/{created.session_id}.json")).decode()

        assert '"sessionId"' in raw
        assert '"startTime"' in raw
        assert '"userId"' in raw

    @pytest.mark.asyncio
    async def test_save_increments_version(self, sessions):
        created = await sessions.create("3f2504e0-4f89-41d3-9a0c-0305e82c3301")
        session = await sessions.load(created.session_id)
        session.messages.append(Turn(role="user", content="hi"))

        stored = await sessions.save(session)

        assert stored.version == created.version + 1
        reloaded = await sessions.load(created.session_id)
        assert reloaded.version == stored.version
        assert [t.content for t in reloaded.messages] == ["hi"]

    @pytest.mark.asyncio
    async def test_stale_write_is_rejected(self, sessions):
        created = await sessions.create("3f2504e0-4f89-41d3-9a0c-0305e82c3301")
        first = await sessions.load(created.session_id)
        second = await sessions.load(created.session_id)

        first.messages.append(Turn(role="user", content="from first"))
        await sessions.save(first)
        second.messages.append(Turn(role="user", content="from second"))

        with pytest.raises(SessionConflictError):
            await sessions.save(second)

        reloaded = await sessions.load(created.session_id)
        assert [t.content for t in reloaded.messages] == ["from first"]

    @pytest.mark.asyncio
    async def test_list_by_owner_newest_first(self, sessions):
        owner = "3f2504e0-4f89-41d3-9a0c-0305e82c3301"
        first = await sessions.create(owner)
        second = await sessions.create(owner)
        await sessions.create("9b2c7e1a-0000-4000-8000-000000000001")

        listed = await sessions.list_by_owner(owner.upper())

        assert [s.session_id for s in listed] == [second.session_id, first.session_id]

    def test_turn_role_is_user_or_assistant(self):
        with pytest.raises(ValidationError):
            Turn(role="system", content="hi")

    @pytest.mark.asyncio
    async def test_invalid_stored_document_is_storage_error(self, sessions, storage):
        created = await sessions.create("3f2504e0-4f89-41d3-9a0c-0305e82c3301")
        path = f"sessions/{created.session_id}.json"
        raw = (await storage.load(path)).decode()
        doc = raw.replace('"messages": []', '"messages": [{"role": "system", "content": "x"}]')
        await storage.save(path, doc)

        with pytest.raises(StorageError):
            await sessions.load(created.session_id)

    @pytest.mark.asyncio
    async def test_load_unknown(self, sessions):
        assert await sessions.load("00000000-0000-4000-8000-000000000000") is None
        assert await sessions.load("not-a-uuid") is None
