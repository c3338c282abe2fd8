"""
Tests for the SQLite user cache.

Uses real SQLite (in-memory or a temp file) for accurate testing.
"""

import asyncio
import sqlite3

import pytest
from conftest import make_user, make_users

from people_directory.cache import (
    ALL_USERS_KEY,
    SCHEMA_VERSION,
    InMemoryUserCache,
    SQLiteUserCache,
    UnavailableUserCache,
    open_user_cache,
)
from people_directory.config import DirectoryConfig
from people_directory.exceptions import StorageIOError, StorageUnavailableError


class TestSQLiteInitialization:
    @pytest.mark.asyncio
    async def test_create_in_memory(self):
        cache = await SQLiteUserCache.create(":memory:")
        assert cache._initialized is True
        assert await cache.read_all() == []
        await cache.close()

    @pytest.mark.asyncio
    async def test_reopen_file_keeps_data(self, tmp_path):
        db_path = tmp_path / "users.db"

        cache = await SQLiteUserCache.create(db_path)
        await cache.replace_all(make_users(3), ALL_USERS_KEY, 1)
        await cache.close()

        reopened = await SQLiteUserCache.create(db_path)
        users = await reopened.read_all()
        await reopened.close()

        assert [u.uuid for u in users] == ["uuid-0", "uuid-1", "uuid-2"]

    @pytest.mark.asyncio
    async def test_incompatible_schema_version_is_unavailable(self, tmp_path):
        db_path = tmp_path / "users.db"
        cache = await SQLiteUserCache.create(db_path)
        await cache.close()

        conn = sqlite3.connect(db_path)
        conn.execute(
            "UPDATE schema_meta SET value = ? WHERE key = 'schema_version'",
            (str(SCHEMA_VERSION + 1),),
        )
        conn.commit()
        conn.close()

        with pytest.raises(StorageUnavailableError, match="Storage unavailable"):
            await SQLiteUserCache.create(db_path)

    @pytest.mark.asyncio
    async def test_corrupted_file_is_unavailable(self, tmp_path):
        db_path = tmp_path / "users.db"
        db_path.write_bytes(b"this is not a sqlite database" * 100)

        with pytest.raises(StorageUnavailableError):
            await SQLiteUserCache.create(db_path)

    @pytest.mark.asyncio
    async def test_operations_before_initialize_are_unavailable(self):
        cache = SQLiteUserCache(":memory:")

        with pytest.raises(StorageUnavailableError):
            await cache.read_all()


class TestSQLiteReplaceAll:
    @pytest.mark.asyncio
    async def test_replace_all_round_trips_fields(self, sqlite_cache):
        original = make_user(4, is_favorite=True)
        await sqlite_cache.replace_all([original], ALL_USERS_KEY, 1)

        [stored] = await sqlite_cache.read_all()

        assert stored == original

    @pytest.mark.asyncio
    async def test_replace_all_clears_previous_collection(self, sqlite_cache):
        await sqlite_cache.replace_all(make_users(5), ALL_USERS_KEY, 1)
        await sqlite_cache.replace_all(make_users(2, start=10), ALL_USERS_KEY, 1)

        users = await sqlite_cache.read_all()

        assert [u.uuid for u in users] == ["uuid-10", "uuid-11"]

    @pytest.mark.asyncio
    async def test_replace_all_writes_single_metadata_record(self, sqlite_cache):
        await sqlite_cache.replace_all(make_users(2), ALL_USERS_KEY, 1)
        await sqlite_cache.replace_all(make_users(2), ALL_USERS_KEY, 3)

        metadata = await sqlite_cache.read_metadata()

        assert len(metadata) == 1
        assert metadata[0].key == ALL_USERS_KEY
        assert metadata[0].page == 3
        assert metadata[0].last_fetched.tzinfo is not None

    @pytest.mark.asyncio
    async def test_failed_replace_rolls_back(self, sqlite_cache):
        """A failing insert after the clear leaves the previous contents intact."""
        await sqlite_cache.replace_all(make_users(3), ALL_USERS_KEY, 1)

        duplicates = [make_user(20), make_user(21, uuid="uuid-20")]
        with pytest.raises(StorageIOError) as exc_info:
            await sqlite_cache.replace_all(duplicates, ALL_USERS_KEY, 2)

        assert exc_info.value.operation == "replace_all"
        assert [u.uuid for u in await sqlite_cache.read_all()] == ["uuid-0", "uuid-1", "uuid-2"]
        assert (await sqlite_cache.read_metadata())[0].page == 1

    @pytest.mark.asyncio
    async def test_replace_with_empty_collection(self, sqlite_cache):
        await sqlite_cache.replace_all(make_users(3), ALL_USERS_KEY, 1)
        await sqlite_cache.replace_all([], ALL_USERS_KEY, 1)

        assert await sqlite_cache.read_all() == []


class TestSQLiteReads:
    @pytest.mark.asyncio
    async def test_read_waits_for_pending_replace(self, sqlite_cache, monkeypatch):
        """A reader never sees the table between the clear and the commit."""
        await sqlite_cache.replace_all(make_users(25), ALL_USERS_KEY, 1)

        cleared = asyncio.Event()
        release = asyncio.Event()
        executemany = sqlite_cache.conn.executemany

        async def held_executemany(sql, rows):
            cleared.set()
            await release.wait()
            return await executemany(sql, rows)

        monkeypatch.setattr(sqlite_cache.conn, "executemany", held_executemany)
        writer = asyncio.create_task(
            sqlite_cache.replace_all(make_users(30, start=100), ALL_USERS_KEY, 2)
        )
        await cleared.wait()

        reader = asyncio.create_task(sqlite_cache.read_all())
        metadata_reader = asyncio.create_task(sqlite_cache.read_metadata())
        await asyncio.sleep(0.05)
        assert not reader.done()
        assert not metadata_reader.done()

        release.set()
        await writer

        assert [u.uuid for u in await reader] == [f"uuid-{i}" for i in range(100, 130)]
        assert [m.page for m in await metadata_reader] == [2]

    @pytest.mark.asyncio
    async def test_undecodable_row_is_io_error(self, sqlite_cache):
        await sqlite_cache.replace_all(make_users(3), ALL_USERS_KEY, 1)
        await sqlite_cache.conn.execute(
            "UPDATE users SET cached_at = 'not-a-date' WHERE uuid = 'uuid-1'"
        )
        await sqlite_cache.conn.commit()

        with pytest.raises(StorageIOError) as exc_info:
            await sqlite_cache.read_all()

        assert exc_info.value.operation == "read_all"

    @pytest.mark.asyncio
    async def test_undecodable_metadata_is_io_error(self, sqlite_cache):
        await sqlite_cache.replace_all(make_users(1), ALL_USERS_KEY, 1)
        await sqlite_cache.conn.execute("UPDATE cache_metadata SET last_fetched = 'yesterday'")
        await sqlite_cache.conn.commit()

        with pytest.raises(StorageIOError) as exc_info:
            await sqlite_cache.read_metadata()

        assert exc_info.value.operation == "read_metadata"


class TestSQLiteUpdateFavorite:
    @pytest.mark.asyncio
    async def test_updates_one_record(self, sqlite_cache):
        await sqlite_cache.replace_all(make_users(3), ALL_USERS_KEY, 1)

        assert await sqlite_cache.update_favorite("uuid-1", True) is True

        flags = {u.uuid: u.is_favorite for u in await sqlite_cache.read_all()}
        assert flags == {"uuid-0": False, "uuid-1": True, "uuid-2": False}

    @pytest.mark.asyncio
    async def test_unknown_uuid_is_noop(self, sqlite_cache):
        await sqlite_cache.replace_all(make_users(2), ALL_USERS_KEY, 1)

        assert await sqlite_cache.update_favorite("missing", True) is False
        assert not any(u.is_favorite for u in await sqlite_cache.read_all())


class TestInMemoryUserCache:
    @pytest.mark.asyncio
    async def test_same_contract_as_sqlite(self):
        cache = InMemoryUserCache()
        await cache.replace_all(make_users(3), ALL_USERS_KEY, 1)

        assert await cache.update_favorite("uuid-2", True) is True
        assert await cache.update_favorite("missing", True) is False
        assert [u.is_favorite for u in await cache.read_all()] == [False, False, True]
        assert (await cache.read_metadata())[0].key == ALL_USERS_KEY

    @pytest.mark.asyncio
    async def test_duplicate_uuids_rejected_without_change(self):
        cache = InMemoryUserCache(make_users(2))

        with pytest.raises(StorageIOError):
            await cache.replace_all([make_user(5), make_user(6, uuid="uuid-5")], ALL_USERS_KEY, 1)

        assert len(await cache.read_all()) == 2


class TestOpenUserCache:
    @pytest.mark.asyncio
    async def test_opens_sqlite(self):
        cache = await open_user_cache(DirectoryConfig(db_path=":memory:"))
        assert isinstance(cache, SQLiteUserCache)
        await cache.close()

    @pytest.mark.asyncio
    async def test_persistence_disabled(self):
        cache = await open_user_cache(DirectoryConfig(persist=False))

        assert isinstance(cache, UnavailableUserCache)
        with pytest.raises(StorageUnavailableError):
            await cache.read_all()

    @pytest.mark.asyncio
    async def test_unopenable_store_degrades(self, tmp_path):
        db_path = tmp_path / "users.db"
        db_path.write_bytes(b"garbage" * 500)

        cache = await open_user_cache(DirectoryConfig(db_path=db_path))

        assert isinstance(cache, UnavailableUserCache)
        with pytest.raises(StorageUnavailableError):
            await cache.update_favorite("uuid-0", True)
