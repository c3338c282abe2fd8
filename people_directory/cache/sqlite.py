"""
SQLite user cache.

Durable, schema-versioned storage for the user collection, built on
aiosqlite. The file is self-describing: a later process can open it and
read the cached users without any in-memory state from the writer.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from ..exceptions import StorageIOError, StorageUnavailableError
from ..logging_utils import directory_logger
from ..models import CacheMetadata, User, UserLocation, UserName, UserPicture
from .base import UserCache

SCHEMA_VERSION = 1

USER_COLUMNS = (
    "uuid",
    "first_name",
    "last_name",
    "title",
    "email",
    "phone",
    "picture_large",
    "picture_medium",
    "picture_thumbnail",
    "city",
    "country",
    "is_favorite",
    "cached_at",
)

_CREATE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT NOT NULL UNIQUE,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    title TEXT,
    email TEXT NOT NULL,
    phone TEXT NOT NULL,
    picture_large TEXT NOT NULL,
    picture_medium TEXT NOT NULL,
    picture_thumbnail TEXT NOT NULL,
    city TEXT NOT NULL,
    country TEXT NOT NULL,
    is_favorite INTEGER NOT NULL DEFAULT 0,
    cached_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_users_email ON users (email);
CREATE INDEX IF NOT EXISTS idx_users_favorite ON users (is_favorite);
CREATE INDEX IF NOT EXISTS idx_users_cached_at ON users (cached_at);

CREATE TABLE IF NOT EXISTS cache_metadata (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL,
    last_fetched TEXT NOT NULL,
    page INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_metadata_key ON cache_metadata (key);
CREATE INDEX IF NOT EXISTS idx_metadata_last_fetched ON cache_metadata (last_fetched);
CREATE INDEX IF NOT EXISTS idx_metadata_page ON cache_metadata (page);

CREATE TABLE IF NOT EXISTS schema_meta (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""


def _user_to_row(user: User) -> tuple[Any, ...]:
    return (
        user.uuid,
        user.name.first,
        user.name.last,
        user.name.title,
        user.email,
        user.phone,
        user.picture.large,
        user.picture.medium,
        user.picture.thumbnail,
        user.location.city,
        user.location.country,
        1 if user.is_favorite else 0,
        user.cached_at.isoformat(),
    )


def _row_to_user(row: aiosqlite.Row) -> User:
    return User(
        uuid=row["uuid"],
        name=UserName(first=row["first_name"], last=row["last_name"], title=row["title"]),
        email=row["email"],
        phone=row["phone"],
        picture=UserPicture(
            large=row["picture_large"],
            medium=row["picture_medium"],
            thumbnail=row["picture_thumbnail"],
        ),
        location=UserLocation(city=row["city"], country=row["country"]),
        is_favorite=bool(row["is_favorite"]),
        cached_at=datetime.fromisoformat(row["cached_at"]),
    )


class SQLiteUserCache(UserCache):
    """
    SQLite-backed user cache.

    Features:
    - Single file database (or ``:memory:`` for tests)
    - Versioned schema; an incompatible or corrupted file is reported as
      ``StorageUnavailableError``
    - ``replace_all`` runs in one transaction and rolls back on failure
    - One lock serializes every statement on the shared connection, so
      reads never see an uncommitted ``replace_all``
    """

    def __init__(self, db_path: str | Path = ":memory:"):
        self.db_path = db_path
        self.conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._initialized = False
        self._log = directory_logger(__name__, db_path=str(db_path))

    @classmethod
    async def create(cls, db_path: str | Path = ":memory:") -> SQLiteUserCache:
        """Create and initialize a SQLite cache."""
        cache = cls(db_path)
        await cache.initialize()
        return cache

    async def initialize(self) -> None:
        """Open the database and create or verify the schema."""
        if self._initialized:
            return

        try:
            self.conn = await aiosqlite.connect(str(self.db_path))
            self.conn.row_factory = aiosqlite.Row
            await self.conn.executescript(_CREATE_SCHEMA_SQL)

            version = await self._get_schema_version()
            if version is None:
                await self.conn.execute(
                    "INSERT INTO schema_meta (key, value) VALUES ('schema_version', ?)",
                    (str(SCHEMA_VERSION),),
                )
            elif version != SCHEMA_VERSION:
                raise StorageUnavailableError(
                    str(self.db_path),
                    f"schema version {version} is not supported (expected {SCHEMA_VERSION})",
                )

            await self.conn.commit()
            self._initialized = True
            self._log.info(f"SQLite user cache initialized: {self.db_path}")

        except StorageUnavailableError:
            await self._close_quietly()
            raise
        except Exception as e:
            await self._close_quietly()
            raise StorageUnavailableError(str(self.db_path), e) from e

    async def _get_schema_version(self) -> int | None:
        async with self.conn.execute(
            "SELECT value FROM schema_meta WHERE key = 'schema_version'"
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return int(row["value"])
        except (TypeError, ValueError):
            return -1

    async def _close_quietly(self) -> None:
        if self.conn is not None:
            try:
                await self.conn.close()
            except aiosqlite.Error as e:
                self._log.debug(f"Ignoring error while closing {self.db_path}: {e}")
            self.conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._initialized or self.conn is None:
            raise StorageUnavailableError(str(self.db_path), "cache is not open")
        return self.conn

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self.conn:
            await self.conn.close()
            self.conn = None
        self._initialized = False

    # =========================================================================
    # Reads
    # =========================================================================

    async def read_all(self) -> list[User]:
        conn = self._require_conn()
        columns = ", ".join(USER_COLUMNS)
        async with self._lock:
            try:
                async with conn.execute(f"SELECT {columns} FROM users ORDER BY id") as cursor:
                    rows = await cursor.fetchall()
                return [_row_to_user(row) for row in rows]
            except (aiosqlite.Error, ValueError, KeyError, TypeError) as e:
                self._log.error(f"Unreadable user rows: {e}", extra={"operation": "read_all"})
                raise StorageIOError("read_all", e) from e

    async def read_metadata(self) -> list[CacheMetadata]:
        conn = self._require_conn()
        async with self._lock:
            try:
                async with conn.execute(
                    "SELECT key, last_fetched, page FROM cache_metadata ORDER BY id"
                ) as cursor:
                    rows = await cursor.fetchall()
                return [
                    CacheMetadata(
                        key=row["key"],
                        last_fetched=datetime.fromisoformat(row["last_fetched"]),
                        page=row["page"],
                    )
                    for row in rows
                ]
            except (aiosqlite.Error, ValueError, KeyError, TypeError) as e:
                raise StorageIOError("read_metadata", e) from e

    # =========================================================================
    # Writes
    # =========================================================================

    async def replace_all(self, users: list[User], metadata_key: str, page: int) -> None:
        conn = self._require_conn()
        placeholders = ", ".join("?" for _ in USER_COLUMNS)
        insert_sql = f"INSERT INTO users ({', '.join(USER_COLUMNS)}) VALUES ({placeholders})"

        async with self._lock:
            try:
                await conn.execute("DELETE FROM users")
                await conn.execute("DELETE FROM cache_metadata")
                await conn.executemany(insert_sql, [_user_to_row(user) for user in users])
                await conn.execute(
                    "INSERT INTO cache_metadata (key, last_fetched, page) VALUES (?, ?, ?)",
                    (metadata_key, datetime.now(UTC).isoformat(), page),
                )
                await conn.commit()
            except aiosqlite.Error as e:
                await conn.rollback()
                self._log.error(
                    f"replace_all rolled back: {e}",
                    extra={"operation": "replace_all", "user_count": len(users)},
                )
                raise StorageIOError("replace_all", e) from e

        self._log.debug(
            f"Cached {len(users)} users under '{metadata_key}'",
            extra={"page": page, "user_count": len(users)},
        )

    async def update_favorite(self, uuid: str, is_favorite: bool) -> bool:
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(
                    "UPDATE users SET is_favorite = ? WHERE uuid = ?",
                    (1 if is_favorite else 0, uuid),
                )
                updated = cursor.rowcount
                await cursor.close()
                await conn.commit()
            except aiosqlite.Error as e:
                await conn.rollback()
                raise StorageIOError("update_favorite", e) from e

        if updated == 0:
            self._log.debug(f"update_favorite: no cached user {uuid}", extra={"uuid": uuid})
            return False
        return True
