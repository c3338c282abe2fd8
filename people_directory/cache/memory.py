"""
Non-durable cache implementations.

``InMemoryUserCache`` mirrors the SQLite semantics in process memory and is
used for tests and non-interactive runs. ``UnavailableUserCache`` stands in
when no durable store can be opened: every call raises
``StorageUnavailableError`` so the store reports "cache not available".
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from ..exceptions import StorageIOError, StorageUnavailableError
from ..models import CacheMetadata, User
from .base import UserCache


class InMemoryUserCache(UserCache):
    """Process-local cache with the same contract as the SQLite cache."""

    def __init__(self, users: list[User] | None = None) -> None:
        self._users: list[User] = list(users or [])
        self._metadata: list[CacheMetadata] = []
        self._lock = asyncio.Lock()

    async def read_all(self) -> list[User]:
        return list(self._users)

    async def replace_all(self, users: list[User], metadata_key: str, page: int) -> None:
        uuids = [user.uuid for user in users]
        if len(set(uuids)) != len(uuids):
            raise StorageIOError("replace_all", ValueError("duplicate uuid in users"))

        async with self._lock:
            # Swap in one step; nothing is visible half-cleared.
            self._users = list(users)
            self._metadata = [
                CacheMetadata(key=metadata_key, last_fetched=datetime.now(UTC), page=page)
            ]

    async def update_favorite(self, uuid: str, is_favorite: bool) -> bool:
        async with self._lock:
            for index, user in enumerate(self._users):
                if user.uuid == uuid:
                    self._users[index] = user.with_favorite(is_favorite)
                    return True
        return False

    async def read_metadata(self) -> list[CacheMetadata]:
        return list(self._metadata)


class UnavailableUserCache(UserCache):
    """Placeholder for environments without durable storage."""

    def __init__(self, reason: str = "persistence disabled") -> None:
        self.reason = reason

    def _unavailable(self) -> StorageUnavailableError:
        return StorageUnavailableError("<none>", self.reason)

    async def read_all(self) -> list[User]:
        raise self._unavailable()

    async def replace_all(self, users: list[User], metadata_key: str, page: int) -> None:
        raise self._unavailable()

    async def update_favorite(self, uuid: str, is_favorite: bool) -> bool:
        raise self._unavailable()

    async def read_metadata(self) -> list[CacheMetadata]:
        raise self._unavailable()
