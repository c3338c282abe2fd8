"""
Shared test configuration and fixtures.

Provides a scriptable fake remote source, raw record and user factories,
and cache fixtures backed by real in-memory SQLite.
"""

import asyncio
import logging
from datetime import UTC, datetime

import pytest

from people_directory.cache import InMemoryUserCache, SQLiteUserCache
from people_directory.config import DirectoryConfig
from people_directory.connectivity import ConnectivityMonitor
from people_directory.exceptions import NetworkError
from people_directory.models import User, UserLocation, UserName, UserPicture
from people_directory.remote import RemoteSource
from people_directory.store import SyncStore

logger = logging.getLogger(__name__)


def make_raw_record(index: int, uuid: str | None = None) -> dict:
    """Raw record in the remote endpoint's shape."""
    return {
        "login": {"uuid": uuid or f"uuid-{index}"},
        "name": {"title": "Ms", "first": f"First{index}", "last": f"Last{index}"},
        "email": f"user{index}@example.com",
        "phone": f"555-{index:04d}",
        "picture": {
            "large": f"https://img.example.com/large/{index}.jpg",
            "medium": f"https://img.example.com/med/{index}.jpg",
            "thumbnail": f"https://img.example.com/thumb/{index}.jpg",
        },
        "location": {"city": f"City{index}", "country": "Norway"},
    }


def make_user(index: int, is_favorite: bool = False, uuid: str | None = None) -> User:
    """Canonical user for seeding caches and fakes."""
    return User(
        uuid=uuid or f"uuid-{index}",
        name=UserName(first=f"First{index}", last=f"Last{index}", title="Ms"),
        email=f"user{index}@example.com",
        phone=f"555-{index:04d}",
        picture=UserPicture(
            large=f"https://img.example.com/large/{index}.jpg",
            medium=f"https://img.example.com/med/{index}.jpg",
            thumbnail=f"https://img.example.com/thumb/{index}.jpg",
        ),
        location=UserLocation(city=f"City{index}", country="Norway"),
        is_favorite=is_favorite,
        cached_at=datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
    )


def make_users(count: int, start: int = 0) -> list[User]:
    return [make_user(i) for i in range(start, start + count)]


class FakeRemoteSource(RemoteSource):
    """
    Remote source double for store tests.

    Returns ``users`` (or raises ``error``) and counts calls. When ``gate``
    is set, each fetch waits on it so tests can act mid-flight.
    """

    def __init__(self, users: list[User] | None = None, error: Exception | None = None):
        self.users = list(users or [])
        self.error = error
        self.calls: list[tuple[int, int]] = []
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    async def fetch_users(self, page: int, results: int) -> list[User]:
        self.calls.append((page, results))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        # Fresh copies, unfavorited, as the real client would return
        return [user.with_favorite(False) for user in self.users]


@pytest.fixture
def config():
    """Small config: 10 per page, short timeout."""
    return DirectoryConfig(page_size=10, fetch_results=50, db_path=":memory:", request_timeout=1.0)


@pytest.fixture
def remote():
    return FakeRemoteSource(make_users(25))


@pytest.fixture
def failing_remote():
    return FakeRemoteSource(error=NetworkError("Remote source returned HTTP 503", status=503))


@pytest.fixture
def memory_cache():
    return InMemoryUserCache()


@pytest.fixture
async def sqlite_cache():
    """Real SQLite cache in memory."""
    cache = await SQLiteUserCache.create(":memory:")
    yield cache
    await cache.close()


@pytest.fixture
def monitor():
    return ConnectivityMonitor(raw_online=True)


@pytest.fixture
def make_store(config, monitor):
    """Factory building isolated stores over the given remote and cache."""
    stores = []

    def _make(remote_source, cache, store_monitor=None):
        store = SyncStore(remote_source, cache, store_monitor or monitor, config)
        stores.append(store)
        return store

    yield _make

    for store in stores:
        store.close()
