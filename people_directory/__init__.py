"""
People Directory

Local-first sync and cache engine for a paginated directory of user profiles.

Provides:
- A sync store that decides, per read, between the network and the durable cache
- A schema-versioned SQLite cache with atomic clear-and-replace
- Connectivity tracking with a manual "simulate offline" override
- Pure pagination over the in-memory collection

Usage:

    >>> from people_directory import DirectoryConfig, open_store
    >>> async with open_store(DirectoryConfig.from_env()) as store:
    ...     await store.fetch_users()
    ...     store.go_to_page(2)
    ...     await store.toggle_favorite(store.state.users[0].uuid)
    ...     await store.toggle_manual_offline()   # now serving the cache

Testing without network or disk:

    from people_directory import ConnectivityMonitor, InMemoryUserCache, SyncStore

    store = SyncStore(fake_remote, InMemoryUserCache(), ConnectivityMonitor())
"""

from .app import open_store

# Durable cache
from .cache import (
    InMemoryUserCache,
    SQLiteUserCache,
    UnavailableUserCache,
    UserCache,
    open_user_cache,
)
from .config import DirectoryConfig
from .connectivity import ChangeSource, ConnectivityChange, ConnectivityMonitor

# Exceptions
from .exceptions import (
    DirectoryError,
    FetchTimeoutError,
    InvalidNavigationError,
    NetworkError,
    StorageIOError,
    StorageUnavailableError,
)
from .models import CacheMetadata, User, UserLocation, UserName, UserPicture
from .pagination import PageSlice, paginate, total_pages_for
from .remote import RemoteSource, RemoteSourceClient

# Store
from .store import AppState, SyncPhase, SyncStore

__all__ = [
    # Composition
    "open_store",
    "DirectoryConfig",
    # Store
    "SyncStore",
    "AppState",
    "SyncPhase",
    # Collaborators
    "RemoteSource",
    "RemoteSourceClient",
    "UserCache",
    "SQLiteUserCache",
    "InMemoryUserCache",
    "UnavailableUserCache",
    "open_user_cache",
    "ConnectivityMonitor",
    "ConnectivityChange",
    "ChangeSource",
    # Pagination
    "paginate",
    "total_pages_for",
    "PageSlice",
    # Models
    "User",
    "UserName",
    "UserPicture",
    "UserLocation",
    "CacheMetadata",
    # Exceptions
    "DirectoryError",
    "NetworkError",
    "FetchTimeoutError",
    "StorageUnavailableError",
    "StorageIOError",
    "InvalidNavigationError",
]

__version__ = "0.1.0"
