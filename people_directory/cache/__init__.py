"""
Durable user cache.

The implementation is chosen once, at construction time:

    # SQLite file (or UnavailableUserCache when it cannot be opened)
    cache = await open_user_cache(config)

    # Tests and non-interactive runs
    cache = InMemoryUserCache()
"""

from __future__ import annotations

import logging

from ..config import DirectoryConfig
from ..exceptions import StorageUnavailableError
from .base import ALL_USERS_KEY, UserCache
from .memory import InMemoryUserCache, UnavailableUserCache
from .sqlite import SCHEMA_VERSION, SQLiteUserCache

logger = logging.getLogger(__name__)


async def open_user_cache(config: DirectoryConfig) -> UserCache:
    """Open the configured durable cache, degrading to an unavailable one."""
    if not config.persist:
        return UnavailableUserCache("persistence disabled")

    try:
        return await SQLiteUserCache.create(config.db_path)
    except StorageUnavailableError as e:
        logger.warning(f"Durable cache unavailable, continuing without it: {e.details}")
        return UnavailableUserCache(str(e.details.get("cause", e.message)))


__all__ = [
    "ALL_USERS_KEY",
    "SCHEMA_VERSION",
    "UserCache",
    "SQLiteUserCache",
    "InMemoryUserCache",
    "UnavailableUserCache",
    "open_user_cache",
]
