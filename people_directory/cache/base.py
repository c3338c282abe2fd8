"""
Abstract durable cache interface.

Defines the contract every user cache implementation must honor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import CacheMetadata, User

# Metadata key used when the whole collection is cached in one fetch
ALL_USERS_KEY = "all_users"


class UserCache(ABC):
    """Durable store for the full user collection plus cache metadata.

    Implementations must:
    - keep ``uuid`` unique across stored records
    - make ``replace_all`` all-or-nothing: on failure the previous contents
      remain and ``StorageIOError`` is raised
    - serialize reads and writes so no caller observes a half-cleared
      collection while ``replace_all`` is in progress
    - raise ``StorageUnavailableError`` when the durable facility cannot be
      opened; callers treat that as an empty cache
    """

    @abstractmethod
    async def read_all(self) -> list[User]:
        """Return all stored users in insertion order (empty list if none)."""

    @abstractmethod
    async def replace_all(self, users: list[User], metadata_key: str, page: int) -> None:
        """Atomically clear users and metadata, then store ``users`` and one metadata record."""

    @abstractmethod
    async def update_favorite(self, uuid: str, is_favorite: bool) -> bool:
        """Set the favorite flag of one user.

        Returns:
            True if a record was updated, False if no record has ``uuid`` (no-op)
        """

    @abstractmethod
    async def read_metadata(self) -> list[CacheMetadata]:
        """Return stored cache-population records."""

    async def close(self) -> None:
        """Release storage resources."""
