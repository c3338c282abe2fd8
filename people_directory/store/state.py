"""
In-memory application state published by the sync store.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from ..models import User

FETCH_FAILED_MESSAGE = "Failed to fetch users. Loading from cache..."
FETCH_FAILED_CACHED_MESSAGE = "Failed to fetch users. Showing cached data."
OFFLINE_MESSAGE = "You are offline. Showing cached data."
MANUAL_OFFLINE_MESSAGE = "Simulated offline mode enabled. Showing cached data."
NO_CACHED_DATA_MESSAGE = "No cached data available."
CACHE_UNAVAILABLE_MESSAGE = "Cache not available."
CACHE_READ_FAILED_MESSAGE = "Failed to load cached data."
CACHE_WRITE_FAILED_MESSAGE = "Fetched users could not be saved for offline use."


class SyncPhase(Enum):
    """Meaningful combinations of the state flags."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOADED_WITH_ERROR = "loaded_with_error"


@dataclass
class AppState:
    """Everything the UI renders.

    Attributes:
        all_users: Full collection (fetched or read from cache)
        users: Visible slice for ``current_page``
        current_page: 1-based page number
        page_size: Users per page
        total_pages: Page count of ``all_users`` (at least 1)
        is_loading: A remote fetch is in flight
        is_online: Effective connectivity (manual override applied)
        is_manual_offline: Simulated offline mode is engaged
        error: Status or error message shown to the user, if any
    """

    all_users: list[User] = field(default_factory=list)
    users: list[User] = field(default_factory=list)
    current_page: int = 1
    page_size: int = 10
    total_pages: int = 1
    is_loading: bool = False
    is_online: bool = True
    is_manual_offline: bool = False
    error: str | None = None

    @property
    def phase(self) -> SyncPhase:
        if self.is_loading:
            return SyncPhase.LOADING
        if self.error is not None:
            return SyncPhase.LOADED_WITH_ERROR
        if not self.all_users:
            return SyncPhase.IDLE
        return SyncPhase.LOADED

    def copy(self) -> AppState:
        """Snapshot safe to hand to listeners."""
        return replace(self, all_users=list(self.all_users), users=list(self.users))
