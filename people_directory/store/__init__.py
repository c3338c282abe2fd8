"""
Sync store: the state machine behind the directory UI.
"""

from .state import (
    CACHE_READ_FAILED_MESSAGE,
    CACHE_UNAVAILABLE_MESSAGE,
    CACHE_WRITE_FAILED_MESSAGE,
    FETCH_FAILED_CACHED_MESSAGE,
    FETCH_FAILED_MESSAGE,
    MANUAL_OFFLINE_MESSAGE,
    NO_CACHED_DATA_MESSAGE,
    OFFLINE_MESSAGE,
    AppState,
    SyncPhase,
)
from .sync_store import SyncStore

__all__ = [
    "SyncStore",
    "AppState",
    "SyncPhase",
    # Status messages
    "FETCH_FAILED_MESSAGE",
    "FETCH_FAILED_CACHED_MESSAGE",
    "OFFLINE_MESSAGE",
    "MANUAL_OFFLINE_MESSAGE",
    "NO_CACHED_DATA_MESSAGE",
    "CACHE_UNAVAILABLE_MESSAGE",
    "CACHE_READ_FAILED_MESSAGE",
    "CACHE_WRITE_FAILED_MESSAGE",
]
