"""
Local-first sync store.

Owns the in-memory ``AppState`` and coordinates the remote source, the
durable cache, the connectivity monitor and the paginator:

- Online: fetch from the remote source, merge favorites, replace the cache
  atomically, publish the new collection.
- Offline, or when the fetch fails: serve the last durable snapshot.

Every I/O failure is caught here and turned into a status message plus the
best data available; nothing propagates to the UI.

Consistency contract for favorites: ``toggle_favorite`` flips the flag in
memory immediately and only then writes it to the cache. A failed write is
logged and never rolls back the in-memory flip, so memory and durable
storage may disagree until the next successful write or full refresh.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from ..cache.base import ALL_USERS_KEY, UserCache
from ..config import DirectoryConfig
from ..connectivity import ChangeSource, ConnectivityChange, ConnectivityMonitor
from ..exceptions import (
    FetchTimeoutError,
    InvalidNavigationError,
    NetworkError,
    StorageIOError,
    StorageUnavailableError,
)
from ..logging_utils import directory_logger
from ..models import User
from ..pagination import paginate
from ..remote.client import RemoteSource
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
)

StateListener = Callable[[AppState], None]


class SyncStore:
    """State container for the people directory.

    Constructed by the composition root and handed to the UI and to tests;
    there is no module-level instance.

    Example:
        >>> store = SyncStore(remote, cache, ConnectivityMonitor(), DirectoryConfig())
        >>> store.subscribe(render)
        >>> await store.fetch_users()
        >>> store.go_to_page(2)
        >>> await store.toggle_favorite(store.state.users[0].uuid)
    """

    def __init__(
        self,
        remote: RemoteSource,
        cache: UserCache,
        monitor: ConnectivityMonitor,
        config: DirectoryConfig | None = None,
    ):
        """Initialize the store.

        Args:
            remote: Source of fresh user data
            cache: Durable snapshot store
            monitor: Connectivity state (raw + manual override)
            config: Paging and fetch settings
        """
        self.remote = remote
        self.cache = cache
        self.monitor = monitor
        self.config = config or DirectoryConfig()
        self._log = directory_logger(
            __name__, endpoint=self.config.endpoint, db_path=str(self.config.db_path)
        )

        self._state = AppState(
            page_size=self.config.page_size,
            is_online=monitor.effective_online,
            is_manual_offline=monitor.manual_offline,
        )
        self._listeners: list[StateListener] = []
        self._unsubscribe_monitor = monitor.subscribe(self._on_connectivity_change)

    # =========================================================================
    # State access and subscription
    # =========================================================================

    @property
    def state(self) -> AppState:
        """Copy of the current state."""
        return self._state.copy()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self._state.copy()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                self._log.exception("State listener failed")

    def _update(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self._state, name, value)
        self._publish()

    def _refresh_page(self) -> None:
        page = paginate(self._state.all_users, self._state.current_page, self._state.page_size)
        self._state.users = page.items
        self._state.total_pages = page.total_pages

    def _apply_collection(self, users: list[User], **changes: Any) -> None:
        """Replace the full collection, keep the current page if still valid, publish once."""
        self._state.all_users = list(users)
        self._refresh_page()
        if self._state.current_page > self._state.total_pages:
            self._state.current_page = 1
            self._refresh_page()
        self._update(**changes)

    # =========================================================================
    # Low-level setters
    # =========================================================================

    def set_loading(self, loading: bool) -> None:
        self._update(is_loading=loading)

    def set_error(self, error: str | None) -> None:
        self._update(error=error)

    def set_all_users(self, users: list[User]) -> None:
        self._apply_collection(users)

    def set_current_page(self, page: int) -> None:
        """Set the page without range checks; ``go_to_page`` is the validated path."""
        self._state.current_page = page
        self._refresh_page()
        self._publish()

    # =========================================================================
    # Actions
    # =========================================================================

    async def fetch_users(self, force_refresh: bool = False) -> None:
        """Load users from the network, or from the cache when offline.

        Online and already populated without ``force_refresh`` is a no-op, as
        is a call while another fetch is in flight.
        """
        if not self.monitor.effective_online:
            await self.load_from_cache()
            return

        if self._state.is_loading:
            self._log.debug("Fetch already in progress; ignoring request")
            return

        if not force_refresh and self._state.all_users:
            return

        self._update(is_loading=True, error=None)
        try:
            await self._fetch_and_store()
        finally:
            self._update(is_loading=False)

    async def _fetch_and_store(self) -> None:
        page = self.config.fetch_page
        try:
            fetched = await asyncio.wait_for(
                self.remote.fetch_users(page, self.config.fetch_results),
                self.config.request_timeout,
            )
        except NetworkError as e:
            await self._fall_back_to_cache(e)
            return
        except TimeoutError:
            await self._fall_back_to_cache(
                FetchTimeoutError(self.config.endpoint, self.config.request_timeout)
            )
            return

        users = await self._merge_favorites(fetched)

        error: str | None = None
        stored = False
        try:
            await self.cache.replace_all(users, ALL_USERS_KEY, page)
            stored = True
        except StorageUnavailableError:
            self._log.info("No durable cache; fetched users kept in memory only")
        except StorageIOError as e:
            self._log.error(
                f"Failed to cache fetched users: {e.details}",
                extra={"operation": "replace_all", "user_count": len(users)},
            )
            error = CACHE_WRITE_FAILED_MESSAGE

        # Toggles that landed while replace_all was awaited
        users, drifted = self._reapply_memory_favorites(users)
        self._apply_collection(users, error=error)
        self._log.info(
            f"Loaded {len(users)} users ({self._state.total_pages} pages)",
            extra={"user_count": len(users), "page": self._state.current_page},
        )

        if stored:
            for user in drifted:
                await self._persist_favorite(user.uuid, user.is_favorite)

    async def _fall_back_to_cache(self, failure: NetworkError) -> None:
        self._log.warning(
            f"Fetch failed, falling back to cache: {failure.message}",
            extra={"phase": self._state.phase.value},
        )
        self._update(error=FETCH_FAILED_MESSAGE)
        await self._load_from_cache(FETCH_FAILED_CACHED_MESSAGE, preserve_error=True)

    async def _merge_favorites(self, fetched: list[User]) -> list[User]:
        """Carry favorite flags over to freshly fetched users with the same uuid.

        Flags come from the durable cache, read after the response arrived,
        overridden by the flags currently in memory.
        """
        favorites: dict[str, bool] = {}
        try:
            for user in await self.cache.read_all():
                favorites[user.uuid] = user.is_favorite
        except (StorageUnavailableError, StorageIOError) as e:
            self._log.debug(f"Favorites not read from cache: {e.message}")

        for user in self._state.all_users:
            favorites[user.uuid] = user.is_favorite

        return [user.with_favorite(favorites.get(user.uuid, user.is_favorite)) for user in fetched]

    def _reapply_memory_favorites(self, users: list[User]) -> tuple[list[User], list[User]]:
        """Apply the in-memory flags again after the cache write.

        Returns:
            The users to publish, and those whose flag changed since the merge
            (already overwritten on disk by ``replace_all``)
        """
        current = {user.uuid: user.is_favorite for user in self._state.all_users}
        merged: list[User] = []
        drifted: list[User] = []
        for user in users:
            flag = current.get(user.uuid, user.is_favorite)
            if flag != user.is_favorite:
                user = user.with_favorite(flag)
                drifted.append(user)
            merged.append(user)
        return merged, drifted

    async def _persist_favorite(self, uuid: str, is_favorite: bool) -> None:
        try:
            await self.cache.update_favorite(uuid, is_favorite)
        except StorageUnavailableError:
            self._log.debug(
                f"No durable cache; favorite for {uuid} kept in memory only", extra={"uuid": uuid}
            )
        except StorageIOError as e:
            self._log.error(
                f"Failed to update favorite status in cache: {e.details}", extra={"uuid": uuid}
            )

    async def load_from_cache(self) -> None:
        """Serve the last durable snapshot."""
        await self._load_from_cache(OFFLINE_MESSAGE)

    async def _load_from_cache(self, cached_message: str, preserve_error: bool = False) -> None:
        """Read the cache and publish it with ``cached_message``.

        With ``preserve_error`` a failed or empty read keeps the current message.
        """
        failure_message: str | None = None
        try:
            cached = await self.cache.read_all()
        except StorageUnavailableError as e:
            self._log.warning(
                f"Cache not available: {e.details}", extra={"phase": self._state.phase.value}
            )
            cached = []
            failure_message = CACHE_UNAVAILABLE_MESSAGE
        except StorageIOError as e:
            self._log.error(
                f"Error loading from cache: {e.details}", extra={"operation": "read_all"}
            )
            cached = []
            failure_message = CACHE_READ_FAILED_MESSAGE
        else:
            if not cached:
                failure_message = NO_CACHED_DATA_MESSAGE

        if failure_message is not None:
            if not preserve_error:
                self._update(error=failure_message)
            return

        self._apply_collection(cached, error=cached_message)
        self._log.info(f"Loaded {len(cached)} users from cache", extra={"user_count": len(cached)})

    def _check_navigation(self, page: int) -> None:
        if self._state.is_loading:
            raise InvalidNavigationError(page, "a fetch is in progress")
        if page < 1 or page > self._state.total_pages:
            raise InvalidNavigationError(
                page, f"out of range 1..{self._state.total_pages}"
            )

    def go_to_page(self, page: int) -> bool:
        """Show ``page``; returns False (state unchanged) when the request is rejected."""
        try:
            self._check_navigation(page)
        except InvalidNavigationError as e:
            self._log.debug(e.message, extra={"page": page})
            return False

        self.set_current_page(page)
        return True

    async def toggle_favorite(self, uuid: str) -> None:
        """Flip a user's favorite flag in memory, then persist it best-effort."""
        for index, user in enumerate(self._state.all_users):
            if user.uuid == uuid:
                break
        else:
            self._log.debug(f"toggle_favorite: unknown user {uuid}")
            return

        updated = user.with_favorite(not user.is_favorite)
        self._state.all_users[index] = updated
        self._refresh_page()
        self._publish()

        await self._persist_favorite(uuid, updated.is_favorite)

    async def toggle_manual_offline(self) -> None:
        """Enter or leave simulated offline mode."""
        entering = not self.monitor.manual_offline
        online = self.monitor.set_manual_offline(entering)
        self._update(is_manual_offline=entering, is_online=online)

        if entering:
            await self._load_from_cache(MANUAL_OFFLINE_MESSAGE)
        elif online:
            self._update(error=None)
            await self.fetch_users()
        else:
            self._update(error=OFFLINE_MESSAGE)

    def _on_connectivity_change(self, change: ConnectivityChange) -> None:
        if change.source is ChangeSource.NETWORK:
            self._update(
                is_online=change.effective_online,
                error=None if change.effective_online else OFFLINE_MESSAGE,
            )
        else:
            self._update(is_online=change.effective_online)

    def close(self) -> None:
        """Detach from the connectivity monitor."""
        self._unsubscribe_monitor()
        self._listeners.clear()
