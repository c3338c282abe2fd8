"""
Composition root.

Builds a ``SyncStore`` with its collaborators and closes what it opened:

    async with open_store(DirectoryConfig.from_env()) as store:
        await store.fetch_users()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .cache import UserCache, open_user_cache
from .config import DirectoryConfig
from .connectivity import ConnectivityMonitor, dns_probe
from .remote import RemoteSource, RemoteSourceClient
from .store import SyncStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_store(
    config: DirectoryConfig | None = None,
    remote: RemoteSource | None = None,
    cache: UserCache | None = None,
    monitor: ConnectivityMonitor | None = None,
) -> AsyncIterator[SyncStore]:
    """Open a store; collaborators passed in are used as-is and not closed.

    Args:
        config: Settings (default: from environment)
        remote: Remote source (default: aiohttp client for ``config.endpoint``)
        cache: Durable cache (default: SQLite at ``config.db_path``)
        monitor: Connectivity monitor (default: DNS-probed, probed once on open)
    """
    config = config or DirectoryConfig.from_env()

    owns_remote = remote is None
    owns_cache = cache is None
    owns_monitor = monitor is None

    if remote is None:
        remote = RemoteSourceClient(config.endpoint, timeout=config.request_timeout)
    if cache is None:
        cache = await open_user_cache(config)
    if monitor is None:
        monitor = ConnectivityMonitor(probe=dns_probe(config.endpoint))
        await monitor.probe()

    store = SyncStore(remote, cache, monitor, config)
    logger.debug(f"Store opened (endpoint={config.endpoint}, db={config.db_path})")
    try:
        yield store
    finally:
        store.close()
        if owns_monitor:
            await monitor.stop()
        if owns_cache:
            await cache.close()
        if owns_remote:
            await remote.close()
