"""
Connectivity tracking.

Combines the host's raw network signal with a manual "simulate offline"
override:

    effective_online = False if manual_offline else raw_online

Raw transitions are recorded at all times but only forwarded to listeners
while manual-offline mode is off. Only ``set_manual_offline(False)`` clears
the override; a raw "online" event never does.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class ChangeSource(Enum):
    """What caused an effective connectivity change."""

    NETWORK = "network"
    MANUAL = "manual"


@dataclass
class ConnectivityChange:
    """An effective online/offline transition."""

    effective_online: bool
    source: ChangeSource
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


ConnectivityListener = Callable[[ConnectivityChange], None]
ConnectivityProbe = Callable[[], Awaitable[bool]]


def dns_probe(endpoint: str, timeout: float = 5.0) -> ConnectivityProbe:
    """Build a probe that reports online when the endpoint host resolves."""
    host = urlparse(endpoint).hostname or endpoint

    async def probe() -> bool:
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(loop.getaddrinfo(host, None), timeout)
            return True
        except (OSError, TimeoutError):
            return False

    return probe


class ConnectivityMonitor:
    """Tracks raw and effective connectivity.

    Example:
        >>> monitor = ConnectivityMonitor(raw_online=True)
        >>> unsubscribe = monitor.subscribe(lambda change: print(change.effective_online))
        >>> monitor.set_network_online(False)   # prints False
        >>> monitor.set_manual_offline(True)
        >>> monitor.set_network_online(True)    # recorded, not forwarded
        >>> monitor.effective_online
        False
    """

    def __init__(
        self,
        raw_online: bool = True,
        probe: ConnectivityProbe | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            raw_online: Initial raw network state reported by the host
            probe: Optional async check used by ``probe()`` and polling
        """
        self._raw_online = raw_online
        self._manual_offline = False
        self._probe = probe
        self._listeners: list[ConnectivityListener] = []
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def raw_online(self) -> bool:
        return self._raw_online

    @property
    def manual_offline(self) -> bool:
        return self._manual_offline

    @property
    def effective_online(self) -> bool:
        return False if self._manual_offline else self._raw_online

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a listener for effective transitions; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: ConnectivityChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("Connectivity listener failed")

    def set_network_online(self, online: bool) -> None:
        """Record a raw network transition from the host environment."""
        if online == self._raw_online:
            return

        self._raw_online = online
        if self._manual_offline:
            logger.debug(f"Raw network {'online' if online else 'offline'} (manual offline holds)")
            return

        logger.info(f"Network is {'online' if online else 'offline'}")
        self._notify(ConnectivityChange(effective_online=online, source=ChangeSource.NETWORK))

    def set_manual_offline(self, flag: bool) -> bool:
        """Engage or clear the manual offline override.

        Returns:
            The effective online state after the change
        """
        before = self.effective_online
        self._manual_offline = flag
        after = self.effective_online

        logger.info(f"Manual offline {'engaged' if flag else 'cleared'} (effective_online={after})")
        if before != after:
            self._notify(ConnectivityChange(effective_online=after, source=ChangeSource.MANUAL))
        return after

    async def probe(self) -> bool:
        """Refresh the raw state from the configured probe.

        Returns:
            The effective online state after probing
        """
        if self._probe is not None:
            self.set_network_online(await self._probe())
        return self.effective_online

    def start_polling(self, interval: float = 30.0) -> None:
        """Probe periodically in the background."""
        if self._poll_task is not None:
            return
        self._poll_task = asyncio.create_task(self._poll_loop(interval))

    async def stop(self) -> None:
        """Stop background polling."""
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

    async def _poll_loop(self, interval: float) -> None:
        while True:
            await self.probe()
            await asyncio.sleep(interval)
