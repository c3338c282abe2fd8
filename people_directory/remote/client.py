"""
Remote profile source client.

Wraps a single paginated HTTP GET against the profile endpoint and turns
the raw JSON records into validated ``User`` objects. Anything that goes
wrong (transport, non-2xx, timeout, malformed payload) surfaces as a
``NetworkError``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import aiohttp

from ..exceptions import FetchTimeoutError, NetworkError
from ..models import User, UserLocation, UserName, UserPicture

logger = logging.getLogger(__name__)


class RemoteSource(ABC):
    """Contract the sync store relies on for remote reads."""

    @abstractmethod
    async def fetch_users(self, page: int, results: int) -> list[User]:
        """Fetch one page of normalized users.

        Raises:
            NetworkError: On transport failure, non-2xx status, or bad payload
        """

    async def close(self) -> None:
        """Release network resources."""


def _require(raw: dict[str, Any], path: str) -> str:
    """Walk a dotted path through nested dicts and return a string leaf."""
    value: Any = raw
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            raise NetworkError(f"Malformed user record: missing '{path}'")
        value = value[part]
    if not isinstance(value, str):
        raise NetworkError(f"Malformed user record: '{path}' is not a string")
    return value


def parse_user_record(raw: Any, cached_at: datetime | None = None) -> User:
    """Validate one raw record and build the canonical ``User``.

    New records are unfavorited; ``cached_at`` is stamped here, at
    normalization time.
    """
    if not isinstance(raw, dict):
        raise NetworkError("Malformed user record: expected an object")

    name = raw.get("name")
    title = name.get("title") if isinstance(name, dict) else None
    return User(
        uuid=_require(raw, "login.uuid"),
        name=UserName(
            first=_require(raw, "name.first"),
            last=_require(raw, "name.last"),
            title=title if isinstance(title, str) else None,
        ),
        email=_require(raw, "email"),
        phone=_require(raw, "phone"),
        picture=UserPicture(
            large=_require(raw, "picture.large"),
            medium=_require(raw, "picture.medium"),
            thumbnail=_require(raw, "picture.thumbnail"),
        ),
        location=UserLocation(
            city=_require(raw, "location.city"),
            country=_require(raw, "location.country"),
        ),
        is_favorite=False,
        cached_at=cached_at or datetime.now(UTC),
    )


def parse_users_response(body: Any) -> list[User]:
    """Parse a ``{"results": [...]}`` body into unique users.

    A record whose uuid already appeared earlier in the response is dropped.
    """
    if not isinstance(body, dict) or not isinstance(body.get("results"), list):
        raise NetworkError("Malformed response: expected an object with a 'results' list")

    now = datetime.now(UTC)
    users: list[User] = []
    seen: set[str] = set()
    for raw in body["results"]:
        user = parse_user_record(raw, cached_at=now)
        if user.uuid in seen:
            logger.warning(f"Dropping duplicate user record: {user.uuid}")
            continue
        seen.add(user.uuid)
        users.append(user)
    return users


class RemoteSourceClient(RemoteSource):
    """aiohttp client for the profile endpoint.

    Example:
        >>> client = RemoteSourceClient("https://randomuser.me/api/", timeout=10.0)
        >>> users = await client.fetch_users(page=1, results=50)
        >>> await client.close()
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Base URL, queried with ``page`` and ``results`` params
            timeout: Total seconds allowed per request
            session: Optional externally owned session (not closed by ``close``)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def fetch_users(self, page: int, results: int) -> list[User]:
        session = await self._get_session()
        params = {"page": str(page), "results": str(results)}

        try:
            async with session.get(
                self.endpoint,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    raise NetworkError(
                        f"Remote source returned HTTP {response.status}",
                        status=response.status,
                        url=self.endpoint,
                    )
                try:
                    body = await response.json(content_type=None)
                except ValueError as e:
                    raise NetworkError(
                        "Remote source returned invalid JSON", url=self.endpoint, cause=e
                    ) from e
        except TimeoutError as e:
            raise FetchTimeoutError(self.endpoint, self.timeout) from e
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Request to {self.endpoint} failed", url=self.endpoint, cause=e
            ) from e

        users = parse_users_response(body)
        logger.info(f"Fetched {len(users)} users from {self.endpoint} (page={page})")
        return users

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> RemoteSourceClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
