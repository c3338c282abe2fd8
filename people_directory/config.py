"""
Runtime configuration for the people directory engine.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ENDPOINT = "https://randomuser.me/api/"
DEFAULT_DB_PATH = "people_directory.db"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass
class DirectoryConfig:
    """Configuration for the sync store and its collaborators.

    Attributes:
        endpoint: Remote profile endpoint (queried as ``?page=&results=``)
        fetch_page: Page number requested from the remote source
        fetch_results: Number of records requested per fetch
        page_size: Number of users shown per local page
        db_path: SQLite file for the durable cache (``:memory:`` for tests)
        persist: Whether a durable cache is used at all
        request_timeout: Total seconds allowed for one remote request
    """

    endpoint: str = DEFAULT_ENDPOINT
    fetch_page: int = 1
    fetch_results: int = 50
    page_size: int = 10
    db_path: str | Path = DEFAULT_DB_PATH
    persist: bool = True
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.fetch_page < 1:
            raise ValueError(f"fetch_page must be >= 1, got {self.fetch_page}")
        if self.fetch_results < 1:
            raise ValueError(f"fetch_results must be >= 1, got {self.fetch_results}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got {self.request_timeout}")

    @classmethod
    def from_env(cls) -> DirectoryConfig:
        """Create config from environment variables."""
        return cls(
            endpoint=os.environ.get("PEOPLE_DIRECTORY_ENDPOINT", DEFAULT_ENDPOINT),
            fetch_page=int(os.environ.get("PEOPLE_DIRECTORY_FETCH_PAGE", "1")),
            fetch_results=int(os.environ.get("PEOPLE_DIRECTORY_FETCH_RESULTS", "50")),
            page_size=int(os.environ.get("PEOPLE_DIRECTORY_PAGE_SIZE", "10")),
            db_path=os.environ.get("PEOPLE_DIRECTORY_DB_PATH", DEFAULT_DB_PATH),
            persist=_env_bool("PEOPLE_DIRECTORY_PERSIST", True),
            request_timeout=float(os.environ.get("PEOPLE_DIRECTORY_REQUEST_TIMEOUT", "10.0")),
        )
