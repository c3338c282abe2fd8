"""
Data model for directory profiles and cache provenance.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime


@dataclass(frozen=True)
class UserName:
    """Display name of a profile."""

    first: str
    last: str
    title: str | None = None

    @property
    def full(self) -> str:
        return f"{self.first} {self.last}"


@dataclass(frozen=True)
class UserPicture:
    """Profile image URLs in three resolutions."""

    large: str
    medium: str
    thumbnail: str


@dataclass(frozen=True)
class UserLocation:
    city: str
    country: str


@dataclass
class User:
    """A directory profile.

    Attributes:
        uuid: Stable identifier, unique in memory and in the durable store
        name: First/last name (title optional)
        email: Contact email
        phone: Contact phone
        picture: Image URLs (large, medium, thumbnail)
        location: City and country
        is_favorite: User-controlled flag; the remote source knows nothing of it
        cached_at: When the record was normalized from a remote response
    """

    uuid: str
    name: UserName
    email: str
    phone: str
    picture: UserPicture
    location: UserLocation
    is_favorite: bool = False
    cached_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def with_favorite(self, is_favorite: bool) -> User:
        """Return a copy with the favorite flag set."""
        return replace(self, is_favorite=is_favorite)


@dataclass(frozen=True)
class CacheMetadata:
    """Provenance of one cache-population event.

    Not needed for correct reads; kept for debugging what the cache holds.
    """

    key: str
    last_fetched: datetime
    page: int
