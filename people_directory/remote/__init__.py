"""
Remote profile source.

Fetches paginated profile records over HTTP and validates them into
canonical ``User`` objects.
"""

from .client import RemoteSource, RemoteSourceClient, parse_user_record, parse_users_response

__all__ = [
    "RemoteSource",
    "RemoteSourceClient",
    "parse_user_record",
    "parse_users_response",
]
