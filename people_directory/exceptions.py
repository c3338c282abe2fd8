"""
Custom exceptions for the people directory engine.

Components raise these; the SyncStore catches them at its action
boundary and turns them into a visible status message.
"""


class DirectoryError(Exception):
    """Base exception for all directory engine errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NetworkError(DirectoryError):
    """Raised when the remote fetch fails (transport, non-2xx, or bad payload)."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        url: str | None = None,
        cause: Exception | None = None,
    ):
        details: dict = {}
        if status is not None:
            details["status"] = status
        if url:
            details["url"] = url
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.status = status
        self.url = url
        self.cause = cause


class FetchTimeoutError(NetworkError, TimeoutError):
    """Raised when the remote source does not answer within the request timeout."""

    def __init__(self, url: str, timeout: float):
        super().__init__(f"Request to {url} timed out after {timeout}s", url=url)
        self.details["timeout"] = timeout
        self.timeout = timeout


class StorageUnavailableError(DirectoryError):
    """Raised when the durable store cannot be opened.

    Callers treat this as "cache is empty" rather than a crash.
    """

    def __init__(self, path: str, cause: Exception | str | None = None):
        details = {"path": path}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Storage unavailable: {path}", details)
        self.path = path
        self.cause = cause


class StorageIOError(DirectoryError):
    """Raised when a read or write against an open durable store fails."""

    def __init__(self, operation: str, cause: Exception | None = None):
        details = {"operation": operation}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Storage I/O error during {operation}", details)
        self.operation = operation
        self.cause = cause


class InvalidNavigationError(DirectoryError):
    """Raised internally when a page request is out of range or arrives mid-fetch.

    The store converts it into a rejected no-op; it never reaches the UI.
    """

    def __init__(self, page: int, reason: str):
        super().__init__(
            f"Cannot navigate to page {page}: {reason}",
            {"page": page, "reason": reason},
        )
        self.page = page
        self.reason = reason
