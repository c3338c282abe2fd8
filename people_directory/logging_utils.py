"""
Structured logging for the people directory.

Components log through ``directory_logger``, which binds directory context
(the remote endpoint, the cache file) to every record. Call sites add the
per-event fields (sync phase, page, user count, uuid) via ``extra``.

With ``--json-logs`` the CLI installs ``StructuredJsonFormatter``, which
emits one JSON object per line and nests the directory fields under
``context``. The plain text handler ignores them.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

# Record attributes the JSON formatter lifts into ``context``
CONTEXT_FIELDS = (
    "endpoint",
    "db_path",
    "phase",
    "page",
    "user_count",
    "uuid",
    "operation",
)


class StructuredJsonFormatter(logging.Formatter):
    """
    Single-line JSON formatter.

    Output fields:
    - timestamp: ISO 8601 in UTC
    - level, logger, message
    - context: directory fields present on the record (omitted when empty)
    - exception: formatted traceback, when the record carries one
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            name: getattr(record, name)
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        }
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = None,
) -> logging.Logger:
    """
    Send JSON log lines to stderr.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure (default: root logger)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)

    return logger


class DirectoryLoggerAdapter(logging.LoggerAdapter):
    """Adds bound directory context to every record; a call's own ``extra`` wins."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def directory_logger(name: str, **context: Any) -> DirectoryLoggerAdapter:
    """
    Get a logger bound to directory context.

    Example:
        >>> log = directory_logger(__name__, db_path="people_directory.db")
        >>> log.info("Cache opened", extra={"user_count": 25})
    """
    bound = {key: value for key, value in context.items() if value is not None}
    return DirectoryLoggerAdapter(logging.getLogger(name), bound)
