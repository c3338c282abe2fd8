"""
Page slicing over the full in-memory collection.

Pure functions: no I/O, no state. Range validation of the requested page
is the caller's job, so out-of-range pages here just yield an empty slice.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageSlice(Generic[T]):
    """Visible items of one page plus the page count of the whole collection."""

    items: list[T]
    total_pages: int


def total_pages_for(count: int, page_size: int) -> int:
    """Number of pages for ``count`` items; never less than 1."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return max(1, math.ceil(count / page_size))


def paginate(all_items: Sequence[T], page: int, page_size: int) -> PageSlice[T]:
    """Slice ``all_items`` to the 1-based ``page``.

    Args:
        all_items: Full collection
        page: 1-based page number
        page_size: Items per page (>= 1)

    Returns:
        PageSlice with the items of ``page`` (clipped to bounds) and total page count
    """
    total_pages = total_pages_for(len(all_items), page_size)
    start = max(0, (page - 1) * page_size)
    end = max(start, page * page_size)
    return PageSlice(items=list(all_items[start:end]), total_pages=total_pages)
