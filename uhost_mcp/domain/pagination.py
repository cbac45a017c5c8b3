"""Offset/limit pagination driver.

The UCloud API returns collections in bounded pages. :func:`collect` walks
the pages in order and concatenates them into one list, stopping on the first
short page or when the reported total count has been covered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

from ..errors import PaginationLimitExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 1000


@dataclass
class Page(Generic[T]):
    """One batch of results from an upstream listing call.

    Attributes
    ----------
    items: List[T]
        Records in upstream order.
    total_count: Optional[int]
        Upstream's total-count hint, when it reports one.
    """

    items: List[T] = field(default_factory=list)
    total_count: Optional[int] = None


PageFetch = Callable[[int, int], Awaitable[Page[T]]]


async def collect(
    page_fetch: PageFetch[T],
    *,
    limit: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
    label: str = "collection",
) -> List[T]:
    """Fetch every page from ``page_fetch`` and return the items in order.

    Parameters
    ----------
    page_fetch: PageFetch[T]
        Awaitable ``(offset, limit) -> Page`` callable. Pages are requested
        one at a time; the next offset is only requested after the previous
        page has been received.
    limit: int
        Page size passed to every call.
    max_pages: int
        Upper bound on the number of fetches. The upstream contract (a short
        page or a total count eventually ends the sequence) is assumed, not
        verified, so the loop fails closed instead of running forever.
    label: str
        Name used in log records.

    Returns
    -------
    List[T]
        Concatenation of all pages in fetch order.

    Raises
    ------
    PaginationLimitExceeded
        If ``max_pages`` full pages were fetched without reaching the end.
    Exception
        Any error raised by ``page_fetch`` propagates unchanged; partially
        collected items are discarded.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if max_pages < 1:
        raise ValueError("max_pages must be >= 1")

    items: List[T] = []
    offset = 0
    for page_number in range(1, max_pages + 1):
        page = await page_fetch(offset, limit)
        items.extend(page.items)
        logger.debug(
            "pagination.page",
            extra={
                "label": label,
                "page": page_number,
                "offset": offset,
                "received": len(page.items),
                "total_count": page.total_count,
            },
        )

        if len(page.items) < limit:
            break
        if page.total_count is not None and offset + limit >= page.total_count:
            break
        offset += limit
    else:
        logger.error(
            "pagination.limit_exceeded",
            extra={"label": label, "max_pages": max_pages, "items": len(items)},
        )
        raise PaginationLimitExceeded(max_pages, len(items))

    logger.info(
        "pagination.complete",
        extra={"label": label, "pages": page_number, "items": len(items)},
    )
    return items
