"""Correlate monitoring records with a single instance.

``GetMetricOverview`` has no server-side filter by resource id, so the whole
zone-scoped data set is fetched page by page and narrowed down to the records
whose ``ResourceId`` equals the instance id.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from ..schemas.ucloud import MetricRecord, UHostInstance
from .pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGE_SIZE, Page, collect

logger = logging.getLogger(__name__)


class MetricsSource(Protocol):
    """Anything that can return one page of zone-scoped uhost metrics."""

    async def get_metric_overview(
        self, zone: str, offset: int, limit: int
    ) -> Page[MetricRecord]:
        """Return the metrics page starting at ``offset``."""
        raise NotImplementedError


async def correlate(
    instance: Optional[UHostInstance],
    metrics_source: MetricsSource,
    *,
    limit: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[MetricRecord]:
    """Return the metric records that describe ``instance``.

    Parameters
    ----------
    instance: Optional[UHostInstance]
        The instance whose zone scopes the query and whose id is the
        correlation key.
    metrics_source: MetricsSource
        Page-level metrics fetcher (normally the UCloud adapter).
    limit: int
        Page size for each ``GetMetricOverview`` call.
    max_pages: int
        Pagination guard, see :func:`collect`.

    Returns
    -------
    List[MetricRecord]
        Matching records in upstream order; empty when nothing matches.

    Raises
    ------
    ValueError
        If ``instance`` is ``None``.
    """
    if instance is None:
        raise ValueError("instance is required")

    async def fetch(offset: int, page_limit: int) -> Page[MetricRecord]:
        return await metrics_source.get_metric_overview(
            instance.Zone, offset, page_limit
        )

    records = await collect(
        fetch, limit=limit, max_pages=max_pages, label="metric_overview"
    )
    matched = [r for r in records if r.ResourceId == instance.UHostId]
    logger.debug(
        "metrics.correlate",
        extra={
            "instance_id": instance.UHostId,
            "zone": instance.Zone,
            "scanned": len(records),
            "matched": len(matched),
        },
    )
    return matched
