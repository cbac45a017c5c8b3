"""Edge-case tests for the offset/limit pagination driver."""

from __future__ import annotations

from typing import List, Optional

import pytest

from uhost_mcp.domain.pagination import Page, collect
from uhost_mcp.errors import PaginationLimitExceeded, UpstreamFailure


class _RecordingSource:
    """Serves ``total`` integers in pages and records every request."""

    def __init__(self, total: int, report_total: Optional[int] = None) -> None:
        self.data = list(range(total))
        self.report_total = report_total
        self.calls: List[tuple[int, int]] = []

    async def __call__(self, offset: int, limit: int) -> Page[int]:
        self.calls.append((offset, limit))
        return Page(items=self.data[offset : offset + limit], total_count=self.report_total)


@pytest.mark.asyncio
async def test_full_pages_then_short_page():
    """N full pages followed by a short page takes exactly N+1 fetches."""
    source = _RecordingSource(total=25)
    items = await collect(source, limit=10)
    assert items == list(range(25))
    assert source.calls == [(0, 10), (10, 10), (20, 10)]


@pytest.mark.asyncio
async def test_exact_multiple_without_total_needs_trailing_empty_page():
    source = _RecordingSource(total=20)
    items = await collect(source, limit=10)
    assert items == list(range(20))
    assert [offset for offset, _ in source.calls] == [0, 10, 20]


@pytest.mark.asyncio
async def test_total_count_stops_without_extra_fetch():
    source = _RecordingSource(total=20, report_total=20)
    items = await collect(source, limit=10)
    assert len(items) == 20
    assert len(source.calls) == 2


@pytest.mark.asyncio
async def test_empty_first_page():
    source = _RecordingSource(total=0, report_total=0)
    assert await collect(source, limit=10) == []
    assert source.calls == [(0, 10)]


@pytest.mark.asyncio
async def test_guard_fires_after_max_pages_full_pages():
    async def endless(offset: int, limit: int) -> Page[int]:
        calls.append(offset)
        return Page(items=[0] * limit)

    calls: List[int] = []
    with pytest.raises(PaginationLimitExceeded) as exc_info:
        await collect(endless, limit=5, max_pages=3)
    assert calls == [0, 5, 10]
    assert exc_info.value.items_collected == 15
    assert exc_info.value.max_pages == 3


@pytest.mark.asyncio
async def test_last_allowed_page_may_be_short():
    source = _RecordingSource(total=25)
    items = await collect(source, limit=10, max_pages=3)
    assert len(items) == 25


@pytest.mark.asyncio
async def test_error_on_second_page_propagates():
    async def failing(offset: int, limit: int) -> Page[int]:
        if offset > 0:
            raise UpstreamFailure("boom", action="DescribeUHostInstance")
        return Page(items=list(range(limit)))

    with pytest.raises(UpstreamFailure, match="boom"):
        await collect(failing, limit=4)


@pytest.mark.asyncio
@pytest.mark.parametrize("limit,max_pages", [(0, 10), (10, 0)])
async def test_invalid_bounds_rejected(limit: int, max_pages: int):
    source = _RecordingSource(total=3)
    with pytest.raises(ValueError):
        await collect(source, limit=limit, max_pages=max_pages)
    assert source.calls == []


@pytest.mark.asyncio
async def test_completion_is_logged(caplog):
    caplog.set_level("INFO", logger="uhost_mcp.domain.pagination")
    await collect(_RecordingSource(total=3), limit=10, label="uhost_instances")
    records = [r for r in caplog.records if r.getMessage() == "pagination.complete"]
    assert len(records) == 1
    assert records[0].label == "uhost_instances"
    assert records[0].items == 3
