"""Tests for correlating metric records with an instance."""

from __future__ import annotations

import pytest
from conftest import FakeAdapter, make_instance, make_metric

from uhost_mcp.domain.metrics import correlate
from uhost_mcp.errors import UpstreamFailure


@pytest.mark.asyncio
async def test_keeps_only_matching_records_in_order():
    source = FakeAdapter(
        metrics=[
            make_metric("uhost-a", 1.0),
            make_metric("uhost-b", 2.0),
            make_metric("uhost-a", 3.0),
            make_metric("uhost-c", 4.0),
        ]
    )
    instance = make_instance("uhost-a", zone="cn-sh2-01")
    matched = await correlate(instance, source, limit=2)
    assert [m.CPUUtilization for m in matched] == [1.0, 3.0]
    assert all(m.ResourceId == "uhost-a" for m in matched)
    # Whole zone is scanned page by page
    assert source.metric_calls == [("cn-sh2-01", 0, 2), ("cn-sh2-01", 2, 2)]


@pytest.mark.asyncio
async def test_no_match_returns_empty_list():
    source = FakeAdapter(metrics=[make_metric("uhost-x")])
    assert await correlate(make_instance("uhost-a"), source) == []


@pytest.mark.asyncio
async def test_empty_data_set():
    source = FakeAdapter()
    assert await correlate(make_instance("uhost-a"), source) == []
    assert len(source.metric_calls) == 1


@pytest.mark.asyncio
async def test_missing_instance_rejected():
    with pytest.raises(ValueError, match="instance is required"):
        await correlate(None, FakeAdapter())


@pytest.mark.asyncio
async def test_fetch_failure_propagates():
    source = FakeAdapter(
        metrics_error_for={"cn-bj2-02": UpstreamFailure("denied", ret_code=171)}
    )
    with pytest.raises(UpstreamFailure):
        await correlate(make_instance("uhost-a"), source)
