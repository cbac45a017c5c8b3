"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like
``import uhost_mcp`` resolve regardless of the working directory pytest
chooses, and provides an in-memory cloud adapter shared by the server tests.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()

from uhost_mcp.domain.pagination import Page  # noqa: E402
from uhost_mcp.errors import InstanceNotFound  # noqa: E402
from uhost_mcp.schemas.ucloud import MetricRecord, UHostInstance  # noqa: E402


@pytest.fixture(autouse=True)
def reset_adapter_registry():
    """Reset adapter registry before each test to avoid cross-test contamination."""
    from uhost_mcp.adapters import reset_adapters

    reset_adapters()
    yield
    reset_adapters()


def make_instance(
    uhost_id: str,
    *,
    name: str = "",
    state: str = "Running",
    zone: str = "cn-bj2-02",
    disks: Optional[List[int]] = None,
    ips: Optional[List[str]] = None,
) -> UHostInstance:
    """Build an instance record the way DescribeUHostInstance returns it."""
    return UHostInstance.model_validate(
        {
            "UHostId": uhost_id,
            "Name": name or f"name-{uhost_id}",
            "State": state,
            "Zone": zone,
            "CPU": 2,
            "Memory": 4096,
            "DiskSet": [{"DiskId": f"d{i}", "Size": s} for i, s in enumerate(disks or [])],
            "IPSet": [{"IP": ip, "Type": "Private"} for ip in ips or []],
        }
    )


def make_metric(resource_id: str, cpu: float = 1.5) -> MetricRecord:
    return MetricRecord(ResourceId=resource_id, CPUUtilization=cpu, Name=resource_id)


class FakeAdapter:
    """In-memory CloudAdapter: instances, metrics and optional failures."""

    def __init__(
        self,
        instances: Optional[List[UHostInstance]] = None,
        metrics: Optional[List[MetricRecord]] = None,
        *,
        metrics_error_for: Optional[Dict[str, Exception]] = None,
        list_error: Optional[Exception] = None,
    ) -> None:
        self.instances = instances or []
        self.metrics = metrics or []
        self.metrics_error_for = metrics_error_for or {}
        self.list_error = list_error
        self.metric_calls: List[tuple[str, int, int]] = []
        self.closed = False
        self.page_size = 100
        self.max_pages = 10

    async def describe_uhost_instance(self, ids=None, offset=None, limit=None):
        items = [i for i in self.instances if not ids or i.UHostId in ids]
        return Page(items=items, total_count=len(items))

    async def describe_instance(self, instance_id: str) -> UHostInstance:
        for instance in self.instances:
            if instance.UHostId == instance_id:
                return instance
        raise InstanceNotFound(instance_id)

    async def list_instances(self) -> List[UHostInstance]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.instances)

    async def invoke(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"RetCode": 0, "Action": f"{action}Response"}

    async def get_metric_overview(self, zone: str, offset: int, limit: int):
        self.metric_calls.append((zone, offset, limit))
        # Errors are keyed by the zone of the failing instance
        if zone in self.metrics_error_for:
            raise self.metrics_error_for[zone]
        page = self.metrics[offset : offset + limit]
        return Page(items=page, total_count=len(self.metrics))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    """Two running instances in one zone, one with metrics."""
    return FakeAdapter(
        instances=[
            make_instance("uhost-1", name="web", disks=[40, 100], ips=["10.0.0.1"]),
            make_instance("uhost-2", name="db", state="Stopped"),
        ],
        metrics=[make_metric("uhost-1", 12.5), make_metric("uhost-9")],
    )
