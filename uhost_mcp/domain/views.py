"""Projections of UHost records into the payloads returned to MCP clients."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..errors import SerializationFailure
from ..schemas.ucloud import MetricRecord, UHostInstance


class InstanceView(BaseModel):
    """Stable, externally consumable summary of one instance.

    ``metrics`` and ``timestamp`` are only present when metrics were
    attached.
    """

    id: str
    name: str
    status: str
    ip: str = ""
    zone: str = ""
    cpu: int = 0
    memory: int = 0
    disk_size: int = 0
    metrics: Optional[List[MetricRecord]] = Field(default=None)
    timestamp: Optional[str] = Field(default=None, description="RFC3339")

    def to_payload(self) -> Dict[str, Any]:
        """Dump to a JSON-ready dict, leaving out absent optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


def rfc3339(now: Optional[datetime] = None) -> str:
    """Format ``now`` (default: current local time) as RFC3339 seconds."""
    moment = now or datetime.now().astimezone()
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.isoformat(timespec="seconds")


def first_ip(instance: UHostInstance) -> str:
    """Address of the first network interface, or ``""``."""
    return instance.IPSet[0].IP if instance.IPSet else ""


def first_disk_size(instance: UHostInstance) -> int:
    """Size of the first disk, or ``0``."""
    return instance.DiskSet[0].Size if instance.DiskSet else 0


def build_instance_view(
    instance: UHostInstance,
    metrics: Optional[List[MetricRecord]] = None,
    *,
    now: Optional[datetime] = None,
) -> InstanceView:
    """Project ``instance`` (and optionally its metrics) into a view.

    Only the first disk and the first IP are reported; instances with several
    disks or interfaces are summarised by their first entry.
    """
    view = InstanceView(
        id=instance.UHostId,
        name=instance.Name,
        status=instance.State,
        ip=first_ip(instance),
        zone=instance.Zone,
        cpu=instance.CPU,
        memory=instance.Memory,
        disk_size=first_disk_size(instance),
    )
    if metrics is not None:
        view.metrics = list(metrics)
        view.timestamp = rfc3339(now)
    return view


def build_status_entry(instance: UHostInstance) -> Dict[str, str]:
    """Id, name and status of ``instance`` for the ``instance_status`` tool."""
    return {"id": instance.UHostId, "name": instance.Name, "status": instance.State}


def build_metrics_report(
    instance_id: str,
    instance: UHostInstance,
    metrics: List[MetricRecord],
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Payload of the ``get_instance_metrics`` tool."""
    return {
        "instance_id": instance_id,
        "name": instance.Name,
        "status": instance.State,
        "basic_info": {
            "cpu": instance.CPU,
            "memory": instance.Memory,
            "disk_size": first_disk_size(instance),
            "zone": instance.Zone,
            "ip": first_ip(instance),
        },
        "metrics": [m.model_dump(mode="json") for m in metrics],
        "timestamp": rfc3339(now),
    }


def to_json(data: Any, *, indent: Optional[int] = 2) -> str:
    """Encode a view, a model, or plain data as JSON text.

    Raises
    ------
    SerializationFailure
        If the data cannot be encoded.
    """
    try:
        if isinstance(data, InstanceView):
            data = data.to_payload()
        elif isinstance(data, BaseModel):
            data = data.model_dump(mode="json")
        elif isinstance(data, list):
            data = [d.to_payload() if isinstance(d, InstanceView) else d for d in data]
        return json.dumps(data, indent=indent, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(f"failed to encode payload: {exc}") from exc
