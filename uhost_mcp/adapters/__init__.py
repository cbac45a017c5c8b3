"""Cloud adapter interface and registry."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from ..domain.pagination import Page
from ..schemas.ucloud import MetricRecord, UHostInstance


class CloudAdapter(Protocol):
    """Protocol for cloud API adapters.

    Implementations translate instance and monitoring queries into calls to
    the provider API and return validated models.
    """

    async def describe_uhost_instance(
        self,
        ids: Optional[List[str]] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[UHostInstance]:
        """Return one page of instances, optionally restricted to ``ids``."""
        raise NotImplementedError

    async def describe_instance(self, instance_id: str) -> UHostInstance:
        """Return a single instance or raise ``InstanceNotFound``."""
        raise NotImplementedError

    async def list_instances(self) -> List[UHostInstance]:
        """Return every instance in the configured project and region."""
        raise NotImplementedError

    async def invoke(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Call an arbitrary API action and return the response body."""
        raise NotImplementedError

    async def get_metric_overview(
        self, zone: str, offset: int, limit: int
    ) -> Page[MetricRecord]:
        """Return one page of uhost metrics for ``zone``."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release transport resources."""
        raise NotImplementedError


_adapters: Dict[str, CloudAdapter] = {}

DEFAULT_ADAPTER_ID = "ucloud"


def register_adapter(adapter_id: str, adapter: CloudAdapter) -> None:
    """Register an adapter instance under a logical ``adapter_id``."""
    _adapters[adapter_id] = adapter


def get_adapter(adapter_id: str = DEFAULT_ADAPTER_ID) -> CloudAdapter:
    """Retrieve a registered adapter; raises KeyError when absent."""
    return _adapters[adapter_id]


def get_available_adapter_ids() -> list[str]:
    return list(_adapters.keys())


def log_adapter_status() -> None:
    """Log which cloud adapters are configured."""
    logger = logging.getLogger(__name__)

    if not _adapters:
        logger.warning(
            "No UCloud adapter configured. Tools and resources will fail until "
            "credentials are provided via --config or UCLOUD_* variables."
        )
        return
    logger.info(
        "Cloud adapters configured: %s",
        ", ".join(f"'{a}' ({type(ad).__name__})" for a, ad in _adapters.items()),
    )


def reset_adapters() -> None:
    """Test-only helper to clear registered adapters."""
    _adapters.clear()
