"""UHost MCP server application.

``UHostMCPServer`` holds the tool, resource and prompt handlers. The stdio,
SSE and HTTP transports all delegate to it, so every transport reports the
same payloads and the same errors.

Tool handlers never raise for domain errors: they return a ``ToolResult``
envelope carrying either the JSON payload or a human-readable error.
Resource handlers raise, and the transport decides how to report it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..adapters import CloudAdapter, get_adapter
from ..domain.metrics import correlate
from ..domain.pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGE_SIZE
from ..domain.views import (
    InstanceView,
    build_instance_view,
    build_metrics_report,
    build_status_entry,
)
from ..errors import ConfigError, InstanceNotFound, UHostMCPError
from ..schemas.ucloud import MetricRecord, UHostInstance
from ..utils.partial_results import PartialResult, enrich_each, format_failure_summary
from .models import TOOLS_BY_NAME, ToolResult
from .prompts import get_prompt
from .resources import ResourceRegistry

logger = logging.getLogger(__name__)

INSTANCES_URI = "uhost://instances"
INSTANCE_STATUS_URI = "uhost://instances/{instance_id}/status"


class UHostMCPServer:
    """Tool, resource and prompt handlers for UCloud UHost instances.

    Parameters
    ----------
    adapter: Optional[CloudAdapter]
        Adapter to use. When omitted the adapter registered under the default
        id is looked up on every call.
    """

    def __init__(self, adapter: Optional[CloudAdapter] = None) -> None:
        self._adapter = adapter
        self._started: bool = False
        self.resources = ResourceRegistry()
        self._register_resources()

    # ------------------------------------------------------------ lifecycle

    async def start(self) -> None:
        """Mark the server as started. Idempotent."""
        if self._started:
            logger.debug("server.start no-op: already started")
            return
        self._started = True
        logger.info("server.started")

    async def stop(self) -> None:
        """Close the adapter's transport. Idempotent."""
        if not self._started:
            logger.debug("server.stop no-op: not started")
            return
        self._started = False
        try:
            adapter = self.adapter
        except ConfigError:
            adapter = None
        if adapter is not None:
            await adapter.aclose()
        logger.info("server.stopped")

    @property
    def adapter(self) -> CloudAdapter:
        if self._adapter is not None:
            return self._adapter
        try:
            return get_adapter()
        except KeyError:
            raise ConfigError("no UCloud adapter configured") from None

    @property
    def page_size(self) -> int:
        return getattr(self.adapter, "page_size", DEFAULT_PAGE_SIZE)

    @property
    def max_pages(self) -> int:
        return getattr(self.adapter, "max_pages", DEFAULT_MAX_PAGES)

    # ------------------------------------------------------------ shared steps

    async def fetch_metrics(self, instance: UHostInstance) -> List[MetricRecord]:
        """Metric records of ``instance`` across all overview pages."""
        return await correlate(
            instance, self.adapter, limit=self.page_size, max_pages=self.max_pages
        )

    async def list_instances_enriched(self) -> PartialResult[InstanceView]:
        """Every instance with its metrics, degrading per instance on failure."""
        instances = await self.adapter.list_instances()

        async def enrich(instance: UHostInstance) -> InstanceView:
            logger.debug(
                "instance_list.processing",
                extra={"instance_id": instance.UHostId, "instance_name": instance.Name},
            )
            return build_instance_view(instance, await self.fetch_metrics(instance))

        return await enrich_each(
            instances,
            identify=lambda i: i.UHostId,
            enrich=enrich,
            degrade=build_instance_view,
            operation_type="instance_metrics",
        )

    # ------------------------------------------------------------ tools

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        """Dispatch a tool by name.

        Raises
        ------
        KeyError
            If ``name`` is not a known tool.
        """
        spec = TOOLS_BY_NAME[name]
        missing = [
            p.name for p in spec.params if p.required and not arguments.get(p.name)
        ]
        if missing:
            return ToolResult.fail(
                f"missing required argument(s): {', '.join(missing)}",
                "validation_error",
            )
        if name == "describe_instance":
            return await self.describe_instance(str(arguments["instance_id"]))
        if name == "get_instance_metrics":
            return await self.get_instance_metrics(str(arguments["instance_id"]))
        if name == "instance_status":
            return await self.instance_status()
        return await self.instance_list()

    async def describe_instance(self, instance_id: str) -> ToolResult:
        """Tool ``describe_instance``: one instance, no metrics."""
        try:
            instance = await self.adapter.describe_instance(instance_id)
            return ToolResult.ok(build_instance_view(instance).to_payload())
        except Exception as exc:
            return self._tool_error(f"Failed to describe instance {instance_id}", exc)

    async def get_instance_metrics(self, instance_id: str) -> ToolResult:
        """Tool ``get_instance_metrics``: basic info plus matching metrics."""
        try:
            instance = await self.adapter.describe_instance(instance_id)
        except Exception as exc:
            return self._tool_error(f"Failed to get instance {instance_id}", exc)
        try:
            metrics = await self.fetch_metrics(instance)
        except Exception as exc:
            return self._tool_error("Failed to get metrics", exc)
        if not metrics:
            logger.info("metrics.not_found", extra={"instance_id": instance_id})
            return ToolResult.fail("Instance metrics not found", InstanceNotFound.error_type)
        try:
            return ToolResult.ok(build_metrics_report(instance_id, instance, metrics))
        except Exception as exc:
            return self._tool_error("Failed to marshal metrics info", exc)

    async def instance_status(self) -> ToolResult:
        """Tool ``instance_status``: id, name and status of every instance."""
        logger.info("instance_status.start")
        try:
            instances = await self.adapter.list_instances()
            return ToolResult.ok([build_status_entry(i) for i in instances])
        except Exception as exc:
            return self._tool_error("Failed to list instances", exc)

    async def instance_list(self) -> ToolResult:
        """Tool ``instance_list``: every instance enriched with metrics."""
        logger.info("instance_list.start")
        try:
            result = await self.list_instances_enriched()
        except Exception as exc:
            return self._tool_error("Failed to list instances", exc)
        if result.has_failures:
            logger.warning(
                "instance_list.partial",
                extra={"summary": format_failure_summary(result, "instance")},
            )
        logger.info("instance_list.complete", extra={"instances": len(result.items)})
        try:
            return ToolResult.ok(
                [v.to_payload() for v in result.values],
                degraded=[i.identifier for i in result.degraded],
            )
        except Exception as exc:
            return self._tool_error("Failed to marshal data", exc)

    @staticmethod
    def _tool_error(context: str, exc: Exception) -> ToolResult:
        if isinstance(exc, UHostMCPError):
            logger.warning(
                "tool.error",
                extra={"context": context, "error_type": exc.error_type, "error": str(exc)},
            )
        else:
            logger.exception("tool.unexpected_error", extra={"context": context})
        return ToolResult.from_exception(context, exc)

    # ------------------------------------------------------------ resources

    def _register_resources(self) -> None:
        self.resources.register(
            INSTANCES_URI,
            name="instance_list",
            description="List all UCloud instances",
            handler=self._read_instance_list,
        )
        self.resources.register(
            INSTANCE_STATUS_URI,
            name="instance_status",
            description="Get the current status of a UCloud instance",
            handler=self._read_instance_status,
        )

    async def read_resource(self, uri: str) -> Dict[str, Any]:
        """Read any registered resource by concrete URI."""
        return await self.resources.read_resource(uri)

    async def read_instance_status(self, uri: str) -> Dict[str, Any]:
        """Read ``uri`` through the instance status template.

        Raises
        ------
        MatchFailure
            If ``uri`` does not conform to the status template.
        """
        return await self.resources.read_registered(INSTANCE_STATUS_URI, uri)

    async def _read_instance_list(
        self, uri: str, variables: Dict[str, str]
    ) -> List[Dict[str, Any]]:
        logger.info("resource.instance_list", extra={"uri": uri})
        instances = await self.adapter.list_instances()
        for instance in instances:
            logger.debug(
                "resource.instance_list.found",
                extra={
                    "instance_id": instance.UHostId,
                    "instance_name": instance.Name,
                    "status": instance.State,
                },
            )
        logger.info("resource.instance_list.total", extra={"instances": len(instances)})
        return [build_instance_view(i).to_payload() for i in instances]

    async def _read_instance_status(
        self, uri: str, variables: Dict[str, str]
    ) -> Dict[str, str]:
        instance_id = variables.get("instance_id", "")
        if not instance_id:
            raise InstanceNotFound(instance_id, "instance_id not found in path")
        instance = await self.adapter.describe_instance(instance_id)
        return {"status": instance.State}

    # ------------------------------------------------------------ prompts

    def get_prompt(self, name: str, arguments: Dict[str, str]) -> Dict[str, Any]:
        """Render a prompt; only ``instance_management`` exists.

        Raises
        ------
        KeyError
            If ``name`` is unknown.
        ValueError
            If the ``action`` argument is unknown.
        """
        if name != "instance_management":
            raise KeyError(name)
        return get_prompt(arguments.get("action", ""))
