"""MCP server exposing UHost tools, resources and a prompt.

This module registers the ``UHostMCPServer`` handlers on a FastMCP app from
the Python MCP SDK and serves it over stdio or SSE.

Tools that fail return an MCP tool error (``isError``) carrying the
human-readable detail from the handler's ``ToolResult``; resources that fail
raise, and the SDK reports the failure to the client.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import os
import signal
from pathlib import Path
from typing import Any, Optional, cast

from .. import SERVER_NAME
from ..adapters import DEFAULT_ADAPTER_ID, log_adapter_status, register_adapter
from ..adapters.ucloud import UCloudAdapter
from ..config.models import load_config
from ..errors import ConfigError
from ..observability import setup_logging
from .app import INSTANCE_STATUS_URI, INSTANCES_URI, UHostMCPServer
from .models import TOOLS_BY_NAME, ToolResult
from .prompts import PROMPT_DESCRIPTION, PROMPT_NAME, instance_management_messages
from .resources import JSON_MIME_TYPE

logger = logging.getLogger(__name__)


def _load_mcp_sdk() -> tuple[Optional[Any], Optional[Any]]:
    """Load the FastMCP class and the ToolError exception if available."""
    try:
        fast_mod = importlib.import_module("mcp.server.fastmcp")
        exc_mod = importlib.import_module("mcp.server.fastmcp.exceptions")
        return getattr(fast_mod, "FastMCP"), getattr(exc_mod, "ToolError")
    except (ImportError, ModuleNotFoundError):  # pragma: no cover
        return None, None


def init_adapter(config_path: Optional[Path]) -> Optional[UCloudAdapter]:
    """Build and register the UCloud adapter from file or environment.

    Missing credentials are not fatal at startup: a warning is logged and
    every tool reports a configuration error until credentials are provided.
    """
    try:
        cfg = load_config(config_path)
    except ConfigError as exc:
        logger.warning("config.incomplete", extra={"error": str(exc)})
        log_adapter_status()
        return None
    logger.info(
        "config.loaded",
        extra={"region": cfg.region, "project_id": cfg.project_id},
    )
    adapter = UCloudAdapter(cfg)
    register_adapter(DEFAULT_ADAPTER_ID, adapter)
    log_adapter_status()
    return adapter


def _unwrap(result: ToolResult, tool_error_cls: Any) -> str:
    if not result.success:
        raise tool_error_cls(result.text)
    return result.text


def register_handlers(mcp_app: Any, app: UHostMCPServer, tool_error_cls: Any) -> None:
    """Register tools, resources and the prompt on the FastMCP app."""
    tool_dec = getattr(mcp_app, "tool", None)
    if tool_dec is None:
        raise RuntimeError(
            "MCP SDK version lacks FastMCP.tool(); try: pip install -U mcp"
        )

    def _desc(name: str) -> str:
        return TOOLS_BY_NAME[name].description

    @tool_dec(name="describe_instance", description=_desc("describe_instance"))
    async def describe_instance(instance_id: str) -> str:
        """Get information about a UCloud instance.

        Parameters
        ----------
        instance_id: str
            ID of the instance to describe (e.g. ``uhost-xxxx``).
        """
        return _unwrap(await app.describe_instance(instance_id), tool_error_cls)

    @tool_dec(name="get_instance_metrics", description=_desc("get_instance_metrics"))
    async def get_instance_metrics(instance_id: str) -> str:
        """Get monitoring metrics for a UCloud instance.

        Returns basic info (cpu, memory, disk_size, zone, ip), the matching
        metric records and an RFC3339 timestamp.
        """
        return _unwrap(await app.get_instance_metrics(instance_id), tool_error_cls)

    @tool_dec(name="instance_status", description=_desc("instance_status"))
    async def instance_status(random_string: str = "") -> str:
        _ = random_string
        return _unwrap(await app.instance_status(), tool_error_cls)

    @tool_dec(name="instance_list", description=_desc("instance_list"))
    async def instance_list(random_string: str = "") -> str:
        _ = random_string
        return _unwrap(await app.instance_list(), tool_error_cls)

    resource_dec = getattr(mcp_app, "resource", None)
    if resource_dec is not None:

        @resource_dec(
            INSTANCES_URI,
            name="instance_list",
            description="List all UCloud instances",
            mime_type=JSON_MIME_TYPE,
        )
        async def instances_resource() -> str:
            result = await app.read_resource(INSTANCES_URI)
            return result["contents"][0]["text"]

        @resource_dec(
            INSTANCE_STATUS_URI,
            name="instance_status",
            description="Get the current status of a UCloud instance",
            mime_type=JSON_MIME_TYPE,
        )
        async def instance_status_resource(instance_id: str) -> str:
            # FastMCP has already matched the template; rebuilding the URI
            # routes the read through the same handler as the HTTP transport
            uri = INSTANCE_STATUS_URI.replace("{instance_id}", instance_id)
            result = await app.read_instance_status(uri)
            return result["contents"][0]["text"]

        _ = (instances_resource, instance_status_resource)
        logger.info("MCP Resources registered: 2 instance resources")
    else:
        logger.warning(
            "MCP SDK version lacks resource support; "
            "upgrade with: pip install -U mcp"
        )

    prompt_dec = getattr(mcp_app, "prompt", None)
    if prompt_dec is not None:

        @prompt_dec(name=PROMPT_NAME, description=PROMPT_DESCRIPTION)
        def instance_management(action: str) -> list[dict[str, Any]]:
            """Action to perform (describe, list, get_instance_metrics)."""
            return instance_management_messages(action)

        _ = instance_management

    # Mark as used for linters
    _ = (describe_instance, get_instance_metrics, instance_status, instance_list)


def build_mcp_app(
    app: UHostMCPServer, host: str = "127.0.0.1", port: int = 8080
) -> Any:
    """Create the FastMCP app with every handler registered."""
    mcp_cls, tool_error_cls = _load_mcp_sdk()
    if mcp_cls is None:
        raise RuntimeError(
            "MCP SDK not installed. Please install the Python MCP SDK (e.g.,\n"
            "    pip install mcp\n"
            "and then re-run: python -m uhost_mcp.server.mcp_stdio"
        )
    mcp_app = cast(Any, mcp_cls)(SERVER_NAME, host=host, port=port)
    register_handlers(mcp_app, app, tool_error_cls)
    return mcp_app


async def _serve_forever(mcp_app: Any, app: UHostMCPServer, transport: str) -> None:
    """Run the FastMCP server with graceful shutdown.

    Handles Ctrl-C (SIGINT) to exit cleanly without traceback; a second
    Ctrl-C exits immediately.
    """
    logger.info(f"Starting MCP {transport} server...")
    shutdown_event = asyncio.Event()
    shutting_down = False

    def _on_sigint() -> None:
        nonlocal shutting_down
        if not shutting_down:
            shutting_down = True
            logger.info(f"Shutting down MCP {transport} server...")
            shutdown_event.set()
        else:
            os._exit(130)

    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, _on_sigint)
    except NotImplementedError:
        pass

    runner = mcp_app.run_sse_async() if transport == "sse" else mcp_app.run_stdio_async()
    run_task = asyncio.create_task(runner)
    wait_task = asyncio.create_task(shutdown_event.wait())
    await asyncio.wait([run_task, wait_task], return_when=asyncio.FIRST_COMPLETED)
    if not run_task.done():
        run_task.cancel()
        await asyncio.sleep(0)
    wait_task.cancel()
    await app.stop()


async def run(
    config_path: Optional[Path] = None,
    transport: str = "stdio",
    host: str = "127.0.0.1",
    port: int = 8080,
) -> None:
    """Initialise the adapter, register handlers and serve until interrupted."""
    init_adapter(config_path)
    app = UHostMCPServer()
    await app.start()
    mcp_app = build_mcp_app(app, host=host, port=port)
    if transport == "sse":
        logger.info(f"SSE server listening on {host}:{port}")
    await _serve_forever(mcp_app, app, transport)


def main() -> None:
    """Entrypoint: run the MCP stdio server.

    Configuration comes from ``UHOST_MCP_CONFIG`` (path to the JSON config
    file) and ``UCLOUD_*`` variables; ``UHOST_MCP_LOG_LEVEL`` sets the level.
    """
    if not logging.getLogger().hasHandlers():
        setup_logging(os.environ.get("UHOST_MCP_LOG_LEVEL", "INFO"))
    config = os.environ.get("UHOST_MCP_CONFIG")
    try:
        asyncio.run(run(Path(config) if config else None))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
