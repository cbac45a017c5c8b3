"""Command-line interface to start the UHost MCP server.

The CLI loads the UCloud configuration (JSON file, falling back to
``UCLOUD_*`` environment variables), registers the UCloud adapter and serves
the MCP handlers over SSE (default), stdio, or the FastAPI HTTP transport.

Usage
-----
    uhost-mcp --config config.json --port 8080
    uhost-mcp --transport stdio
    uhost-mcp --transport http --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path

import uvicorn

from ..observability import setup_logging
from .app import UHostMCPServer
from .http import create_app
from .mcp_stdio import init_adapter, run

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="UCloud UHost MCP server")
    parser.add_argument(
        "--config",
        default="config.json",
        help="Path to configuration file (default: config.json)",
    )
    parser.add_argument(
        "--transport",
        choices=["sse", "stdio", "http"],
        default="sse",
        help="Transport to serve (default: sse)",
    )
    parser.add_argument(
        "--host", default="127.0.0.1", help="Bind host (default 127.0.0.1)"
    )
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    return parser


def main() -> None:
    """CLI entrypoint for running the UHost MCP server."""
    args = build_parser().parse_args()

    env_level = os.environ.get("UHOST_MCP_LOG_LEVEL", "INFO").upper()
    effective_level = args.log_level or ("DEBUG" if args.verbose > 0 else env_level)
    setup_logging(effective_level)

    logger.info("Starting UCloud MCP Server...")
    logger.info(f"Using config file: {args.config}")
    config_path = Path(args.config)

    if args.transport == "http":
        init_adapter(config_path)
        app = create_app(UHostMCPServer())
        logger.info(f"HTTP server listening on {args.host}:{args.port}")
        uvicorn.run(
            app,
            host=args.host,
            port=args.port,
            log_level=effective_level.lower(),
        )
        return

    try:
        asyncio.run(
            run(config_path, transport=args.transport, host=args.host, port=args.port)
        )
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
