"""Observability utilities: logging setup.

This module configures standard logging and, if available, integrates
`structlog` for structured logs. The dependency on `structlog` is optional to
keep the base runtime lightweight.
"""

from __future__ import annotations

import importlib
import logging
import sys

# Loggers of the MCP SDK and its transports; only opened up at DEBUG
MCP_LOGGERS = (
    "mcp",
    "mcp.server",
    "mcp.server.sse",
    "mcp.server.lowlevel",
    "sse_starlette",
)


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Parameters
    ----------
    level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".

    Behavior
    --------
    - Initializes Python's logging with the requested level on stderr, so the
      stdio transport keeps stdout for protocol messages.
    - Raises MCP protocol libraries to DEBUG only when DEBUG is requested.
    - If `structlog` is installed, configures it with a filtering bound logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=("%(asctime)s %(levelname)s %(name)s - %(message)s"),
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(numeric_level)

    if numeric_level <= logging.DEBUG:
        for logger_name in MCP_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.DEBUG)

    try:  # optional structlog
        structlog = importlib.import_module("structlog")
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        )
    except ModuleNotFoundError:  # pragma: no cover
        pass
