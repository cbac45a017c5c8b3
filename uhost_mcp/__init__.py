"""
UHost MCP Python package.

This package hosts the UHost MCP server, the UCloud adapter, the pagination
and resource-addressing core, and supporting utilities. See README.md for
usage.
"""

from .__version__ import SERVER_NAME, __version__

__all__ = ["__version__", "SERVER_NAME"]
