"""
Version information for the UHost MCP server.

The package version is read from pyproject.toml via importlib.metadata so
that pyproject.toml stays the single source of truth.
"""

try:
    from importlib.metadata import version

    __version__ = version("uhost-mcp-server")
except Exception:
    # Package not installed; read pyproject.toml directly
    import tomllib
    from pathlib import Path

    try:
        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            pyproject = tomllib.load(f)
            __version__ = pyproject["project"]["version"]
    except Exception:
        __version__ = "0.0.0-dev"

SERVER_NAME = "UCloud Instance Manager"
