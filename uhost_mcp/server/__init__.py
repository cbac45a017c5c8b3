"""MCP and HTTP transports plus the handlers they share."""
