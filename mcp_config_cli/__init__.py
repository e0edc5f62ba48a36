"""mcp-config-cli: merge and reconcile MCP server configuration files."""

__version__ = "0.1.0"
