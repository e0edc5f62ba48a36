"""CLI command groups for mcp-config-cli."""

__all__ = [
    "config",
    "inspect",
    "merge",
]
