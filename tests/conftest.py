"""Pytest configuration and shared fixtures for mcp-config-cli tests."""

import pytest

from mcp_config_cli.schema import ConfigurationRecord
from mcp_config_cli.schema import ServiceDescriptor


def _build_record(services: dict | None = None, **fields) -> ConfigurationRecord:
    return ConfigurationRecord.from_dict({"mcpServers": services or {}, **fields})


def _build_service(command: str = "node", **fields) -> ServiceDescriptor:
    return ServiceDescriptor.from_dict({"command": command, **fields})


@pytest.fixture
def make_record():
    """Builder for records in the persisted (camelCase) form."""
    return _build_record


@pytest.fixture
def make_service():
    """Builder for descriptors in the persisted (camelCase) form."""
    return _build_service


@pytest.fixture
def filesystem_record() -> ConfigurationRecord:
    """Record with a single filesystem server, as in a typical Cursor mcp.json."""
    return _build_record(
        {
            "filesystem": {
                "command": "npx",
                "args": ["-y", "@modelcontextprotocol/server-filesystem", "/home/user"],
            }
        }
    )


@pytest.fixture
def rich_record() -> ConfigurationRecord:
    """Record exercising every optional field."""
    return _build_record(
        {
            "github": {
                "command": "npx",
                "args": ["-y", "@modelcontextprotocol/server-github"],
                "env": {"GITHUB_TOKEN": "ghp_x"},
                "cwd": "/srv",
                "timeout": 30000,
                "metadata": {"source": "template", "tags": ["vcs"], "lastModified": 1000},
            },
            "sqlite": {"command": "uvx", "args": ["mcp-server-sqlite"], "disabled": True},
        },
        version="1.2.0",
        metadata={"createdBy": "alice", "createdAt": 1, "lastModified": 2, "version": "1"},
    )
