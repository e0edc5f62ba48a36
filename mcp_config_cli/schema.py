"""Pydantic schemas for MCP service configuration records.

The persisted form is the camelCase JSON written by editors such as Cursor,
Windsurf and VS Code (``mcpServers``, ``cwd``, ``lastModified``...). Models accept
either the persisted alias or the Python field name, and ``to_dict`` writes the
persisted form back without adding fields the input never had.
"""

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

_MODEL_CONFIG = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


class _PersistedModel(BaseModel):
    model_config = _MODEL_CONFIG

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted (camelCase) dictionary form."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Create from a persisted dictionary."""
        return cls.model_validate(data)

    @field_validator("version", mode="before", check_fields=False)
    @classmethod
    def version_as_text(cls, value: Any) -> Any:
        # Unquoted YAML versions such as `version: 1.2` load as numbers
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


class ServiceMetadata(_PersistedModel):
    """Descriptive metadata attached to a single service."""

    source: str | None = Field(None, description="Origin: manual, template, import or clipboard")
    description: str | None = Field(None, description="Human-readable description")
    author: str | None = Field(None, description="Service author")
    version: str | None = Field(None, description="Service version")
    last_modified: int | None = Field(None, alias="lastModified", description="Epoch milliseconds")
    tags: list[str] | None = Field(None, description="Free-form tags")


class ServiceDescriptor(_PersistedModel):
    """One launchable service: command, arguments, environment and enablement."""

    command: str = Field(..., description="Executable to launch")
    args: list[str] = Field(default_factory=list, description="Command arguments, in order")
    env: dict[str, str] = Field(default_factory=dict, description="Environment variables")
    disabled: bool = Field(default=False, description="Whether the service is switched off")
    working_directory: str | None = Field(None, alias="cwd", description="Working directory")
    timeout_millis: int | None = Field(None, alias="timeout", description="Startup timeout in milliseconds")
    metadata: ServiceMetadata | None = Field(None, description="Service metadata")


class ConfigMetadata(_PersistedModel):
    """Record-level bookkeeping."""

    created_by: str | None = Field(None, alias="createdBy")
    created_at: int | None = Field(None, alias="createdAt")
    last_modified: int | None = Field(None, alias="lastModified")
    version: str | None = None
    checksum: str | None = None


class ConfigurationRecord(_PersistedModel):
    """Root unit being merged: every service plus version and metadata."""

    services: dict[str, ServiceDescriptor] = Field(default_factory=dict, alias="mcpServers")
    version: str | None = Field(None, description="Dotted version, e.g. '1.2.0'")
    metadata: ConfigMetadata | None = None
    schema_ref: str | None = Field(None, alias="$schema")

    @property
    def service_names(self) -> list[str]:
        return list(self.services)
