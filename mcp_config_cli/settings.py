"""Settings manager for mcp-config settings.yaml files.

Manages the three-scope settings system:
- User global (~/.mcp-config/settings.yaml)
- Project (.mcp-config/settings.yaml)
- Local (.mcp-config/settings.local.yaml)

Only the ``merge`` section is read today:

```yaml
merge:
  strategy: skip            # overwrite | skip | merge | defer
  preserve_metadata: true
  validate_result: false
  create_backup: true
```
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from .merge.models import MergeOptions
from .merge.models import MergeStrategy

logger = logging.getLogger(__name__)

SCOPES = ("user", "project", "local")
_BOOLEAN_KEYS = ("preserve_metadata", "validate_result", "create_backup")


class SettingsManager:
    """Manages settings across user/project/local scopes."""

    def __init__(self, config_dir: Path | None = None, user_dir: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            config_dir: Base directory for project/local settings (for testing).
                        If None, uses .mcp-config in current directory.
            user_dir: Base directory for user settings (for testing).
                      If None, uses ~/.mcp-config.
        """
        if config_dir is None:
            config_dir = Path(".mcp-config")
        if user_dir is None:
            user_dir = Path.home() / ".mcp-config"

        self.user_settings_file = user_dir / "settings.yaml"
        self.project_settings_file = config_dir / "settings.yaml"
        self.local_settings_file = config_dir / "settings.local.yaml"

    def _file_for_scope(self, scope: str) -> Path:
        file_map = {
            "user": self.user_settings_file,
            "project": self.project_settings_file,
            "local": self.local_settings_file,
        }
        if scope not in file_map:
            raise ValueError(f"Unknown settings scope '{scope}' (expected one of: {', '.join(SCOPES)})")
        return file_map[scope]

    def get_merged_settings(self) -> dict[str, Any]:
        """Get merged settings from all scopes.

        Merge order (later overrides earlier):
        1. User settings
        2. Project settings
        3. Local settings
        """
        merged: dict[str, Any] = {}
        for scope in SCOPES:
            settings = self._read_settings(self._file_for_scope(scope))
            if settings:
                merged = self._deep_merge(merged, settings)
        return merged

    def get_merge_options(self) -> MergeOptions:
        """Build MergeOptions from the merged ``merge`` section.

        Invalid values are logged and ignored, leaving the default in place.
        """
        section = self.get_merged_settings().get("merge") or {}
        options = MergeOptions()
        if not isinstance(section, dict):
            logger.warning(f"Ignoring 'merge' settings: expected a mapping, got {section!r}")
            return options

        strategy = section.get("strategy")
        if strategy is not None:
            try:
                options.strategy = MergeStrategy(strategy)
            except ValueError:
                logger.warning(f"Ignoring unknown merge strategy in settings: {strategy}")

        for key in _BOOLEAN_KEYS:
            value = section.get(key)
            if value is None:
                continue
            if isinstance(value, bool):
                setattr(options, key, value)
            else:
                logger.warning(f"Ignoring non-boolean setting merge.{key}: {value!r}")

        return options

    def set_default_strategy(self, strategy: MergeStrategy | str, scope: str = "project") -> None:
        """Persist the default merge strategy in one scope.

        Args:
            strategy: Strategy name or enum
            scope: "user", "project", or "local"
        """
        strategy = MergeStrategy(strategy)
        self._update_settings(self._file_for_scope(scope), {"merge": {"strategy": strategy.value}})
        logger.info(f"Set {scope} default merge strategy to: {strategy.value}")

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Returns:
            Settings dict or None if file doesn't exist or can't be read
        """
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

        if not data:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings in {path}: top level must be a mapping")
            return None
        return data

    def _write_settings(self, path: Path, settings: dict[str, Any]) -> None:
        """Write settings to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, "w") as f:
                yaml.dump(settings, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error(f"Failed to write settings to {path}: {e}")
            raise

    def _update_settings(self, path: Path, updates: dict[str, Any]) -> None:
        """Update settings file with new values (deep merge)."""
        existing = self._read_settings(path) or {}
        merged = self._deep_merge(existing, updates)
        self._write_settings(path, merged)

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries (overlay takes precedence)."""
        result = base.copy()

        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
