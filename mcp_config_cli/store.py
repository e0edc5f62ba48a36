"""Reading and writing configuration records on disk.

JSON is the default format; files ending in .yaml or .yml are read and
written as YAML.
"""

import json
import logging
import shutil
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

import yaml
from pydantic import ValidationError

from .schema import ConfigurationRecord

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


class ConfigFormatError(ValueError):
    """Raised when a file cannot be parsed into a configuration record."""

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class ConfigStore:
    """Loads and saves configuration records."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def read(self, path: Path | str) -> ConfigurationRecord:
        """Read a configuration record.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigFormatError: If the content is not a valid record
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            text = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise ConfigFormatError(path, f"not valid {self.encoding} text: {e}") from e

        try:
            if path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigFormatError(path, f"cannot parse file: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigFormatError(path, "top level must be an object")

        try:
            record = ConfigurationRecord.from_dict(data)
        except ValidationError as e:
            raise ConfigFormatError(path, f"invalid configuration: {e}") from e

        logger.debug(f"Read {len(record.services)} service(s) from {path}")
        return record

    def read_many(self, paths: Iterable[Path | str]) -> list[ConfigurationRecord]:
        """Read several records, preserving order."""
        return [self.read(path) for path in paths]

    def write(self, path: Path | str, record: ConfigurationRecord, backup: bool = True) -> Path | None:
        """Write a configuration record.

        Args:
            path: Destination file
            record: Record to write
            backup: Copy an existing destination to ``<path>.backup.<timestamp>`` first

        Returns:
            Path of the backup file, if one was created
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        backup_path = None
        if backup and path.exists():
            backup_path = self.create_backup(path)

        data = record.to_dict()
        if path.suffix.lower() in YAML_SUFFIXES:
            content = yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        else:
            content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        path.write_text(content, encoding=self.encoding)
        logger.info(f"Wrote {len(record.services)} service(s) to {path}")
        return backup_path

    def create_backup(self, path: Path) -> Path:
        """Copy ``path`` next to itself with a timestamp suffix."""
        timestamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        backup_path = path.with_name(f"{path.name}.backup.{timestamp}")
        shutil.copy2(path, backup_path)
        logger.info(f"Created backup: {backup_path}")
        return backup_path
