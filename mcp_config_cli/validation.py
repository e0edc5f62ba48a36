"""Rule-based validation of configuration records.

The merge engine calls a validator on the merged record when asked to.
Any object with a ``validate(record)`` method returning something with
``errors`` and ``warnings`` qualifies (see RecordValidator).
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Protocol

from .schema import ConfigurationRecord
from .schema import ServiceDescriptor

logger = logging.getLogger(__name__)

SERVICE_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")
ENV_NAME_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")
MAX_TIMEOUT_MILLIS = 300_000


class Severity(str, Enum):
    """How serious a validation finding is."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation finding.

    Attributes:
        field: Offending field (command, args, env, ...)
        message: What is wrong
        severity: Error or warning
        service_name: Service the finding belongs to, if any
        suggestion: How to fix it
    """

    field: str
    message: str
    severity: Severity = Severity.ERROR
    service_name: str | None = None
    suggestion: str | None = None

    def __str__(self) -> str:
        if self.service_name:
            return f'Service "{self.service_name}": {self.message}'
        return self.message


@dataclass
class ValidationResult:
    """Outcome of validating a record."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def suggestions(self) -> list[str]:
        """Distinct fix suggestions, in finding order."""
        seen: dict[str, None] = {}
        for issue in [*self.errors, *self.warnings]:
            if issue.suggestion:
                seen.setdefault(issue.suggestion, None)
        return list(seen)


class RecordValidator(Protocol):
    """Anything able to validate a merged record."""

    def validate(self, record: ConfigurationRecord) -> ValidationResult: ...


@dataclass(frozen=True)
class ValidationRule:
    """A named check over one service.

    ``check`` returns True when the service passes.
    """

    name: str
    field: str
    severity: Severity
    message: str
    check: Callable[[str, ServiceDescriptor], bool]
    suggestion: str | None = None


def _command_present(name: str, service: ServiceDescriptor) -> bool:
    return bool(service.command and service.command.strip())


def _env_names_conventional(name: str, service: ServiceDescriptor) -> bool:
    return all(ENV_NAME_PATTERN.match(key) for key in service.env)


def _timeout_in_range(name: str, service: ServiceDescriptor) -> bool:
    if service.timeout_millis is None:
        return True
    return 0 < service.timeout_millis <= MAX_TIMEOUT_MILLIS


def _working_directory_exists(name: str, service: ServiceDescriptor) -> bool:
    if not service.working_directory:
        return True
    return Path(service.working_directory).expanduser().is_dir()


def _command_resolvable(name: str, service: ServiceDescriptor) -> bool:
    command = service.command.strip()
    if not command:
        return False
    if Path(command).is_absolute():
        return Path(command).exists()
    return shutil.which(command) is not None


def default_rules(check_commands: bool = False, check_paths: bool = False) -> list[ValidationRule]:
    """Build the standard rule set.

    Args:
        check_commands: Also warn when a command cannot be found on PATH
        check_paths: Also warn when a working directory does not exist
    """
    rules = [
        ValidationRule(
            name="command-required",
            field="command",
            severity=Severity.ERROR,
            message="command must be a non-empty string",
            check=_command_present,
            suggestion="Add a command, e.g. npx or uvx",
        ),
        ValidationRule(
            name="env-naming",
            field="env",
            severity=Severity.WARNING,
            message="environment variable names should be upper case (e.g. API_KEY)",
            check=_env_names_conventional,
            suggestion="Use upper-case letters, digits and underscores for variable names",
        ),
        ValidationRule(
            name="timeout-range",
            field="timeout",
            severity=Severity.WARNING,
            message=f"timeout should be between 1 and {MAX_TIMEOUT_MILLIS} milliseconds",
            check=_timeout_in_range,
            suggestion="Set a timeout between 1 and 300000 milliseconds",
        ),
    ]
    if check_paths:
        rules.append(
            ValidationRule(
                name="cwd-exists",
                field="cwd",
                severity=Severity.WARNING,
                message="working directory does not exist",
                check=_working_directory_exists,
                suggestion="Point cwd at an existing directory",
            )
        )
    if check_commands:
        rules.append(
            ValidationRule(
                name="command-resolvable",
                field="command",
                severity=Severity.WARNING,
                message="command was not found on PATH",
                check=_command_resolvable,
                suggestion="Check the command path or make sure it is on PATH",
            )
        )
    return rules


class ConfigValidator:
    """Validates service names and descriptors of a configuration record."""

    def __init__(
        self,
        check_commands: bool = False,
        check_paths: bool = False,
        max_errors: int = 50,
        rules: list[ValidationRule] | None = None,
    ):
        self.max_errors = max_errors
        self.rules = rules if rules is not None else default_rules(check_commands, check_paths)

    def add_rule(self, rule: ValidationRule) -> None:
        self.rules.append(rule)

    def remove_rule(self, name: str) -> bool:
        """Remove a rule by name. Returns True if a rule was removed."""
        before = len(self.rules)
        self.rules = [rule for rule in self.rules if rule.name != name]
        return len(self.rules) != before

    def validate_service(self, name: str, service: ServiceDescriptor) -> list[ValidationIssue]:
        """Run every rule against one service, including the name check."""
        issues = []
        if not SERVICE_NAME_PATTERN.match(name):
            issues.append(
                ValidationIssue(
                    field="serviceName",
                    message="name must start with a letter and contain only letters, digits, '_' or '-'",
                    service_name=name,
                    suggestion="Rename the service, e.g. my-service",
                )
            )
        for rule in self.rules:
            if not rule.check(name, service):
                issues.append(
                    ValidationIssue(
                        field=rule.field,
                        message=rule.message,
                        severity=rule.severity,
                        service_name=name,
                        suggestion=rule.suggestion,
                    )
                )
        return issues

    def validate(self, record: ConfigurationRecord) -> ValidationResult:
        """Validate every service of a record.

        Errors beyond ``max_errors`` are dropped.
        """
        result = ValidationResult()
        for name, service in record.services.items():
            for issue in self.validate_service(name, service):
                if issue.severity == Severity.ERROR:
                    result.errors.append(issue)
                else:
                    result.warnings.append(issue)

        if len(result.errors) > self.max_errors:
            logger.debug(f"Truncating {len(result.errors)} validation errors to {self.max_errors}")
            del result.errors[self.max_errors :]

        logger.debug(
            f"Validated {len(record.services)} service(s): "
            f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
        )
        return result
