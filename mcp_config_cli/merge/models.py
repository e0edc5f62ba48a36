"""Merge engine data models.

Defines the value types flowing through the merge engine:
- MergeStrategy / MergeOptions: how conflicts are handled
- ConflictKind / Conflict: a detected disagreement between two descriptors
- Added / Updated / Skipped / Pending: the outcome of merging one service
- MergeStats / MergeResult: what a merge produced
- DifferenceReport: partition of service names between two records
- Resolution: a caller's decision for one pending conflict
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import ClassVar

from ..schema import ConfigurationRecord
from ..schema import ServiceDescriptor


class MergeStrategy(str, Enum):
    """Policy applied when a source service conflicts with the target.

    Strategies:
    - OVERWRITE: source descriptor replaces the target's
    - SKIP: target descriptor is kept
    - MERGE: fields are merged anyway (source wins field by field)
    - DEFER: conflict is reported and left for the caller to resolve
    """

    OVERWRITE = "overwrite"
    SKIP = "skip"
    MERGE = "merge"
    DEFER = "defer"

    @classmethod
    def _missing_(cls, value: object) -> MergeStrategy | None:
        # "prompt" is the name used by older configuration files
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized == "prompt":
                return cls.DEFER
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class ConflictKind(str, Enum):
    """Classification of a conflict.

    Automatic detection only produces DIFFERENT_CONFIG; the other kinds are
    available for conflicts recorded by hand.
    """

    DIFFERENT_CONFIG = "different-config"
    DUPLICATE = "duplicate"
    VERSION_MISMATCH = "version-mismatch"
    MISSING_DEPENDENCY = "missing-dependency"


class Resolution(str, Enum):
    """Caller decision for a pending conflict."""

    SOURCE = "source"
    TARGET = "target"
    MERGE = "merge"


@dataclass
class MergeOptions:
    """Options for a merge.

    Attributes:
        strategy: Conflict handling policy
        preserve_metadata: Combine metadata of both sides (source wins per key)
        validate_result: Run the validator over the merged record
        create_backup: Back up the destination file before writing it
    """

    strategy: MergeStrategy = MergeStrategy.DEFER
    preserve_metadata: bool = True
    validate_result: bool = False
    create_backup: bool = True

    def __post_init__(self):
        self.strategy = MergeStrategy(self.strategy)


@dataclass(frozen=True)
class Conflict:
    """A field-level disagreement between two descriptors sharing a name.

    Attributes:
        id: Unique identifier of this detection
        service_name: Name of the service in both records
        conflicting_fields: Fields that differ (subset of command, args, env, disabled)
        source_value: Source descriptor, verbatim
        target_value: Target descriptor, verbatim
        description: Human-readable summary
        kind: Conflict classification
    """

    id: str
    service_name: str
    conflicting_fields: frozenset[str]
    source_value: ServiceDescriptor
    target_value: ServiceDescriptor
    description: str
    kind: ConflictKind = ConflictKind.DIFFERENT_CONFIG

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "serviceName": self.service_name,
            "type": self.kind.value,
            "conflictingFields": sorted(self.conflicting_fields),
            "description": self.description,
            "sourceConfig": self.source_value.to_dict(),
            "targetConfig": self.target_value.to_dict(),
        }


@dataclass(frozen=True)
class Added:
    """Service absent from the target; descriptor is a copy of the source."""

    action: ClassVar[str] = "add"
    descriptor: ServiceDescriptor


@dataclass(frozen=True)
class Updated:
    """Service present in the target and replaced by ``descriptor``."""

    action: ClassVar[str] = "update"
    descriptor: ServiceDescriptor
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class Skipped:
    """Conflicting service left as the target has it."""

    action: ClassVar[str] = "skip"
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class Pending:
    """Conflicting service awaiting an explicit resolution."""

    action: ClassVar[str] = "none"
    conflict: Conflict


ServiceOutcome = Added | Updated | Skipped | Pending


@dataclass(frozen=True)
class MergeStats:
    """Counters for a merge.

    For one pairwise merge ``total_source_services`` always equals
    ``added + updated + skipped + conflicted``.
    """

    total_source_services: int = 0
    added: int = 0
    updated: int = 0
    skipped: int = 0
    conflicted: int = 0

    def __add__(self, other: MergeStats) -> MergeStats:
        return MergeStats(
            total_source_services=self.total_source_services + other.total_source_services,
            added=self.added + other.added,
            updated=self.updated + other.updated,
            skipped=self.skipped + other.skipped,
            conflicted=self.conflicted + other.conflicted,
        )

    @property
    def accounted(self) -> int:
        return self.added + self.updated + self.skipped + self.conflicted

    def to_dict(self) -> dict[str, int]:
        return {
            "totalServices": self.total_source_services,
            "addedServices": self.added,
            "updatedServices": self.updated,
            "skippedServices": self.skipped,
            "conflictServices": self.conflicted,
        }


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a merge.

    Attributes:
        succeeded: False when validation reported errors
        merged_record: Reconciled record (None only on hard failure)
        conflicts: Pending conflicts, in detection order
        errors: Error messages
        warnings: Warning messages
        stats: Service counters
    """

    succeeded: bool
    merged_record: ConfigurationRecord | None
    conflicts: tuple[Conflict, ...] = ()
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    stats: MergeStats = field(default_factory=MergeStats)

    @property
    def has_pending_conflicts(self) -> bool:
        return bool(self.conflicts)

    def to_dict(self) -> dict:
        """Serialize the report part of the result (the merged record is left out)."""
        return {
            "success": self.succeeded,
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class DifferenceReport:
    """Partition of the service names found in two records."""

    only_in_first: list[str]
    only_in_second: list[str]
    different: list[str]
    identical: list[str]

    def all_names(self) -> set[str]:
        return {*self.only_in_first, *self.only_in_second, *self.different, *self.identical}
