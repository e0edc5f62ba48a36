"""Conflict detection and difference analysis between configuration records."""

import logging
import uuid

from ..schema import ConfigurationRecord
from ..schema import ServiceDescriptor
from .compare import args_equal
from .compare import descriptors_equal
from .compare import env_equal
from .models import Conflict
from .models import ConflictKind
from .models import DifferenceReport

logger = logging.getLogger(__name__)


def differing_fields(source: ServiceDescriptor, target: ServiceDescriptor) -> list[str]:
    """List the launch-relevant fields on which two descriptors differ.

    Fields are reported in the order command, args, env, disabled.
    """
    fields = []
    if source.command != target.command:
        fields.append("command")
    if not args_equal(source.args, target.args):
        fields.append("args")
    if not env_equal(source.env, target.env):
        fields.append("env")
    if source.disabled != target.disabled:
        fields.append("disabled")
    return fields


def detect_service_conflict(
    service_name: str,
    source: ServiceDescriptor,
    target: ServiceDescriptor,
) -> Conflict | None:
    """Detect a conflict between two descriptors registered under one name.

    Args:
        service_name: Name shared by both descriptors
        source: Incoming descriptor
        target: Existing descriptor

    Returns:
        Conflict listing exactly the differing fields, or None when the two
        descriptors are merge-compatible
    """
    fields = differing_fields(source, target)
    if not fields:
        return None

    logger.debug(f"Service '{service_name}' conflicts on: {', '.join(fields)}")
    return Conflict(
        id=f"conflict_{service_name}_{uuid.uuid4().hex[:12]}",
        service_name=service_name,
        conflicting_fields=frozenset(fields),
        source_value=source,
        target_value=target,
        description=f'Service "{service_name}" has conflicting fields: {", ".join(fields)}',
        kind=ConflictKind.DIFFERENT_CONFIG,
    )


def detect_conflicts(source: ConfigurationRecord, target: ConfigurationRecord) -> list[Conflict]:
    """Preview the conflicts a merge of ``source`` into ``target`` would hit.

    Only names present in both records are examined, in source order.
    Neither record is modified.
    """
    conflicts = []
    for name, source_service in source.services.items():
        target_service = target.services.get(name)
        if target_service is None:
            continue
        conflict = detect_service_conflict(name, source_service, target_service)
        if conflict:
            conflicts.append(conflict)
    return conflicts


def analyze_differences(first: ConfigurationRecord, second: ConfigurationRecord) -> DifferenceReport:
    """Partition the service names of two records.

    Every distinct name lands in exactly one list: only in the first record,
    only in the second, present in both but different, or identical.
    """
    first_names = list(first.services)
    second_names = list(second.services)
    second_set = set(second_names)
    first_set = set(first_names)

    different: list[str] = []
    identical: list[str] = []
    for name in first_names:
        if name not in second_set:
            continue
        if descriptors_equal(first.services[name], second.services[name]):
            identical.append(name)
        else:
            different.append(name)

    return DifferenceReport(
        only_in_first=[name for name in first_names if name not in second_set],
        only_in_second=[name for name in second_names if name not in first_set],
        different=different,
        identical=identical,
    )
