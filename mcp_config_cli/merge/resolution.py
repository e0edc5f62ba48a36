"""Apply caller decisions to conflicts left pending by a deferred merge."""

import logging
from collections.abc import Mapping
from dataclasses import replace

from .models import MergeResult
from .models import Resolution
from .service import merge_descriptors

logger = logging.getLogger(__name__)


def apply_resolutions(
    result: MergeResult,
    decisions: Mapping[str, Resolution | str],
    preserve_metadata: bool = True,
) -> MergeResult:
    """Resolve pending conflicts of a merge result.

    Decisions are keyed by conflict id or by service name; an id takes
    precedence. Decided conflicts are applied to a copy of the merged record
    and dropped from ``conflicts``; undecided ones stay pending.

    - SOURCE: the source descriptor replaces the entry (counted as updated)
    - MERGE: both descriptors are merged field-wise (counted as updated)
    - TARGET: the entry is kept (counted as skipped)

    Args:
        result: Result of a merge run with the defer strategy
        decisions: Conflict id or service name -> Resolution
        preserve_metadata: Metadata handling for MERGE decisions

    Returns:
        New MergeResult; ``result`` itself is returned when there is nothing to apply
    """
    if result.merged_record is None or not result.conflicts:
        return result

    services = {name: descriptor.model_copy(deep=True) for name, descriptor in result.merged_record.services.items()}
    remaining = []
    warnings = list(result.warnings)
    used_keys: set[str] = set()
    updated = skipped = resolved = 0

    for conflict in result.conflicts:
        if conflict.id in decisions:
            key = conflict.id
        elif conflict.service_name in decisions:
            key = conflict.service_name
        else:
            remaining.append(conflict)
            continue

        used_keys.add(key)
        resolution = Resolution(decisions[key])
        name = conflict.service_name
        logger.debug(f"Resolving conflict on '{name}' with '{resolution.value}'")

        if resolution == Resolution.SOURCE:
            services[name] = conflict.source_value.model_copy(deep=True)
            updated += 1
        elif resolution == Resolution.MERGE:
            current = services.get(name, conflict.target_value)
            services[name] = merge_descriptors(conflict.source_value, current, preserve_metadata)
            updated += 1
        else:
            skipped += 1
        resolved += 1

    for key in decisions:
        if key not in used_keys:
            warnings.append(f'No pending conflict matches "{key}"')

    stats = replace(
        result.stats,
        updated=result.stats.updated + updated,
        skipped=result.stats.skipped + skipped,
        conflicted=result.stats.conflicted - resolved,
    )
    logger.info(f"Resolved {resolved} conflict(s), {len(remaining)} still pending")

    return replace(
        result,
        merged_record=result.merged_record.model_copy(update={"services": services}, deep=True),
        conflicts=tuple(remaining),
        warnings=tuple(warnings),
        stats=stats,
    )
