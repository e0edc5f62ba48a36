"""Pairwise and multi-source merging of configuration records."""

import logging
from collections.abc import Sequence

from ..schema import ConfigMetadata
from ..schema import ConfigurationRecord
from ..validation import ConfigValidator
from ..validation import RecordValidator
from .compare import compare_versions
from .models import Added
from .models import MergeOptions
from .models import MergeResult
from .models import MergeStats
from .models import Pending
from .models import Skipped
from .models import Updated
from .service import merge_metadata
from .service import merge_service

logger = logging.getLogger(__name__)


class MergeInputError(ValueError):
    """Raised when a merge cannot produce any record from its inputs."""


def _merge_version(source: ConfigurationRecord, target: ConfigurationRecord) -> str | None:
    if source.version and (not target.version or compare_versions(source.version, target.version) > 0):
        return source.version
    return target.version


def merge_configs(
    source: ConfigurationRecord,
    target: ConfigurationRecord,
    options: MergeOptions | None = None,
    validator: RecordValidator | None = None,
) -> MergeResult:
    """Merge every service of ``source`` into a copy of ``target``.

    The target's services are the starting point. Each source service is run
    through the service merger in source order; conflicts left pending keep
    the target's descriptor and are reported in ``conflicts``.

    Args:
        source: Record whose services are merged in
        target: Record merged into (not modified)
        options: Merge options (defaults to MergeOptions())
        validator: Validator used when ``options.validate_result`` is set
            (defaults to ConfigValidator())

    Returns:
        MergeResult with the reconciled record
    """
    options = options or MergeOptions()

    services = {name: descriptor.model_copy(deep=True) for name, descriptor in target.services.items()}
    updates: dict = {
        "services": services,
        "version": _merge_version(source, target),
    }
    if options.preserve_metadata:
        updates["metadata"] = merge_metadata(source.metadata, target.metadata, ConfigMetadata)

    conflicts = []
    warnings: list[str] = []
    errors: list[str] = []
    added = updated = skipped = conflicted = 0

    for name, source_service in source.services.items():
        outcome = merge_service(name, source_service, services.get(name), options)

        if isinstance(outcome, Added):
            services[name] = outcome.descriptor
            added += 1
        elif isinstance(outcome, Updated):
            services[name] = outcome.descriptor
            updated += 1
            warnings.extend(outcome.warnings)
        elif isinstance(outcome, Skipped):
            skipped += 1
            warnings.extend(outcome.warnings)
        elif isinstance(outcome, Pending):
            conflicts.append(outcome.conflict)
            conflicted += 1

    merged = target.model_copy(update=updates, deep=True)

    if options.validate_result:
        validator = validator or ConfigValidator()
        try:
            validation = validator.validate(merged)
        except Exception as e:
            logger.exception("Validator raised while checking merged configuration")
            errors.append(f"Validation failed: {e}")
        else:
            errors.extend(str(issue) for issue in validation.errors)
            warnings.extend(str(issue) for issue in validation.warnings)

    stats = MergeStats(
        total_source_services=len(source.services),
        added=added,
        updated=updated,
        skipped=skipped,
        conflicted=conflicted,
    )
    logger.info(
        f"Merged {stats.total_source_services} service(s): {added} added, {updated} updated, "
        f"{skipped} skipped, {conflicted} conflicted"
    )

    return MergeResult(
        succeeded=not errors,
        merged_record=merged,
        conflicts=tuple(conflicts),
        errors=tuple(errors),
        warnings=tuple(warnings),
        stats=stats,
    )


def merge_multiple(
    records: Sequence[ConfigurationRecord],
    options: MergeOptions | None = None,
    validator: RecordValidator | None = None,
) -> MergeResult:
    """Fold an ordered list of records into one.

    ``records[0]`` is the initial target; every following record is merged
    into the running result, left to right. Conflicts, warnings and errors of
    every step are concatenated and stats are summed.

    Raises:
        MergeInputError: If ``records`` is empty
    """
    if not records:
        raise MergeInputError("At least one configuration is required to merge")

    if len(records) == 1:
        only = records[0]
        return MergeResult(
            succeeded=True,
            merged_record=only.model_copy(deep=True),
            stats=MergeStats(total_source_services=len(only.services)),
        )

    result = records[0]
    succeeded = True
    conflicts = []
    warnings: list[str] = []
    errors: list[str] = []
    stats = MergeStats()

    for index, record in enumerate(records[1:], start=1):
        logger.debug(f"Merging configuration {index} of {len(records) - 1}")
        step = merge_configs(record, result, options, validator)

        succeeded = succeeded and step.succeeded
        conflicts.extend(step.conflicts)
        warnings.extend(step.warnings)
        errors.extend(step.errors)
        stats = stats + step.stats

        if step.merged_record is not None:
            result = step.merged_record

    return MergeResult(
        succeeded=succeeded,
        merged_record=result,
        conflicts=tuple(conflicts),
        errors=tuple(errors),
        warnings=tuple(warnings),
        stats=stats,
    )
