"""Per-service merge decisions.

For one service name this module decides whether the source descriptor is
added, merged into the target's, kept out, or left pending, and builds the
resulting descriptor. Inputs are never modified; every descriptor returned is
a fresh copy.
"""

import logging
import time
from typing import Any
from typing import TypeVar

from pydantic import BaseModel

from ..schema import ServiceDescriptor
from ..schema import ServiceMetadata
from .conflicts import detect_service_conflict
from .models import Added
from .models import MergeOptions
from .models import MergeStrategy
from .models import Pending
from .models import ServiceOutcome
from .models import Skipped
from .models import Updated

logger = logging.getLogger(__name__)

MetadataT = TypeVar("MetadataT", bound=BaseModel)


def now_millis() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def merge_metadata(
    source_meta: MetadataT | None,
    target_meta: MetadataT | None,
    model: type[MetadataT],
) -> MetadataT | None:
    """Combine two metadata objects, source winning key by key.

    ``last_modified`` is stamped with the current time. Returns None when
    neither side carries metadata.
    """
    if source_meta is None and target_meta is None:
        return None

    combined: dict[str, Any] = {}
    if target_meta is not None:
        combined.update(target_meta.model_dump(exclude_unset=True))
    if source_meta is not None:
        combined.update(source_meta.model_dump(exclude_unset=True))
    combined["last_modified"] = now_millis()
    return model.model_validate(combined)


def merge_descriptors(
    source: ServiceDescriptor,
    target: ServiceDescriptor,
    preserve_metadata: bool,
) -> ServiceDescriptor:
    """Field-wise merge of two descriptors.

    Every field explicitly present on the source overrides the target's.
    ``env`` is the union of both maps with source values taking precedence.

    Args:
        source: Incoming descriptor
        target: Existing descriptor
        preserve_metadata: Combine both metadata objects instead of letting
            the source's replace the target's

    Returns:
        New descriptor
    """
    merged = {
        **target.model_dump(exclude_unset=True),
        **source.model_dump(exclude_unset=True),
    }

    if "env" in merged:
        merged["env"] = {**target.env, **source.env}

    if preserve_metadata:
        metadata = merge_metadata(source.metadata, target.metadata, ServiceMetadata)
        if metadata is None:
            merged.pop("metadata", None)
        else:
            merged["metadata"] = metadata.model_dump(exclude_unset=True)

    return ServiceDescriptor.model_validate(merged)


def merge_service(
    service_name: str,
    source: ServiceDescriptor,
    target: ServiceDescriptor | None,
    options: MergeOptions,
) -> ServiceOutcome:
    """Decide how one source service lands in the target record.

    Args:
        service_name: Service name
        source: Descriptor from the source record
        target: Descriptor currently in the target record, if any
        options: Merge options (strategy, metadata handling)

    Returns:
        Added when the target has no such service, Updated when the two are
        compatible or the strategy forces a result, Skipped or Pending when a
        conflict is left in place
    """
    if target is None:
        logger.debug(f"Adding new service '{service_name}'")
        return Added(source.model_copy(deep=True))

    conflict = detect_service_conflict(service_name, source, target)
    if conflict is None:
        logger.debug(f"Merging compatible service '{service_name}'")
        return Updated(merge_descriptors(source, target, options.preserve_metadata))

    strategy = options.strategy
    logger.debug(f"Resolving conflict on '{service_name}' with strategy '{strategy.value}'")

    if strategy == MergeStrategy.OVERWRITE:
        return Updated(
            source.model_copy(deep=True),
            warnings=(f'Service "{service_name}" was overwritten by the source configuration',),
        )

    if strategy == MergeStrategy.SKIP:
        return Skipped(warnings=(f'Skipped conflicting service "{service_name}"',))

    if strategy == MergeStrategy.MERGE:
        return Updated(
            merge_descriptors(source, target, options.preserve_metadata),
            warnings=(f'Force-merged service "{service_name}"; conflicting values may have been lost',),
        )

    return Pending(conflict)
