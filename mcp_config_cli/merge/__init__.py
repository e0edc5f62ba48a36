"""Configuration merge and conflict resolution engine.

Merges MCP configuration records: detects field-level conflicts between
services sharing a name, applies a merge strategy, and reports what happened.
The engine is pure: no I/O, inputs are never modified.

Example:
    from mcp_config_cli.merge import MergeOptions, MergeStrategy, merge_configs

    result = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.SKIP))
    if result.conflicts:
        ...
"""

from .compare import args_equal
from .compare import compare_versions
from .compare import descriptors_equal
from .compare import env_equal
from .conflicts import analyze_differences
from .conflicts import detect_conflicts
from .conflicts import detect_service_conflict
from .merger import MergeInputError
from .merger import merge_configs
from .merger import merge_multiple
from .models import Added
from .models import Conflict
from .models import ConflictKind
from .models import DifferenceReport
from .models import MergeOptions
from .models import MergeResult
from .models import MergeStats
from .models import MergeStrategy
from .models import Pending
from .models import Resolution
from .models import ServiceOutcome
from .models import Skipped
from .models import Updated
from .resolution import apply_resolutions
from .service import merge_descriptors
from .service import merge_service

__all__ = [
    # Comparison
    "args_equal",
    "env_equal",
    "descriptors_equal",
    "compare_versions",
    # Detection
    "detect_service_conflict",
    "detect_conflicts",
    "analyze_differences",
    # Merging
    "merge_service",
    "merge_descriptors",
    "merge_configs",
    "merge_multiple",
    "apply_resolutions",
    "MergeInputError",
    # Models
    "Added",
    "Updated",
    "Skipped",
    "Pending",
    "ServiceOutcome",
    "Conflict",
    "ConflictKind",
    "DifferenceReport",
    "MergeOptions",
    "MergeResult",
    "MergeStats",
    "MergeStrategy",
    "Resolution",
]
