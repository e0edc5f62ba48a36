"""Equality and version comparison used by conflict detection."""

import re
from collections.abc import Mapping
from collections.abc import Sequence

from ..schema import ServiceDescriptor

_SEGMENT_PATTERN = re.compile(r"^(\d*)(.*)$", re.DOTALL)


def args_equal(a: Sequence[str] | None, b: Sequence[str] | None) -> bool:
    """Positional equality of two argument lists.

    Absent and empty lists are equal. Reordered lists are NOT equal, even when
    they would launch the same process.
    """
    a = a or ()
    b = b or ()
    if len(a) != len(b):
        return False
    return all(left == right for left, right in zip(a, b, strict=True))


def env_equal(a: Mapping[str, str] | None, b: Mapping[str, str] | None) -> bool:
    """Key-wise equality of two environment maps (absent == empty)."""
    a = a or {}
    b = b or {}
    if a.keys() != b.keys():
        return False
    return all(a[key] == b[key] for key in a)


def descriptors_equal(a: ServiceDescriptor, b: ServiceDescriptor) -> bool:
    """Compare the launch-relevant fields of two descriptors.

    Only command, args, env and disabled take part. working_directory,
    timeout_millis and metadata never make two descriptors differ.
    """
    return (
        a.command == b.command
        and args_equal(a.args, b.args)
        and env_equal(a.env, b.env)
        and a.disabled == b.disabled
    )


def _segment_key(segment: str) -> tuple[int, int, str]:
    # "10" -> (10, 1, ""), "0-beta" -> (0, 0, "-beta"), "rc1" -> (0, 0, "rc1")
    match = _SEGMENT_PATTERN.match(segment.strip())
    number, suffix = match.group(1), match.group(2)
    return (int(number) if number else 0, 0 if suffix else 1, suffix)


def compare_versions(v1: str, v2: str) -> int:
    """Compare two dotted version strings.

    Segments are compared as integers, so "1.10.0" is newer than "1.2.0".
    Missing trailing segments count as 0 ("1.2" == "1.2.0").

    A segment carrying a non-numeric suffix is compared by its leading number
    first; on a tie the plain segment ranks higher ("1.0.0-beta" < "1.0.0"),
    and two suffixes compare lexicographically. A segment with no leading
    digits counts as 0.

    Returns:
        -1 if v1 < v2, 0 if equal, 1 if v1 > v2
    """
    parts1 = v1.split(".")
    parts2 = v2.split(".")
    length = max(len(parts1), len(parts2))
    parts1 += ["0"] * (length - len(parts1))
    parts2 += ["0"] * (length - len(parts2))

    for left, right in zip(parts1, parts2, strict=True):
        key1 = _segment_key(left)
        key2 = _segment_key(right)
        if key1 > key2:
            return 1
        if key1 < key2:
            return -1
    return 0
