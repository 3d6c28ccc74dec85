"""
Ordering of Go module version strings.

Go module versions are mostly semantic versions with a ``v`` prefix, but
binaries built from untagged commits carry pseudo-versions such as
``v0.0.0-20210101000000-abc123def456`` and binaries built from a local
working tree report ``(devel)``. Neither sorts correctly as plain semver,
so comparison works on integer keys derived from the string.
"""

from __future__ import annotations

import re

DEVEL_VERSION = "(devel)"

PSEUDO_BASE = "0.0.0"

# ASCII only; str.isdigit also accepts characters int() rejects
_DIGITS = re.compile(r"[0-9]+")


def is_devel(version: str) -> bool:
    """True for the ``(devel)`` sentinel reported by working-tree builds."""
    return version == DEVEL_VERSION


def _strip(version: str) -> str:
    version = version.strip()
    if version.startswith("v"):
        version = version[1:]
    # build metadata never participates in ordering
    return version.split("+", 1)[0]


def is_pseudo_version(version: str) -> bool:
    """
    Check for a ``v0.0.0-<timestamp>-<hash>`` pseudo-version.

    Args:
        version: Version string

    Returns:
        True if the version has a zero base and a numeric timestamp
    """
    parts = _strip(version).split("-")
    return len(parts) > 1 and parts[0] == PSEUDO_BASE and _DIGITS.fullmatch(parts[1]) is not None


def _component(value: str) -> int:
    return int(value) if _DIGITS.fullmatch(value) else 0


def version_key(version: str) -> tuple[int, ...]:
    """
    Numeric key for a non-devel version string.

    ``v1.2.3-rc.1`` becomes ``(1, 2, 3)``; a pseudo-version becomes
    ``(0, 0, 0, <timestamp>)``. Components that are not plain digits count
    as 0.
    """
    parts = _strip(version).split("-")
    if is_pseudo_version(version):
        return (0, 0, 0, int(parts[1]))
    return tuple(_component(c) for c in parts[0].split("."))


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two version strings.

    ``(devel)`` sorts below every other version. Missing trailing
    components are treated as 0, so ``v1.2`` equals ``v1.2.0``.

    Args:
        v1: First version
        v2: Second version

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    if is_devel(v1) or is_devel(v2):
        if is_devel(v1) and is_devel(v2):
            return 0
        return -1 if is_devel(v1) else 1

    key1 = version_key(v1)
    key2 = version_key(v2)
    width = max(len(key1), len(key2))
    key1 = key1 + (0,) * (width - len(key1))
    key2 = key2 + (0,) * (width - len(key2))

    if key1 < key2:
        return -1
    elif key1 > key2:
        return 1
    else:
        return 0


def versions_equal(v1: str, v2: str) -> bool:
    """True when two versions are equal under :func:`compare_versions`."""
    return compare_versions(v1, v2) == 0
