"""Strict MAJOR.MINOR.PATCH parsing and range arithmetic."""

from __future__ import annotations

import re

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")

# Ordinal weights used to measure the width of a version range. Components
# stay below 10**9, so a patch number never reaches into the minor column.
_ORDINAL_WEIGHTS = (10**18, 10**9, 1)


def parse_version(version: str | None) -> tuple[int, int, int] | None:
    """Parse a strict MAJOR.MINOR.PATCH string. Anything else yields None."""
    if not isinstance(version, str):
        return None
    match = _VERSION_RE.match(version)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def version_in_range(version: str, min_version: str, max_version: str) -> bool:
    """Inclusive, componentwise range test. Malformed input never matches."""
    v = parse_version(version)
    lo = parse_version(min_version)
    hi = parse_version(max_version)
    if v is None or lo is None or hi is None:
        return False
    return lo <= v <= hi


def version_ordinal(version: str) -> int:
    parsed = parse_version(version)
    if parsed is None:
        return 0
    return sum(part * weight for part, weight in zip(parsed, _ORDINAL_WEIGHTS))
