"""Signature data models — rules, versioned bundles, and validation results.

A signature is a declarative bundle of literal find/replace rules tied to a
version range and a target type. Search and replace texts are stored as
UTF-8 bytes because matching is byte-exact; the target is never parsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field


WILDCARD_RANGE = "generic"


class TargetType:
    BINARY = "binary"  # Compiled executable, never patched
    SCRIPT = "script"  # Interpreted source bundle, patch-safe


@dataclass(frozen=True)
class Rule:
    """One literal find/replace pair."""

    id: str
    description: str
    search: bytes
    replace: bytes

    @classmethod
    def from_text(cls, id: str, search: str, replace: str, description: str = "") -> Rule:
        return cls(
            id=id,
            description=description,
            search=search.encode("utf-8"),
            replace=replace.encode("utf-8"),
        )


@dataclass(frozen=True)
class Signature:
    """A versioned bundle of rules."""

    version_range: str
    min_version: str
    max_version: str
    target_type: str
    rules: tuple[Rule, ...] = ()
    source_file: str = ""

    @property
    def is_wildcard(self) -> bool:
        return self.version_range == WILDCARD_RANGE


@dataclass
class ValidationResult:
    """Outcome of checking that every search pattern exists in the content."""

    valid: bool
    missing_patterns: list[str] = field(default_factory=list)
