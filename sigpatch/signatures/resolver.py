"""Version resolver — select the signature that applies to a runtime version.

Selection rules:
1. Only non-wildcard signatures whose inclusive [min, max] range contains the
   version are candidates. Malformed version strings never match.
2. Among candidates the narrowest span wins; equal spans favor the higher
   minimum bound.
3. With no candidate (or no version at all) the wildcard signature is used if
   one exists.
"""

from __future__ import annotations

from pathlib import Path

from sigpatch.models.signature import Signature, ValidationResult
from sigpatch.signatures.store import SignatureStore
from sigpatch.signatures.versions import version_in_range, version_ordinal


def range_span(signature: Signature) -> int:
    return version_ordinal(signature.max_version) - version_ordinal(signature.min_version)


class VersionResolver:
    """Resolves signatures from a signature store."""

    def __init__(self, store: SignatureStore | str | Path):
        if not isinstance(store, SignatureStore):
            store = SignatureStore(store)
        self.store = store

    @property
    def signatures(self) -> list[Signature]:
        return self.store.signatures

    def resolve(self, version: str | None) -> Signature | None:
        """Return the best-matching signature for a version, or None."""
        signatures = self.store.signatures

        if version is not None:
            candidates = [
                s
                for s in signatures
                if not s.is_wildcard and version_in_range(version, s.min_version, s.max_version)
            ]
            if candidates:
                candidates.sort(key=lambda s: (range_span(s), -version_ordinal(s.min_version)))
                return candidates[0]

        return next((s for s in signatures if s.is_wildcard), None)

    def supported_ranges(self) -> list[str]:
        return [s.version_range for s in self.store.signatures if not s.is_wildcard]

    def validate_patterns(self, signature: Signature, content: bytes) -> ValidationResult:
        """Check that every declared search pattern is present in the content."""
        missing = [rule.id for rule in signature.rules if rule.search not in content]
        return ValidationResult(valid=not missing, missing_patterns=missing)
