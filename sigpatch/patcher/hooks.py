"""Hook variants — alternative literal shapes of one injection point.

Different builds of the same target render the injection point as different
byte sequences. The catalog is an ordered list of (matcher, rule) pairs; the
first entry whose matcher occurs in the content wins.

Catalog file (``hooks.yaml`` / ``hooks.yml`` / ``hooks.json``)::

    hooks:
      - id: loop-exit-v2
        description: Loop exit, minified with arrow functions
        match: "done:!0}"          # optional, defaults to search
        search: "return{done:!0}"
        replace: "return breaker.check()||{done:!0}"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import yaml

from sigpatch.models.signature import Rule
from sigpatch.signatures.schema import HOOK_CATALOG_FILES, HOOK_CATALOG_SCHEMA
from sigpatch.signatures.schema_validator import validate_record
from sigpatch.signatures.store import read_record


@dataclass(frozen=True)
class HookVariant:
    matcher: bytes
    rule: Rule


class HookCatalog:
    """Prioritized first-match list of hook variants."""

    def __init__(self, variants: Iterable[HookVariant] = ()):
        self.variants: list[HookVariant] = list(variants)

    def __len__(self) -> int:
        return len(self.variants)

    def select(self, content: bytes) -> Rule | None:
        """Return the rule of the first variant whose matcher is present."""
        for variant in self.variants:
            if variant.matcher in content:
                return variant.rule
        return None

    def is_applied(self, content: bytes) -> bool:
        """True if any variant's replacement text is already in the content."""
        return any(v.rule.replace and v.rule.replace in content for v in self.variants)

    @classmethod
    def load(cls, directory: str | Path | None) -> HookCatalog:
        """Load the catalog file from a directory. Missing file → empty catalog.

        Malformed entries are skipped individually; an unreadable file yields
        an empty catalog.
        """
        if directory is None:
            return cls()
        directory = Path(directory)

        for name in HOOK_CATALOG_FILES:
            path = directory / name
            if path.is_file():
                break
        else:
            return cls()

        try:
            data = read_record(path)
        except (OSError, ValueError, yaml.YAMLError):
            return cls()
        if not isinstance(data, dict) or not isinstance(data.get("hooks"), list):
            return cls()

        item_schema = HOOK_CATALOG_SCHEMA["properties"]["hooks"]["items"]
        variants = []
        for entry in data["hooks"]:
            if validate_record(entry, item_schema):
                continue
            rule = Rule.from_text(
                id=entry["id"],
                search=entry["search"],
                replace=entry["replace"],
                description=entry.get("description", ""),
            )
            matcher = entry.get("match", entry["search"]).encode("utf-8")
            variants.append(HookVariant(matcher=matcher, rule=rule))
        return cls(variants)
