"""Patch engine — literal, first-occurrence byte substitution.

The engine is best-effort per rule: ``apply_all`` records failures and keeps
going. All-or-nothing policy belongs to the orchestrator.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from sigpatch.errors import PatternNotFoundError
from sigpatch.models.signature import Rule


@dataclass
class MultiPatchResult:
    """Result of applying an ordered rule list."""

    content: bytes
    applied_count: int = 0
    failed_rules: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed_rules


class PatchEngine:
    """Applies rules to byte content and files."""

    def apply(self, content: bytes, rule: Rule) -> bytes:
        """Replace the first occurrence of ``rule.search`` with ``rule.replace``.

        Raises:
            PatternNotFoundError: if the search bytes are absent.
        """
        idx = content.find(rule.search)
        if idx == -1:
            raise PatternNotFoundError(rule.id)
        return content[:idx] + rule.replace + content[idx + len(rule.search):]

    def apply_all(self, content: bytes, rules: Sequence[Rule]) -> MultiPatchResult:
        """Apply rules in order, each over the output of the previous one."""
        result = MultiPatchResult(content=content)
        for rule in rules:
            try:
                result.content = self.apply(result.content, rule)
            except PatternNotFoundError:
                result.failed_rules.append(rule.id)
                continue
            result.applied_count += 1
        return result

    def is_fully_applied(self, content: bytes, rules: Sequence[Rule]) -> bool:
        """True iff every replace text is present and no search text remains.

        Checking only the replace texts would report a partial patch as
        complete when some rules landed and their siblings did not.
        """
        all_replaced = all(rule.replace in content for rule in rules)
        no_search_left = all(rule.search not in content for rule in rules)
        return all_replaced and no_search_left

    def patch_file(self, path: str | Path, rules: Sequence[Rule]) -> MultiPatchResult:
        """Apply rules to a file in place, keeping its permission bits.

        The file is rewritten only when at least one rule applied.
        """
        path = Path(path)
        content = path.read_bytes()
        mode = stat.S_IMODE(os.stat(path).st_mode)

        result = self.apply_all(content, rules)

        if result.applied_count > 0:
            path.write_bytes(result.content)
            os.chmod(path, mode)

        return result
