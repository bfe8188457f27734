"""Path containment for files sigpatch is allowed to read back or delete."""

from __future__ import annotations

from pathlib import Path


def is_contained(path: str | Path, root: str | Path) -> bool:
    """True if ``path`` resolves to a strict descendant of ``root``."""
    resolved = Path(path).resolve()
    resolved_root = Path(root).resolve()
    if resolved == resolved_root:
        return False
    return resolved_root in resolved.parents
