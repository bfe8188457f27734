"""Signature store — loads declarative rule bundles from a directory.

One record per file, JSON or YAML. Malformed records are skipped and noted
in ``skipped``; they never abort loading.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import yaml

from sigpatch.models.signature import Rule, Signature
from sigpatch.signatures.schema import HOOK_CATALOG_FILES
from sigpatch.signatures.schema_validator import validate_record
from sigpatch.signatures.versions import parse_version

RECORD_SUFFIXES = {".json", ".yaml", ".yml"}


@dataclass
class SkippedRecord:
    """A file in the signature directory that could not be loaded."""

    file_name: str
    reason: str


def read_record(path: Path):
    """Parse a JSON or YAML record file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


class SignatureStore:
    """Immutable collection of signatures loaded at construction."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.skipped: list[SkippedRecord] = []
        self._signatures: list[Signature] = self._load()

    @property
    def signatures(self) -> list[Signature]:
        return list(self._signatures)

    def _load(self) -> list[Signature]:
        if not self.directory.is_dir():
            return []

        loaded: list[Signature] = []
        for path in sorted(self.directory.iterdir()):
            if not path.is_file() or path.suffix not in RECORD_SUFFIXES:
                continue
            if path.name in HOOK_CATALOG_FILES:
                continue

            try:
                data = read_record(path)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
                self.skipped.append(SkippedRecord(path.name, f"unreadable: {e}"))
                continue

            issues = validate_record(data)
            if issues:
                self.skipped.append(SkippedRecord(path.name, "; ".join(issues)))
                continue

            signature = _record_to_signature(data, path.name)
            if not signature.is_wildcard and not _bounds_valid(signature):
                self.skipped.append(
                    SkippedRecord(path.name, "minVersion/maxVersion must be MAJOR.MINOR.PATCH")
                )
                continue

            loaded.append(signature)
        return loaded


def _record_to_signature(data: dict, file_name: str) -> Signature:
    rules = tuple(
        Rule.from_text(
            id=p["id"],
            search=p["search"],
            replace=p["replace"],
            description=p.get("description", ""),
        )
        for p in data["patches"]
    )
    return Signature(
        version_range=data["versionRange"],
        min_version=data["minVersion"],
        max_version=data["maxVersion"],
        target_type=data["targetType"],
        rules=rules,
        source_file=file_name,
    )


def _bounds_valid(signature: Signature) -> bool:
    lo = parse_version(signature.min_version)
    hi = parse_version(signature.max_version)
    return lo is not None and hi is not None and lo <= hi
