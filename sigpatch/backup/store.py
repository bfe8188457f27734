"""Backup store — one blob plus one manifest, created and destroyed together.

The slot is fixed rather than content-addressed, so creating a backup always
overwrites the previous one. The manifest is written only after the blob copy
succeeds. ``is_patched()`` means "a manifest exists" and nothing more; it does
not look at the target's bytes.
"""

from __future__ import annotations

import hashlib
import json
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from sigpatch.errors import BackupCreateError, BackupMissingError, NoBackupError
from sigpatch.utils.paths import is_contained

MANIFEST_NAME = "manifest.json"
BACKUP_NAME = "target.backup"


@dataclass
class BackupManifest:
    """Durable record of the outstanding pre-patch snapshot."""

    original_path: str
    backup_path: str
    original_hash: str  # sha256 hex of the pre-patch content
    timestamp: str  # ISO 8601
    tool_version: str | None = None

    def to_dict(self) -> dict:
        data = {
            "originalPath": self.original_path,
            "backupPath": self.backup_path,
            "originalHash": self.original_hash,
            "timestamp": self.timestamp,
        }
        if self.tool_version is not None:
            data["toolVersion"] = self.tool_version
        return data

    @classmethod
    def from_dict(cls, data: dict) -> BackupManifest:
        """Raises KeyError for missing fields and ValueError for non-string ones."""
        for key in ("originalPath", "backupPath", "originalHash"):
            if not isinstance(data[key], str):
                raise ValueError(f"manifest field {key} must be a string")
        return cls(
            original_path=data["originalPath"],
            backup_path=data["backupPath"],
            original_hash=data["originalHash"],
            timestamp=data.get("timestamp", ""),
            tool_version=data.get("toolVersion"),
        )


def sha256_hex(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class BackupStore:
    """Manages the backup slot inside ``backup_dir``."""

    def __init__(self, backup_dir: str | Path):
        self.backup_dir = Path(backup_dir)
        self.manifest_path = self.backup_dir / MANIFEST_NAME
        self.blob_path = self.backup_dir / BACKUP_NAME

    def create_backup(self, target_path: str | Path, tool_version: str | None = None) -> BackupManifest:
        """Snapshot the target into the fixed slot and record a manifest.

        Raises:
            BackupCreateError: if reading the target or writing either
                artifact fails.
        """
        target_path = Path(target_path)
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            content = target_path.read_bytes()
            self.blob_path.write_bytes(content)
        except OSError as e:
            raise BackupCreateError(f"Could not back up {target_path}: {e}") from e

        manifest = BackupManifest(
            original_path=str(target_path.resolve()),
            backup_path=str(self.blob_path),
            original_hash=sha256_hex(content),
            timestamp=datetime.now(timezone.utc).isoformat(),
            tool_version=tool_version,
        )

        try:
            with open(self.manifest_path, "w", encoding="utf-8") as f:
                json.dump(manifest.to_dict(), f, indent=2)
        except OSError as e:
            raise BackupCreateError(f"Could not write backup manifest: {e}") from e

        return manifest

    def restore(self) -> None:
        """Copy the blob back over the original, then delete blob and manifest.

        Destructive: there is no redo after a restore.

        Raises:
            NoBackupError: no manifest.
            BackupMissingError: the manifest points at a blob that is gone, or
                at a file outside the backup directory.
            OSError: any hard I/O failure while copying or deleting.
        """
        manifest = self.get_manifest()
        if manifest is None:
            raise NoBackupError("No backup manifest found. Was the patch ever applied?")

        backup_path = Path(manifest.backup_path)
        if not is_contained(backup_path, self.backup_dir) or not backup_path.is_file():
            raise BackupMissingError(manifest.backup_path)

        # copyfile keeps the destination's mode when it already exists
        shutil.copyfile(backup_path, manifest.original_path)
        backup_path.unlink()
        self.manifest_path.unlink()

    def verify_integrity(self) -> bool:
        """Recompute the blob hash and compare it to the manifest.

        Returns False for a missing manifest, a missing or out-of-place blob,
        or a mismatched hash alike; check existence first if the distinction
        matters.
        """
        manifest = self.get_manifest()
        if manifest is None:
            return False

        backup_path = Path(manifest.backup_path)
        if not is_contained(backup_path, self.backup_dir):
            return False
        try:
            content = backup_path.read_bytes()
        except OSError:
            return False
        return sha256_hex(content) == manifest.original_hash

    def is_patched(self) -> bool:
        return self.get_manifest() is not None

    def get_manifest(self) -> BackupManifest | None:
        if not self.manifest_path.is_file():
            return None
        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                return BackupManifest.from_dict(json.load(f))
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError):
            return None

    def known_artifacts(self) -> list[Path]:
        """Paths this store ever writes: the manifest and the fixed blob slot."""
        return [self.manifest_path, self.blob_path]
