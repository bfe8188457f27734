"""Error taxonomy for install/uninstall transactions.

Low-level components (patch engine, backup store) raise ``SigpatchError``
subclasses. The orchestrator catches them and turns them into result
objects carrying an ``ErrorCode`` plus a remediation hint, so callers never
see an exception cross that boundary.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    ALREADY_PATCHED = "already_patched"
    NO_MATCHING_SIGNATURE = "no_matching_signature"
    NATIVE_EXECUTABLE_BLOCKED = "native_executable_blocked"
    MISSING_PATTERNS = "missing_patterns"
    NO_COMPATIBLE_HOOK_VARIANT = "no_compatible_hook_variant"
    PATTERN_NOT_FOUND_DURING_APPLY = "pattern_not_found_during_apply"
    BACKUP_CREATE_FAILURE = "backup_create_failure"
    NO_BACKUP_FOUND = "no_backup_found"
    BACKUP_MISSING_ON_RESTORE = "backup_missing_on_restore"
    RESTORE_IO_FAILURE = "restore_io_failure"
    TARGET_IO_FAILURE = "target_io_failure"


class SigpatchError(Exception):
    """Base class for faults raised below the orchestrator."""

    code: ErrorCode


class PatternNotFoundError(SigpatchError):
    code = ErrorCode.PATTERN_NOT_FOUND_DURING_APPLY

    def __init__(self, rule_id: str):
        super().__init__(f'Pattern "{rule_id}" not found in target')
        self.rule_id = rule_id


class BackupCreateError(SigpatchError):
    code = ErrorCode.BACKUP_CREATE_FAILURE


class NoBackupError(SigpatchError):
    code = ErrorCode.NO_BACKUP_FOUND


class BackupMissingError(SigpatchError):
    code = ErrorCode.BACKUP_MISSING_ON_RESTORE

    def __init__(self, backup_path: str):
        super().__init__(f"Backup file missing: {backup_path}")
        self.backup_path = backup_path
