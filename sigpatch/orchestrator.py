"""Orchestrator — install/uninstall transactions over resolver, engine, and backup.

States are implicit:
- Clean: no manifest
- Patched: manifest present
- Inconsistent: manifest and runtime bytes disagree; only reachable through a
  partial failure, and detected by the doctor

Install validates everything it can before the backup is taken, so a doomed
install never leaves backup artifacts behind. Results are data: neither
``install`` nor ``uninstall`` raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from sigpatch.backup.store import BackupStore
from sigpatch.errors import ErrorCode, SigpatchError
from sigpatch.finder.target import is_native_executable
from sigpatch.patcher.engine import PatchEngine
from sigpatch.patcher.hooks import HookCatalog
from sigpatch.signatures.resolver import VersionResolver

DOCTOR_HINT = "Run 'sigpatch doctor' to diagnose and repair the current state."


@dataclass
class InstallResult:
    success: bool
    code: ErrorCode | None = None
    error: str = ""
    hint: str = ""
    patched_count: int = 0
    failed_rules: list[str] = field(default_factory=list)
    version: str | None = None


@dataclass
class UninstallResult:
    success: bool
    code: ErrorCode | None = None
    error: str = ""
    hint: str = ""


class Orchestrator:
    """Composes signature resolution, patching, and backup into transactions."""

    def __init__(
        self,
        signatures_dir: str | Path,
        backup_dir: str | Path,
        hooks_dir: str | Path | None = None,
    ):
        self.resolver = VersionResolver(signatures_dir)
        self.backup = BackupStore(backup_dir)
        self.engine = PatchEngine()
        self.hooks = HookCatalog.load(hooks_dir if hooks_dir is not None else signatures_dir)

    def install(self, target_path: str | Path, version: str | None) -> InstallResult:
        """Patch the target in place.

        Order matters: every refusal happens before the backup is created.
        """
        if self.backup.is_patched():
            return _install_failure(
                ErrorCode.ALREADY_PATCHED,
                "Target is already patched.",
                "Run 'sigpatch uninstall' first to re-patch.",
            )

        signature = self.resolver.resolve(version)
        if signature is None:
            supported = ", ".join(self.resolver.supported_ranges()) or "none"
            return _install_failure(
                ErrorCode.NO_MATCHING_SIGNATURE,
                f"No matching signature found for version {version or 'unknown'}.",
                f"Supported versions: {supported}",
            )

        try:
            content = Path(target_path).read_bytes()
        except OSError as e:
            return _install_failure(
                ErrorCode.TARGET_IO_FAILURE,
                f"Could not read target {target_path}: {e}",
                DOCTOR_HINT,
            )

        if is_native_executable(content[:4]):
            return _install_failure(
                ErrorCode.NATIVE_EXECUTABLE_BLOCKED,
                "Target is a compiled executable. Patching machine code is refused.",
                "Point sigpatch at a script build of the target instead.",
            )

        if self.engine.is_fully_applied(content, signature.rules):
            return _install_failure(
                ErrorCode.ALREADY_PATCHED,
                "Target content is already patched (no backup manifest on record).",
                DOCTOR_HINT,
            )

        validation = self.resolver.validate_patterns(signature, content)
        if not validation.valid:
            return _install_failure(
                ErrorCode.MISSING_PATTERNS,
                f"Pattern validation failed. Missing patterns: {', '.join(validation.missing_patterns)}",
                f"Signature {signature.version_range} does not fit this build. {DOCTOR_HINT}",
            )

        hook_rule = self.hooks.select(content)
        if hook_rule is None:
            return _install_failure(
                ErrorCode.NO_COMPATIBLE_HOOK_VARIANT,
                "No compatible hook variant matches this build.",
                DOCTOR_HINT,
            )

        try:
            self.backup.create_backup(target_path, version)
        except SigpatchError as e:
            return _install_failure(e.code, str(e), DOCTOR_HINT)

        rules = [*signature.rules, hook_rule]
        try:
            result = self.engine.patch_file(target_path, rules)
        except OSError as e:
            self._rollback()
            return _install_failure(
                ErrorCode.TARGET_IO_FAILURE,
                f"Could not rewrite target: {e}",
                DOCTOR_HINT,
            )

        if result.applied_count == 0:
            self._rollback()
            return _install_failure(
                ErrorCode.PATTERN_NOT_FOUND_DURING_APPLY,
                "No patches could be applied to the target file.",
                DOCTOR_HINT,
            )

        return InstallResult(
            success=True,
            patched_count=result.applied_count,
            failed_rules=result.failed_rules,
            version=version,
        )

    def uninstall(self) -> UninstallResult:
        """Restore the original target from the backup and clear state."""
        if not self.backup.is_patched():
            return UninstallResult(
                success=False,
                code=ErrorCode.NO_BACKUP_FOUND,
                error="No backup found. Was the patch ever applied?",
                hint=DOCTOR_HINT,
            )

        try:
            self.backup.restore()
        except SigpatchError as e:
            return UninstallResult(success=False, code=e.code, error=str(e), hint=DOCTOR_HINT)
        except OSError as e:
            return UninstallResult(
                success=False,
                code=ErrorCode.RESTORE_IO_FAILURE,
                error=f"Restore failed: {e}",
                hint=DOCTOR_HINT,
            )
        return UninstallResult(success=True)

    def is_patched(self) -> bool:
        return self.backup.is_patched()

    def supported_ranges(self) -> list[str]:
        return self.resolver.supported_ranges()

    def _rollback(self) -> None:
        # A failed restore leaves the Inconsistent state for the doctor to find.
        try:
            self.backup.restore()
        except (SigpatchError, OSError):
            pass


def _install_failure(code: ErrorCode, error: str, hint: str = "") -> InstallResult:
    return InstallResult(success=False, code=code, error=error, hint=hint)
