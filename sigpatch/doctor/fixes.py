"""Doctor fixes — remediation actions derived from a report.

Priority order: clean up an untrustworthy backup, else restore from a good
backup; independently, reinstall when the runtime is recoverable.
"""

from __future__ import annotations

from pathlib import Path

from sigpatch.backup.store import BackupStore
from sigpatch.doctor.models import CheckStatus, DoctorOptions, DoctorReport, FixAction, FixOutcome
from sigpatch.orchestrator import Orchestrator
from sigpatch.utils.paths import is_contained


def safe_unlink(path: str | Path, root: str | Path) -> bool:
    """Delete ``path`` only if it lives under ``root``. Returns True on removal."""
    if not is_contained(path, root):
        return False
    resolved = Path(path).resolve()
    if not resolved.is_file():
        return False
    resolved.unlink()
    return True


def should_attempt_reinstall(report: DoctorReport) -> bool:
    snapshot = report.snapshot
    return (
        snapshot.can_install
        and not snapshot.runtime_fully_patched
        and report.status_of("backup-integrity") == CheckStatus.PASS
        and report.status_of("patch-state-consistency") == CheckStatus.FAIL
    )


def create_fix_actions(options: DoctorOptions, report: DoctorReport) -> list[FixAction]:
    snapshot = report.snapshot
    orchestrator = Orchestrator(options.signatures_dir, options.backup_dir, options.hooks_dir)
    actions: list[FixAction] = []

    if snapshot.backup_manifest_present and not snapshot.backup_integrity:
        actions.append(FixAction(
            id="cleanup-backup-state",
            title="Remove corrupted backup manifest and artifacts",
            run=lambda: _cleanup_backup_state(options.backup_dir),
        ))
    elif snapshot.backup_manifest_present and not snapshot.runtime_fully_patched:
        actions.append(FixAction(
            id="restore-from-backup",
            title="Restore original target from backup (uninstall)",
            run=lambda: _restore(orchestrator),
        ))

    if should_attempt_reinstall(report):
        actions.append(FixAction(
            id="reinstall-patch",
            title="Apply patch on the resolved script target",
            run=lambda: _reinstall(orchestrator, report),
        ))

    return actions


def _cleanup_backup_state(backup_dir: Path) -> FixOutcome:
    store = BackupStore(backup_dir)
    candidates = list(store.known_artifacts())
    manifest = store.get_manifest()
    if manifest is not None and manifest.backup_path:
        candidates.append(Path(manifest.backup_path))

    removed: list[str] = []
    refused: list[str] = []
    seen: set[Path] = set()
    for path in candidates:
        key = path.resolve()
        if key in seen:
            continue
        seen.add(key)
        if not is_contained(path, backup_dir):
            refused.append(str(path))
        elif safe_unlink(path, backup_dir):
            removed.append(str(path))

    message = f"Removed {len(removed)} corrupted backup artifact(s)."
    if refused:
        message += f" Refused {len(refused)} path(s) outside {backup_dir}."
    return FixOutcome(True, message, {"removed": removed, "refused": refused})


def _restore(orchestrator: Orchestrator) -> FixOutcome:
    result = orchestrator.uninstall()
    if not result.success:
        return FixOutcome(False, f"Restore failed: {result.error or 'unknown error'}")
    return FixOutcome(True, "Original target restored from backup.")


def _reinstall(orchestrator: Orchestrator, report: DoctorReport) -> FixOutcome:
    target = report.snapshot.target
    if target is None or not target.is_script:
        return FixOutcome(False, "Install skipped: no script target is resolved.")

    if orchestrator.is_patched():
        restored = orchestrator.uninstall()
        if not restored.success:
            return FixOutcome(False, f"Pre-install restore failed: {restored.error or 'unknown error'}")

    installed = orchestrator.install(target.path, target.version)
    if not installed.success:
        return FixOutcome(False, f"Install failed: {installed.error or 'unknown error'}")
    return FixOutcome(True, f"Patch applied successfully ({installed.patched_count} rules).")
