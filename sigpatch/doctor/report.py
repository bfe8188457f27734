"""Doctor report — probe live state once, then judge it with pure checks.

Collection is fault-tolerant: a probe that raises is recorded in
``snapshot.probe_errors`` and its value stays unknown (None / False); the
remaining probes still run. Checks never touch the filesystem; they read the
snapshot only, so the same snapshot always yields the same report.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Optional

from sigpatch.backup.store import BackupStore
from sigpatch.doctor.models import (
    CheckResult,
    CheckStatus,
    DoctorOptions,
    DoctorReport,
    DoctorSnapshot,
    DoctorSummary,
)
from sigpatch.finder.target import default_probes, detect_target_type, find_target
from sigpatch.models.signature import TargetType
from sigpatch.patcher.engine import PatchEngine
from sigpatch.patcher.hooks import HookCatalog
from sigpatch.signatures.resolver import VersionResolver

MAX_SUGGESTED_COMMANDS = 3

# Toolchain probes shown as environment hints: label -> argv.
TOOLCHAIN_PROBES = {
    "npm root -g": ["npm", "root", "-g"],
    "pnpm root -g": ["pnpm", "root", "-g"],
    "yarn global dir": ["yarn", "global", "dir"],
}

CMD_DOCTOR = "sigpatch doctor"
CMD_UNINSTALL = "sigpatch uninstall"
CMD_SIGNATURES = "sigpatch signatures"
CMD_DOCTOR_WITH_TARGET = "sigpatch doctor --target PATH"


def default_run_command(argv: list[str]) -> str | None:
    """Run a probe command; stripped stdout, or None on any failure."""
    try:
        proc = subprocess.run(argv, capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if proc.returncode != 0:
        return None
    value = proc.stdout.strip()
    return value or None


def collect_report(options: DoctorOptions) -> DoctorReport:
    """Build a snapshot from live probes and run every check against it."""
    snapshot = DoctorSnapshot()
    errors = snapshot.probe_errors

    resolver = VersionResolver(options.signatures_dir)
    backup = BackupStore(options.backup_dir)
    engine = PatchEngine()
    hooks = HookCatalog.load(
        options.hooks_dir if options.hooks_dir is not None else options.signatures_dir
    )
    run_command = options.run_command or default_run_command
    finder = options.find_target or (
        lambda: find_target(default_probes(executable=options.executable))
    )

    snapshot.target = _probe("target", finder, errors)

    if options.executable:
        snapshot.which_path = _probe(
            "which", lambda: run_command(["which", options.executable]), errors
        )
        if snapshot.which_path:
            snapshot.which_target_type = _probe(
                "which-type", lambda: detect_target_type(snapshot.which_path), errors
            )
    for label, argv in TOOLCHAIN_PROBES.items():
        snapshot.toolchain[label] = _probe(label, lambda argv=argv: run_command(argv), errors)

    snapshot.backup_manifest_present = backup.manifest_path.is_file()
    if snapshot.backup_manifest_present:
        snapshot.backup_integrity = bool(_probe("backup", backup.verify_integrity, errors))

    target = snapshot.target
    content: bytes | None = None
    if target is not None and target.is_script and Path(target.path).is_file():
        content = _probe("read", Path(target.path).read_bytes, errors)

    if target is not None:
        snapshot.signature = resolver.resolve(target.version)
    signature = snapshot.signature
    if signature is not None and content is not None:
        snapshot.validation = resolver.validate_patterns(signature, content)

    if content:
        snapshot.runtime_hook_patched = hooks.is_applied(content)
        snapshot.hook_candidate_exists = hooks.select(content) is not None
        if signature is not None:
            snapshot.runtime_rules_patched = engine.is_fully_applied(content, signature.rules)
    snapshot.runtime_fully_patched = (
        snapshot.runtime_rules_patched and snapshot.runtime_hook_patched
    )

    validation_ok = snapshot.validation is not None and snapshot.validation.valid
    snapshot.can_install = bool(
        target is not None
        and target.is_script
        and signature is not None
        and content
        and (validation_ok or snapshot.runtime_rules_patched)
        and (snapshot.runtime_hook_patched or snapshot.hook_candidate_exists)
    )

    checks = build_checks(snapshot)
    return DoctorReport(
        checks=checks,
        summary=DoctorSummary.from_checks(checks),
        suggested_commands=suggest_commands(checks, snapshot, options.executable),
        snapshot=snapshot,
    )


def _probe(name: str, fn: Callable[[], Optional[object]], errors: list[str]):
    try:
        return fn()
    except Exception as e:
        errors.append(f"{name}: {e}")
        return None


# --- Checks ---


def build_checks(snapshot: DoctorSnapshot) -> list[CheckResult]:
    return [check(snapshot) for check in CHECKS]


def check_target_discovery(s: DoctorSnapshot) -> CheckResult:
    title = "Target discovery"
    if s.target is None:
        return CheckResult("target-discovery", title, CheckStatus.FAIL,
                           "Unable to locate a patch target.")
    return CheckResult("target-discovery", title, CheckStatus.PASS,
                       f"Resolved target: {s.target.path}")


def check_target_type(s: DoctorSnapshot) -> CheckResult:
    title = "Target type safety"
    if s.target is None:
        return CheckResult("target-type", title, CheckStatus.FAIL,
                           "Target type could not be determined because target discovery failed.")
    if s.target.is_script:
        return CheckResult("target-type", title, CheckStatus.PASS,
                           "Target is a script build and is patch-safe.")
    return CheckResult("target-type", title, CheckStatus.FAIL,
                       "Target is a compiled executable. Patching it is blocked.")


def check_version_visibility(s: DoctorSnapshot) -> CheckResult:
    title = "Version visibility"
    if s.target is None:
        return CheckResult("version-visibility", title, CheckStatus.FAIL,
                           "Target version is unavailable because target discovery failed.")
    if s.target.version:
        return CheckResult("version-visibility", title, CheckStatus.PASS,
                           f"Resolved target version: {s.target.version}")
    return CheckResult("version-visibility", title, CheckStatus.WARN,
                       "Target found but its version is unknown.")


def check_signature_match(s: DoctorSnapshot) -> CheckResult:
    title = "Signature match"
    if s.target is None:
        return CheckResult("signature-match", title, CheckStatus.FAIL,
                           "Cannot match a signature without target metadata.")
    if s.signature is not None:
        return CheckResult("signature-match", title, CheckStatus.PASS,
                           f"Matched signature range: {s.signature.version_range}")
    return CheckResult("signature-match", title, CheckStatus.FAIL,
                       f"No compatible signature for version {s.target.version or 'unknown'}.")


def check_pattern_validation(s: DoctorSnapshot) -> CheckResult:
    title = "Patch pattern validation"
    if s.target is None or not s.target.is_script or s.signature is None:
        return CheckResult("pattern-validation", title, CheckStatus.FAIL,
                           "Cannot validate patch patterns for the current target state.")
    if s.runtime_rules_patched:
        return CheckResult("pattern-validation", title, CheckStatus.PASS,
                           "Signature replacements are already present.")
    if s.validation is not None and s.validation.valid:
        return CheckResult("pattern-validation", title, CheckStatus.PASS,
                           "All required search patterns are present.")
    missing = ", ".join(s.validation.missing_patterns) if s.validation else "unknown"
    return CheckResult("pattern-validation", title, CheckStatus.FAIL,
                       f"Missing patterns: {missing}.")


def check_hook_compatibility(s: DoctorSnapshot) -> CheckResult:
    title = "Hook compatibility precheck"
    if s.target is None or not s.target.is_script:
        return CheckResult("hook-compatibility", title, CheckStatus.FAIL,
                           "Cannot validate hook compatibility for the current target state.")
    if s.runtime_hook_patched:
        return CheckResult("hook-compatibility", title, CheckStatus.PASS,
                           "Hook replacement already present.")
    if s.hook_candidate_exists:
        return CheckResult("hook-compatibility", title, CheckStatus.PASS,
                           "A compatible hook variant was found.")
    return CheckResult("hook-compatibility", title, CheckStatus.FAIL,
                       "No hook variant matches the current build shape.")


def check_backup_integrity(s: DoctorSnapshot) -> CheckResult:
    title = "Backup manifest integrity"
    if not s.backup_manifest_present:
        return CheckResult("backup-integrity", title, CheckStatus.PASS,
                           "No backup manifest present.")
    if s.backup_integrity:
        return CheckResult("backup-integrity", title, CheckStatus.PASS,
                           "Backup manifest and blob hash are valid.")
    return CheckResult("backup-integrity", title, CheckStatus.FAIL,
                       "Backup manifest exists but the blob is missing or its hash does not match.",
                       fixable=True)


def check_patch_state(s: DoctorSnapshot) -> CheckResult:
    """Reconcile the backup record with the bytes actually on disk.

    manifest  integrity  runtime      verdict
    --------  ---------  -----------  ---------------------------
    yes       valid      patched      pass
    yes       any        not patched  fail, fixable
    yes       invalid    patched      fail, fixable (backup unusable)
    no        -          clean        pass
    no        -          patched      warn
    no        -          partial      fail
    """
    title = "Patched state consistency"
    cid = "patch-state-consistency"
    patched = s.runtime_fully_patched
    if s.backup_manifest_present:
        if patched and s.backup_integrity:
            return CheckResult(cid, title, CheckStatus.PASS,
                               "Backup state and runtime markers are consistent.")
        if not patched:
            return CheckResult(cid, title, CheckStatus.FAIL,
                               "Backup says patched but runtime markers are missing or partial. "
                               "Restore and reinstall is recommended.",
                               fixable=True)
        return CheckResult(cid, title, CheckStatus.FAIL,
                           "Runtime is patched but its backup cannot be trusted for uninstall.",
                           fixable=True)
    if not s.runtime_rules_patched and not s.runtime_hook_patched:
        return CheckResult(cid, title, CheckStatus.PASS,
                           "Runtime is clean and unmanaged (no markers, no manifest).")
    if patched:
        return CheckResult(cid, title, CheckStatus.WARN,
                           "Runtime appears patched but no backup manifest exists. "
                           "Uninstall is not possible.")
    return CheckResult(cid, title, CheckStatus.FAIL,
                       "Partial patch markers detected without a backup manifest.")


def check_installability(s: DoctorSnapshot) -> CheckResult:
    title = "Installability simulation"
    cid = "installability"
    if s.target is None:
        return CheckResult(cid, title, CheckStatus.FAIL,
                           "Installability cannot be evaluated because target discovery failed.")
    if not s.target.is_script:
        return CheckResult(cid, title, CheckStatus.FAIL,
                           "Compiled executable targets are never installable.")
    if s.signature is None:
        return CheckResult(cid, title, CheckStatus.FAIL,
                           "No signature available for this target version.")
    if s.runtime_fully_patched:
        return CheckResult(cid, title, CheckStatus.PASS,
                           "Runtime already carries every patch marker.")
    if s.validation is None or not s.validation.valid:
        missing = ", ".join(s.validation.missing_patterns) if s.validation else "unknown"
        return CheckResult(cid, title, CheckStatus.FAIL,
                           f"Install would fail due to missing patterns: {missing}.")
    if not s.hook_candidate_exists and not s.runtime_hook_patched:
        return CheckResult(cid, title, CheckStatus.FAIL,
                           "Install would fail because no hook variant matches.")
    return CheckResult(cid, title, CheckStatus.PASS,
                       "Target is installable with the current signatures and hooks.")


def check_environment(s: DoctorSnapshot) -> CheckResult:
    title = "Environment toolchain hints"
    cid = "environment-hints"
    hints = [f"which={s.which_path}"] if s.which_path else []
    hints += [f"{label}={value}" for label, value in s.toolchain.items() if value]
    hint_text = " | ".join(hints)

    if not s.which_path:
        return CheckResult(cid, title, CheckStatus.WARN,
                           "Unable to resolve the target executable from the current PATH.")
    if (
        s.target is not None
        and s.target.is_script
        and s.which_path != s.target.path
        and s.which_target_type == TargetType.BINARY
    ):
        return CheckResult(cid, title, CheckStatus.WARN,
                           f"Mixed-target setup: PATH resolves to a compiled executable, "
                           f"but the patch target is a script. {hint_text}".strip())
    return CheckResult(cid, title, CheckStatus.PASS, hint_text or "Basic toolchain checks completed.")


CHECKS = (
    check_target_discovery,
    check_target_type,
    check_version_visibility,
    check_signature_match,
    check_pattern_validation,
    check_hook_compatibility,
    check_backup_integrity,
    check_patch_state,
    check_installability,
    check_environment,
)


# --- Suggested commands ---


def suggest_commands(
    checks: list[CheckResult], snapshot: DoctorSnapshot, executable: str | None = None
) -> list[str]:
    has_fail = any(c.status == CheckStatus.FAIL for c in checks)
    has_warn = any(c.status == CheckStatus.WARN for c in checks)
    if not has_fail and not has_warn:
        return []

    commands: list[str] = []
    if snapshot.target is None:
        commands.append(f"which {executable}" if executable else CMD_DOCTOR_WITH_TARGET)
    elif not snapshot.target.is_script:
        commands.append(CMD_UNINSTALL)
        commands.append(CMD_DOCTOR_WITH_TARGET)

    validation_failed = snapshot.validation is not None and not snapshot.validation.valid
    if snapshot.signature is None or (not snapshot.runtime_rules_patched and validation_failed):
        if executable:
            commands.append(f"{executable} --version")
        commands.append(CMD_SIGNATURES)

    if not snapshot.runtime_hook_patched and not snapshot.can_install:
        commands.append(CMD_DOCTOR)

    if snapshot.backup_manifest_present and not snapshot.backup_integrity:
        commands.append(CMD_UNINSTALL)

    if has_fail:
        commands.append(CMD_DOCTOR)

    return list(dict.fromkeys(commands))[:MAX_SUGGESTED_COMMANDS]
