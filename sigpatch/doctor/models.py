"""Doctor data models — snapshot, check verdicts, reports, and fix actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from sigpatch.finder.target import TargetDescriptor
from sigpatch.models.signature import Signature, ValidationResult
from sigpatch.utils.reporter import Reporter


class CheckStatus(Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    """One diagnostic verdict."""

    id: str
    title: str
    status: CheckStatus
    details: str
    fixable: bool = False


@dataclass
class DoctorSummary:
    passed: int = 0
    warned: int = 0
    failed: int = 0

    @classmethod
    def from_checks(cls, checks: list[CheckResult]) -> DoctorSummary:
        return cls(
            passed=sum(1 for c in checks if c.status == CheckStatus.PASS),
            warned=sum(1 for c in checks if c.status == CheckStatus.WARN),
            failed=sum(1 for c in checks if c.status == CheckStatus.FAIL),
        )


@dataclass
class DoctorSnapshot:
    """Live state probed for one diagnostic run. Never persisted."""

    target: TargetDescriptor | None = None
    signature: Signature | None = None
    validation: ValidationResult | None = None
    backup_manifest_present: bool = False
    backup_integrity: bool = True
    runtime_rules_patched: bool = False
    runtime_hook_patched: bool = False
    runtime_fully_patched: bool = False
    hook_candidate_exists: bool = False
    can_install: bool = False
    which_path: str | None = None
    which_target_type: str | None = None
    toolchain: dict[str, str | None] = field(default_factory=dict)
    probe_errors: list[str] = field(default_factory=list)


@dataclass
class DoctorReport:
    checks: list[CheckResult]
    summary: DoctorSummary
    suggested_commands: list[str]
    snapshot: DoctorSnapshot

    def check(self, check_id: str) -> CheckResult | None:
        return next((c for c in self.checks if c.id == check_id), None)

    def status_of(self, check_id: str) -> CheckStatus:
        found = self.check(check_id)
        return found.status if found else CheckStatus.PASS


@dataclass
class FixOutcome:
    success: bool
    message: str
    details: dict = field(default_factory=dict)


@dataclass
class FixAction:
    id: str
    title: str
    run: Callable[[], FixOutcome]


@dataclass
class DoctorOptions:
    """Everything a doctor run needs; collaborators are injectable."""

    signatures_dir: Path
    backup_dir: Path
    hooks_dir: Path | None = None
    executable: str | None = None
    interactive: bool = False
    reporter: Optional[Reporter] = None
    confirm: Optional[Callable[[], bool]] = None
    find_target: Optional[Callable[[], Optional[TargetDescriptor]]] = None
    run_command: Optional[Callable[[list[str]], Optional[str]]] = None


@dataclass
class DoctorFlowResult:
    initial_report: DoctorReport
    final_report: DoctorReport
    planned_fixes: list[str] = field(default_factory=list)
    executed_fixes: list[str] = field(default_factory=list)
    fix_outcomes: dict[str, FixOutcome] = field(default_factory=dict)
