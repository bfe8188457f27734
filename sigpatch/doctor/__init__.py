"""Diagnostic reconciler — snapshot live state, judge it, propose repairs."""

from sigpatch.doctor.fixes import create_fix_actions
from sigpatch.doctor.flow import run_doctor_flow
from sigpatch.doctor.models import CheckResult, CheckStatus, DoctorOptions, DoctorReport
from sigpatch.doctor.report import collect_report

__all__ = [
    "CheckResult",
    "CheckStatus",
    "DoctorOptions",
    "DoctorReport",
    "collect_report",
    "create_fix_actions",
    "run_doctor_flow",
]
