"""Doctor flow — diagnose, propose fixes, apply them only when confirmed."""

from __future__ import annotations

from sigpatch.doctor.fixes import create_fix_actions
from sigpatch.doctor.models import (
    CheckResult,
    CheckStatus,
    DoctorFlowResult,
    DoctorOptions,
    DoctorReport,
    FixOutcome,
)
from sigpatch.doctor.report import collect_report
from sigpatch.errors import SigpatchError
from sigpatch.utils.reporter import ConsoleReporter, Reporter


def print_check(reporter: Reporter, check: CheckResult) -> None:
    line = f"[{check.status.value.upper()}] {check.title}: {check.details}"
    if check.status == CheckStatus.PASS:
        reporter.success(line)
    elif check.status == CheckStatus.WARN:
        reporter.warn(line)
    else:
        reporter.error(line)


def print_report(reporter: Reporter, title: str, report: DoctorReport) -> None:
    reporter.info(title)
    for check in report.checks:
        print_check(reporter, check)

    s = report.summary
    reporter.info(f"doctor summary: PASS {s.passed} | WARN {s.warned} | FAIL {s.failed}")
    for error in report.snapshot.probe_errors:
        reporter.warn(f"probe failed: {error}")

    if report.suggested_commands:
        reporter.info("doctor next commands:")
        for command in report.suggested_commands:
            reporter.info(f"- {command}")


def run_doctor_flow(options: DoctorOptions) -> DoctorFlowResult:
    """Run a full diagnosis and, if allowed, the proposed fixes.

    Fixes never run when ``options.interactive`` is False or the confirm
    callback declines. Each fix runs independently: a failure is reported
    and the remaining fixes still run. Only successful fixes are listed in
    ``executed_fixes``.
    """
    reporter = options.reporter or ConsoleReporter()

    initial = collect_report(options)
    print_report(reporter, "Doctor: initial diagnosis", initial)

    actions = create_fix_actions(options, initial)
    result = DoctorFlowResult(
        initial_report=initial,
        final_report=initial,
        planned_fixes=[a.title for a in actions],
    )

    if not actions:
        reporter.info("doctor fix: no automatic fixes required.")
        return result

    reporter.warn(f"doctor fix: {len(actions)} automatic fix step(s) are available.")
    for action in actions:
        reporter.warn(f"- {action.title}")

    if not options.interactive:
        reporter.warn("doctor fix skipped: non-interactive shell. Re-run in a terminal to apply fixes.")
        return result

    confirmed = options.confirm() if options.confirm else False
    if not confirmed:
        reporter.warn("doctor fix cancelled.")
        return result

    for action in actions:
        reporter.info(f"doctor fix running: {action.title}")
        try:
            outcome = action.run()
        except (SigpatchError, OSError) as e:
            outcome = FixOutcome(False, str(e))
        result.fix_outcomes[action.id] = outcome
        if outcome.success:
            reporter.success(f"doctor fix success: {outcome.message}")
            result.executed_fixes.append(action.id)
        else:
            reporter.error(f"doctor fix failed: {outcome.message}")

    result.final_report = collect_report(options)
    print_report(reporter, "Doctor: post-fix diagnosis", result.final_report)
    return result
