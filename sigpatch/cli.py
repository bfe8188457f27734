"""sigpatch CLI — install, inspect, and repair signature-driven patches."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sigpatch import __version__
from sigpatch.config import Settings, load_settings
from sigpatch.finder.target import TargetDescriptor, default_probes, find_target
from sigpatch.utils.session_log import SessionLog

console = Console()


def _is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _resolve_target(settings: Settings, target_version: str | None) -> TargetDescriptor | None:
    target = find_target(default_probes(settings.target, target_version, settings.executable))
    if target is not None and target_version:
        target.version = target_version
    return target


def _orchestrator(settings: Settings):
    from sigpatch.orchestrator import Orchestrator

    return Orchestrator(settings.signatures_dir, settings.backup_dir, settings.hooks_dir)


def _fail(session: SessionLog, action: str, message: str, hint: str = "", **details) -> None:
    console.print(f"[red]x[/] {message}")
    if hint:
        console.print(f"  [dim]{hint}[/]")
    session.log(action, message, success=False, details=details)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--home", default=None, help="State directory (default: ~/.sigpatch or $SIGPATCH_HOME)")
@click.pass_context
def main(ctx, home: str | None):
    """sigpatch — signature-driven, reversible patching of script targets.

    Signatures describe literal find/replace rules per target version range.
    Every install takes a hash-verified backup; 'uninstall' restores it and
    'doctor' reconciles the backup record with what is actually on disk.
    """
    try:
        ctx.obj = load_settings(home)
    except ValueError as e:
        raise click.ClickException(str(e))


# ── Install ──────────────────────────────────────────────────────────


@main.command()
@click.option("--target", "target_path", default=None, help="Path of the script to patch")
@click.option("--target-version", default=None, help="Override the detected target version")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
def install(settings: Settings, target_path: str | None, target_version: str | None, yes: bool):
    """Patch the resolved target, taking a backup first."""
    settings = settings.override(target=target_path)
    session = SessionLog(settings.log_dir)
    session.log("install", "Install started")

    console.print("\n[bold blue]sigpatch[/] — Install\n")

    if not yes:
        if not _is_interactive():
            _fail(session, "install", "Non-interactive shell detected. Re-run with --yes to install.")
        if not click.confirm("Patch the target now?", default=False):
            console.print("[yellow]Install cancelled. No files were changed.[/]")
            session.log("install", "Install cancelled by user")
            return

    orch = _orchestrator(settings)
    if orch.is_patched():
        _fail(session, "install", "Already patched.", "Run 'sigpatch uninstall' first to re-patch.")

    target = _resolve_target(settings, target_version)
    if target is None:
        _fail(
            session,
            "install",
            "No patch target found.",
            "Pass --target PATH, set SIGPATCH_TARGET, or configure 'executable'.",
        )

    console.print(f"[green]v[/] Found: {target.path}")
    console.print(f"  Type: {target.type} | Version: {target.version or 'unknown'}")

    result = orch.install(target.path, target.version)
    if not result.success:
        _fail(
            session,
            "install",
            f"Patch failed: {result.error}",
            result.hint,
            code=result.code.value if result.code else None,
            target=target.path,
        )

    console.print(f"[green]v[/] Patch applied successfully ({result.patched_count} rules).")
    if result.failed_rules:
        console.print(f"  [yellow]![/] Rules not applied: {', '.join(result.failed_rules)}")
    session.log(
        "install",
        f"Patch applied: {result.patched_count} rules",
        details={"target": target.path, "version": target.version, "failed_rules": result.failed_rules},
    )


# ── Uninstall ────────────────────────────────────────────────────────


@main.command()
@click.pass_obj
def uninstall(settings: Settings):
    """Restore the original target from the backup."""
    session = SessionLog(settings.log_dir)
    session.log("uninstall", "Uninstall started")

    console.print("\n[bold blue]sigpatch[/] — Uninstall\n")

    result = _orchestrator(settings).uninstall()
    if not result.success:
        _fail(
            session,
            "uninstall",
            f"Uninstall failed: {result.error}",
            result.hint,
            code=result.code.value if result.code else None,
        )

    console.print("[green]v[/] Original target restored.")
    session.log("uninstall", "Uninstall successful")


# ── Status ───────────────────────────────────────────────────────────


@main.command()
@click.option("--target", "target_path", default=None, help="Path of the patched script")
@click.pass_obj
def status(settings: Settings, target_path: str | None):
    """Show backup state and runtime patch markers."""
    settings = settings.override(target=target_path)
    orch = _orchestrator(settings)
    manifest = orch.backup.get_manifest()

    table = Table(title="sigpatch status", show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Backup manifest", "present" if manifest else "absent")
    if manifest:
        integrity = orch.backup.verify_integrity()
        table.add_row("Original", manifest.original_path)
        table.add_row("Backed up", manifest.timestamp)
        table.add_row("Integrity", "[green]valid[/]" if integrity else "[red]invalid[/]")

    target = _resolve_target(settings, None)
    if target is None:
        table.add_row("Target", "[yellow]not found[/]")
    else:
        table.add_row("Target", target.path)
        table.add_row("Type", target.type)
        table.add_row("Version", target.version or "unknown")
        signature = orch.resolver.resolve(target.version)
        table.add_row("Signature", signature.version_range if signature else "[yellow]none[/]")
        if target.is_script and signature is not None:
            try:
                content = Path(target.path).read_bytes()
            except OSError as e:
                table.add_row("Runtime", f"[red]unreadable: {e}[/]")
            else:
                rules = orch.engine.is_fully_applied(content, signature.rules)
                hook = orch.hooks.is_applied(content)
                table.add_row("Rules applied", "yes" if rules else "no")
                table.add_row("Hook applied", "yes" if hook else "no")

    console.print(table)


# ── Signatures ───────────────────────────────────────────────────────


@main.command()
@click.pass_obj
def signatures(settings: Settings):
    """List loaded signatures, skipped records, and hook variants."""
    orch = _orchestrator(settings)
    loaded = orch.resolver.signatures

    if not loaded:
        console.print(f"[yellow]No signatures found in {settings.signatures_dir}[/]")
    else:
        table = Table(title=f"Signatures ({len(loaded)})")
        table.add_column("Range", style="cyan")
        table.add_column("Min")
        table.add_column("Max")
        table.add_column("Type")
        table.add_column("Rules", justify="right", style="green")
        table.add_column("File", style="dim")
        for sig in loaded:
            table.add_row(
                sig.version_range,
                sig.min_version,
                sig.max_version,
                sig.target_type,
                str(len(sig.rules)),
                sig.source_file,
            )
        console.print(table)

    for skipped in orch.resolver.store.skipped:
        console.print(f"  [yellow]![/] Skipped {skipped.file_name}: {skipped.reason}")

    console.print(f"\nHook variants: {len(orch.hooks)}")
    for variant in orch.hooks.variants:
        console.print(f"  - {variant.rule.id}")


# ── Doctor ───────────────────────────────────────────────────────────


@main.command()
@click.option("--target", "target_path", default=None, help="Path of the script to diagnose")
@click.option("--target-version", default=None, help="Override the detected target version")
@click.option("--fix/--no-fix", default=True, help="Offer to apply automatic fixes")
@click.pass_obj
def doctor(settings: Settings, target_path: str | None, target_version: str | None, fix: bool):
    """Diagnose the patch state and optionally repair it."""
    from sigpatch.doctor import DoctorOptions, run_doctor_flow
    from sigpatch.utils.reporter import ConsoleReporter

    settings = settings.override(target=target_path)
    session = SessionLog(settings.log_dir)
    session.log("doctor", "Doctor started")

    console.print("\n[bold blue]sigpatch[/] — Doctor\n")

    options = DoctorOptions(
        signatures_dir=settings.signatures_dir,
        backup_dir=settings.backup_dir,
        hooks_dir=settings.hooks_dir,
        executable=settings.executable,
        interactive=fix and _is_interactive(),
        reporter=ConsoleReporter(console=console),
        confirm=lambda: click.confirm("Apply these fixes?", default=False),
        find_target=lambda: _resolve_target(settings, target_version),
    )
    result = run_doctor_flow(options)
    summary = result.final_report.summary

    console.print(Panel(
        f"PASS {summary.passed} | WARN {summary.warned} | FAIL {summary.failed}",
        title="Doctor Result",
    ))
    session.log(
        "doctor",
        f"Doctor finished: {summary.failed} failing check(s)",
        success=summary.failed == 0,
        details={"planned": result.planned_fixes, "executed": result.executed_fixes},
    )
    if summary.failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
