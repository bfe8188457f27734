"""Tests for the sigpatch command line."""

import json
import tempfile
from pathlib import Path

from click.testing import CliRunner

from sigpatch import __version__
from sigpatch.cli import main

SEARCH = 'case"x":return"default"'
REPLACE = 'case"x":return"neverStop"'
ORIGINAL = f"switch(m){{{SEARCH}}}\nloop:step();\n".encode()


def _home(tmpdir: str) -> tuple[Path, Path]:
    home = Path(tmpdir) / "home"
    sig_dir = home / "signatures"
    sig_dir.mkdir(parents=True)
    (sig_dir / "2.1.x.json").write_text(json.dumps({
        "versionRange": "2.1.x",
        "minVersion": "2.1.0",
        "maxVersion": "2.1.99",
        "targetType": "script",
        "patches": [{"id": "mode", "description": "", "search": SEARCH, "replace": REPLACE}],
    }))
    (sig_dir / "hooks.yaml").write_text(
        "hooks:\n  - id: loop\n    search: 'loop:step();'\n    replace: 'loop:guard();step();'\n"
    )
    (sig_dir / "broken.json").write_text("{oops")
    target = Path(tmpdir) / "cli.js"
    target.write_bytes(ORIGINAL)
    return home, target


def _invoke(home: Path, *args):
    return CliRunner().invoke(main, ["--home", str(home), *args], env={"SIGPATCH_TARGET": None})


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_install_and_uninstall():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, target = _home(tmpdir)

        result = _invoke(home, "install", "--yes", "--target", str(target), "--target-version", "2.1.39")
        assert result.exit_code == 0, result.output
        assert REPLACE.encode() in target.read_bytes()
        assert (home / "backups" / "manifest.json").exists()

        again = _invoke(home, "install", "--yes", "--target", str(target))
        assert again.exit_code == 1
        assert "Already patched" in again.output

        result = _invoke(home, "uninstall")
        assert result.exit_code == 0, result.output
        assert target.read_bytes() == ORIGINAL

        result = _invoke(home, "uninstall")
        assert result.exit_code == 1


def test_install_requires_yes_when_not_interactive():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, target = _home(tmpdir)
        result = _invoke(home, "install", "--target", str(target), "--target-version", "2.1.39")

        assert result.exit_code == 1
        assert "--yes" in result.output
        assert target.read_bytes() == ORIGINAL


def test_install_failure_is_logged():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, target = _home(tmpdir)
        result = _invoke(home, "install", "--yes", "--target", str(target), "--target-version", "9.0.0")

        assert result.exit_code == 1
        assert "Supported versions: 2.1.x" in result.output
        log_files = list((home / "logs").glob("session-*.jsonl"))
        events = [json.loads(line) for line in log_files[0].read_text().splitlines()]
        assert events[-1]["success"] is False
        assert events[-1]["details"]["code"] == "no_matching_signature"


def test_install_without_target():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, _ = _home(tmpdir)
        result = _invoke(home, "install", "--yes")
        assert result.exit_code == 1
        assert "No patch target found" in result.output


def test_signatures_lists_loaded_and_skipped():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, _ = _home(tmpdir)
        result = _invoke(home, "signatures")

        assert result.exit_code == 0
        assert "2.1.x" in result.output
        assert "broken.json" in result.output
        assert "Hook variants: 1" in result.output


def test_status_reports_manifest():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, target = _home(tmpdir)
        _invoke(home, "install", "--yes", "--target", str(target), "--target-version", "2.1.39")

        result = _invoke(home, "status", "--target", str(target))
        assert result.exit_code == 0
        assert "present" in result.output
        assert "valid" in result.output


def test_doctor_clean_target_passes():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, target = _home(tmpdir)
        result = _invoke(home, "doctor", "--no-fix", "--target", str(target), "--target-version", "2.1.39")

        assert result.exit_code == 0, result.output
        assert "FAIL 0" in result.output


def test_doctor_reports_inconsistent_state_without_fixing():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, target = _home(tmpdir)
        _invoke(home, "install", "--yes", "--target", str(target), "--target-version", "2.1.39")
        target.write_bytes(ORIGINAL)

        result = _invoke(home, "doctor", "--target", str(target), "--target-version", "2.1.39")

        assert result.exit_code == 1
        assert target.read_bytes() == ORIGINAL
        assert (home / "backups" / "manifest.json").exists()


def test_invalid_config_is_a_usage_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, _ = _home(tmpdir)
        (home / "config.yaml").write_text("- not a mapping\n")
        result = _invoke(home, "signatures")
        assert result.exit_code != 0
        assert "mapping" in result.output
