"""Tests for target discovery and type/version detection."""

import json
import os
import struct
import tempfile
from pathlib import Path

from sigpatch.finder.target import (
    TargetDescriptor,
    default_probes,
    describe,
    detect_target_type,
    env_probe,
    explicit_probe,
    extract_version,
    find_target,
    is_native_executable,
    which_probe,
)
from sigpatch.models.signature import TargetType


# --- Magic Tests ---


def test_native_magics_recognized():
    assert is_native_executable(b"\x7fELF")
    assert is_native_executable(b"MZ\x00\x00")
    assert is_native_executable(struct.pack(">I", 0xCAFEBABE))
    assert is_native_executable(struct.pack("<I", 0xFEEDFACF))
    assert is_native_executable(struct.pack(">I", 0xFEEDFACE))


def test_script_heads_not_native():
    assert not is_native_executable(b"#!/u")
    assert not is_native_executable(b"var ")
    assert not is_native_executable(b"")


def test_detect_target_type():
    with tempfile.TemporaryDirectory() as tmpdir:
        script = Path(tmpdir) / "cli.js"
        script.write_text("#!/usr/bin/env node\n")
        binary = Path(tmpdir) / "tool"
        binary.write_bytes(struct.pack(">I", 0xFEEDFACF) + b"\x00" * 60)

        assert detect_target_type(script) == TargetType.SCRIPT
        assert detect_target_type(binary) == TargetType.BINARY


# --- Version Tests ---


def test_version_from_nearest_package_json():
    with tempfile.TemporaryDirectory() as tmpdir:
        pkg = Path(tmpdir) / "pkg"
        (pkg / "dist").mkdir(parents=True)
        (pkg / "package.json").write_text(json.dumps({"name": "tool", "version": "2.1.39"}))
        target = pkg / "dist" / "cli.js"
        target.write_text('VERSION:"9.9.9"')

        assert extract_version(target) == "2.1.39"


def test_version_from_embedded_literal():
    with tempfile.TemporaryDirectory() as tmpdir:
        target = Path(tmpdir) / "cli.js"
        target.write_text('var a=1;VERSION:"2.0.7";')
        assert extract_version(target) == "2.0.7"


def test_version_from_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        versions = Path(tmpdir) / "versions"
        versions.mkdir()
        target = versions / "2.1.11"
        target.write_bytes(b"\x7fELF")
        assert extract_version(target) == "2.1.11"


# --- Probe Tests ---


def test_explicit_probe_and_describe():
    with tempfile.TemporaryDirectory() as tmpdir:
        target = Path(tmpdir) / "cli.js"
        target.write_text("x")

        found = explicit_probe(target, "2.1.0")()
        assert found.path == str(target.resolve())
        assert found.type == TargetType.SCRIPT
        assert found.version == "2.1.0"

        assert explicit_probe(Path(tmpdir) / "missing.js")() is None
        assert explicit_probe(None)() is None
        assert describe(target, "1.0.0").is_script


def test_env_probe(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        target = Path(tmpdir) / "cli.js"
        target.write_text("x")

        monkeypatch.setenv("SIGPATCH_TARGET", str(target))
        assert env_probe()().path == str(target.resolve())

        monkeypatch.delenv("SIGPATCH_TARGET")
        assert env_probe()() is None


def test_which_probe_follows_symlinks(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        real = Path(tmpdir) / "lib" / "cli.js"
        real.parent.mkdir()
        real.write_text("#!/usr/bin/env node\n")
        os.chmod(real, 0o755)
        bin_dir = Path(tmpdir) / "bin"
        bin_dir.mkdir()
        (bin_dir / "tool").symlink_to(real)

        monkeypatch.setenv("PATH", str(bin_dir))
        found = which_probe("tool")()
        assert found.path == str(real.resolve())
        assert which_probe(None)() is None
        assert which_probe("definitely-not-installed")() is None


def test_find_target_prefers_script_over_binary():
    binary = TargetDescriptor("/opt/tool", TargetType.BINARY, "2.1.39")
    script = TargetDescriptor("/lib/cli.js", TargetType.SCRIPT, "2.1.39")

    assert find_target([lambda: binary, lambda: script]) is script
    assert find_target([lambda: binary, lambda: None]) is binary
    assert find_target([lambda: None]) is None


def test_find_target_skips_failing_probes():
    script = TargetDescriptor("/lib/cli.js", TargetType.SCRIPT)

    def broken():
        raise PermissionError("denied")

    assert find_target([broken, lambda: script]) is script


def test_default_probes_order():
    with tempfile.TemporaryDirectory() as tmpdir:
        target = Path(tmpdir) / "cli.js"
        target.write_text("x")
        found = find_target(default_probes(str(target), "3.0.0"))
        assert found.version == "3.0.0"
