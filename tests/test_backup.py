"""Tests for the single-slot backup store."""

import hashlib
import json
import os
import stat
import tempfile
from pathlib import Path

import pytest

from sigpatch.backup.store import BACKUP_NAME, MANIFEST_NAME, BackupManifest, BackupStore
from sigpatch.errors import BackupCreateError, BackupMissingError, NoBackupError


def _setup(tmpdir: str, content: bytes = b"original content"):
    root = Path(tmpdir)
    target = root / "cli.js"
    target.write_bytes(content)
    return target, BackupStore(root / "backups")


def test_create_backup_writes_blob_and_manifest():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        manifest = store.create_backup(target, "2.1.39")

        assert store.blob_path.read_bytes() == b"original content"
        assert manifest.original_hash == hashlib.sha256(b"original content").hexdigest()
        assert manifest.tool_version == "2.1.39"

        on_disk = json.loads(store.manifest_path.read_text())
        assert set(on_disk) == {"originalPath", "backupPath", "originalHash", "timestamp", "toolVersion"}
        assert on_disk["originalPath"] == str(target.resolve())


def test_manifest_omits_tool_version_when_unknown():
    m = BackupManifest("a", "b", "c", "2026-01-01T00:00:00+00:00")
    assert "toolVersion" not in m.to_dict()
    assert BackupManifest.from_dict(m.to_dict()) == m


def test_create_backup_missing_target_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = BackupStore(Path(tmpdir) / "backups")
        with pytest.raises(BackupCreateError):
            store.create_backup(Path(tmpdir) / "missing.js")
        assert not store.manifest_path.exists()


def test_is_patched_tracks_manifest_only():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        assert not store.is_patched()

        store.create_backup(target)
        assert store.is_patched()

        # Byte content of the target plays no part
        target.write_bytes(b"something else")
        assert store.is_patched()


def test_restore_roundtrip_and_cleanup():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        os.chmod(target, 0o750)
        store.create_backup(target)
        target.write_bytes(b"patched")

        store.restore()

        assert target.read_bytes() == b"original content"
        assert stat.S_IMODE(target.stat().st_mode) == 0o750
        assert not store.manifest_path.exists()
        assert not store.blob_path.exists()
        assert not store.is_patched()


def test_restore_without_manifest_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        _, store = _setup(tmpdir)
        with pytest.raises(NoBackupError):
            store.restore()


def test_restore_with_missing_blob_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        store.create_backup(target)
        store.blob_path.unlink()

        with pytest.raises(BackupMissingError):
            store.restore()
        assert store.manifest_path.exists()


def test_verify_integrity():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        assert not store.verify_integrity()

        store.create_backup(target)
        assert store.verify_integrity()

        store.blob_path.write_bytes(b"tampered")
        assert not store.verify_integrity()

        store.blob_path.unlink()
        assert not store.verify_integrity()


def test_single_generation_slot():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        store.create_backup(target)
        target.write_bytes(b"second generation")
        store.create_backup(target)

        names = sorted(p.name for p in store.backup_dir.iterdir())
        assert names == sorted([BACKUP_NAME, MANIFEST_NAME])
        assert store.blob_path.read_bytes() == b"second generation"


def test_corrupt_manifest_reads_as_absent():
    with tempfile.TemporaryDirectory() as tmpdir:
        _, store = _setup(tmpdir)
        store.backup_dir.mkdir(parents=True)
        store.manifest_path.write_text("{broken")
        assert store.get_manifest() is None
        assert not store.is_patched()


def _rewrite_manifest(store: BackupStore, **fields):
    data = json.loads(store.manifest_path.read_text())
    data.update(fields)
    store.manifest_path.write_text(json.dumps(data))


def test_manifest_with_non_string_paths_reads_as_absent():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        store.create_backup(target)
        _rewrite_manifest(store, backupPath=None)

        assert store.get_manifest() is None
        assert not store.verify_integrity()
        with pytest.raises(NoBackupError):
            store.restore()


def test_from_dict_rejects_non_string_fields():
    data = BackupManifest("a", "b", "c", "2026-01-01T00:00:00+00:00").to_dict()
    for key in ("originalPath", "backupPath", "originalHash"):
        with pytest.raises(ValueError):
            BackupManifest.from_dict({**data, key: 42})


def test_restore_refuses_blob_outside_backup_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        store.create_backup(target)
        target.write_bytes(b"patched")
        outside = Path(tmpdir) / "precious.bin"
        outside.write_bytes(b"keep me")
        _rewrite_manifest(
            store,
            backupPath=str(outside),
            originalHash=hashlib.sha256(b"keep me").hexdigest(),
        )

        assert not store.verify_integrity()
        with pytest.raises(BackupMissingError):
            store.restore()
        assert outside.read_bytes() == b"keep me"
        assert target.read_bytes() == b"patched"
        assert store.manifest_path.exists()


def test_manifest_records_absolute_original_path(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        target, store = _setup(tmpdir)
        monkeypatch.chdir(tmpdir)
        manifest = store.create_backup(Path("cli.js"))

        assert Path(manifest.original_path).is_absolute()
        assert manifest.original_path == str(target.resolve())
