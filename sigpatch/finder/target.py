"""Target discovery — ordered probes with an explicit type preference.

Each probe is an independent callable returning a ``TargetDescriptor`` or
None. Probes run in order and a failing probe is skipped. Script targets are
preferred over compiled binaries even when a binary is found first, since
binaries can only be diagnosed, never patched.
"""

from __future__ import annotations

import json
import os
import re
import shutil
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from sigpatch.models.signature import TargetType

# Leading-byte signatures of compiled executables
_MAGIC_BE = {0xFEEDFACE, 0xFEEDFACF, 0xCAFEBABE}  # Mach-O 32/64, fat binary
_MAGIC_LE = {0xFEEDFACE, 0xFEEDFACF}  # Mach-O little-endian
_ELF_MAGIC = b"\x7fELF"
_PE_MAGIC = b"MZ"

_EMBEDDED_VERSION_RE = re.compile(rb'VERSION:"(\d+\.\d+\.\d+)"')
_PATH_VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)")

MAX_PARENT_WALK = 10


@dataclass
class TargetDescriptor:
    path: str
    type: str  # TargetType.BINARY | TargetType.SCRIPT
    version: str | None = None

    @property
    def is_script(self) -> bool:
        return self.type == TargetType.SCRIPT


Probe = Callable[[], Optional[TargetDescriptor]]


def is_native_executable(head: bytes) -> bool:
    """True if the leading bytes carry a recognized executable magic."""
    if head.startswith(_ELF_MAGIC) or head.startswith(_PE_MAGIC):
        return True
    if len(head) < 4:
        return False
    (be,) = struct.unpack(">I", head[:4])
    (le,) = struct.unpack("<I", head[:4])
    return be in _MAGIC_BE or le in _MAGIC_LE


def detect_target_type(path: str | Path) -> str:
    with open(path, "rb") as f:
        head = f.read(4)
    return TargetType.BINARY if is_native_executable(head) else TargetType.SCRIPT


def extract_version(path: str | Path) -> str | None:
    """Best-effort version lookup for a target file.

    Tries, in order: the nearest ``package.json`` walking up from the file,
    an embedded ``VERSION:"x.y.z"`` literal, a version in the path itself.
    """
    path = Path(path)

    directory = path.parent
    for _ in range(MAX_PARENT_WALK):
        manifest = directory / "package.json"
        if manifest.is_file():
            try:
                with open(manifest, encoding="utf-8") as f:
                    version = json.load(f).get("version")
                if isinstance(version, str) and version:
                    return version
            except (json.JSONDecodeError, OSError, AttributeError):
                pass
            break
        if directory.parent == directory:
            break
        directory = directory.parent

    try:
        match = _EMBEDDED_VERSION_RE.search(path.read_bytes())
        if match:
            return match.group(1).decode("ascii")
    except OSError:
        pass

    match = _PATH_VERSION_RE.search(str(path))
    return match.group(1) if match else None


def describe(path: str | Path, version: str | None = None) -> TargetDescriptor:
    """Build a descriptor for a known path."""
    resolved = Path(path).resolve()
    return TargetDescriptor(
        path=str(resolved),
        type=detect_target_type(resolved),
        version=version if version is not None else extract_version(resolved),
    )


def explicit_probe(path: str | Path | None, version: str | None = None) -> Probe:
    def probe() -> TargetDescriptor | None:
        if not path or not Path(path).is_file():
            return None
        return describe(path, version)

    return probe


def env_probe(variable: str = "SIGPATCH_TARGET") -> Probe:
    def probe() -> TargetDescriptor | None:
        value = os.environ.get(variable, "")
        if not value or not Path(value).is_file():
            return None
        return describe(value)

    return probe


def which_probe(executable: str | None) -> Probe:
    """Resolve an executable on PATH, following symlinks to the real file."""

    def probe() -> TargetDescriptor | None:
        if not executable:
            return None
        found = shutil.which(executable)
        if not found:
            return None
        return describe(os.path.realpath(found))

    return probe


def find_target(probes: Iterable[Probe]) -> TargetDescriptor | None:
    """Run probes in order; first script target wins, else first binary."""
    first_binary: TargetDescriptor | None = None
    for probe in probes:
        try:
            target = probe()
        except OSError:
            continue
        if target is None:
            continue
        if target.is_script:
            return target
        if first_binary is None:
            first_binary = target
    return first_binary


def default_probes(
    target: str | None = None,
    version: str | None = None,
    executable: str | None = None,
) -> list[Probe]:
    return [explicit_probe(target, version), env_probe(), which_probe(executable)]
