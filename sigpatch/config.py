"""Configuration — resolved from defaults, an optional YAML file, and env vars.

Precedence (lowest to highest):
1. Built-in defaults under ``~/.sigpatch``
2. ``<home>/config.yaml``
3. ``SIGPATCH_*`` environment variables
4. CLI options (applied by the caller via ``Settings.override``)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

import yaml

DEFAULT_HOME = Path.home() / ".sigpatch"
CONFIG_FILE = "config.yaml"

_ENV_KEYS = {
    "signatures_dir": "SIGPATCH_SIGNATURES_DIR",
    "backup_dir": "SIGPATCH_BACKUP_DIR",
    "log_dir": "SIGPATCH_LOG_DIR",
    "hooks_dir": "SIGPATCH_HOOKS_DIR",
    "target": "SIGPATCH_TARGET",
    "executable": "SIGPATCH_EXECUTABLE",
}

_PATH_KEYS = {"signatures_dir", "backup_dir", "log_dir", "hooks_dir"}


@dataclass(frozen=True)
class Settings:
    home: Path
    signatures_dir: Path
    backup_dir: Path
    log_dir: Path
    hooks_dir: Path | None = None  # defaults to signatures_dir
    target: str | None = None
    executable: str | None = None

    def override(self, **values) -> Settings:
        """Return a copy with the non-None values applied."""
        changes = {}
        for key, value in values.items():
            if value is None:
                continue
            changes[key] = Path(value).expanduser() if key in _PATH_KEYS else value
        return replace(self, **changes)


def load_settings(home: str | Path | None = None, environ: dict[str, str] | None = None) -> Settings:
    """Resolve settings for this process."""
    env = os.environ if environ is None else environ

    home_path = Path(home or env.get("SIGPATCH_HOME") or DEFAULT_HOME).expanduser()
    settings = Settings(
        home=home_path,
        signatures_dir=home_path / "signatures",
        backup_dir=home_path / "backups",
        log_dir=home_path / "logs",
    )

    file_values = _read_config_file(home_path / CONFIG_FILE)
    settings = settings.override(**{k: file_values.get(k) for k in _ENV_KEYS})

    env_values = {key: env.get(var) or None for key, var in _ENV_KEYS.items()}
    return settings.override(**env_values)


def _read_config_file(path: Path) -> dict:
    if not path.is_file():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return {k: str(v) for k, v in data.items() if k in _ENV_KEYS and v is not None}
