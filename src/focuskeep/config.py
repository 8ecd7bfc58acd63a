# src/focuskeep/config.py

"""
Storage configuration.

Where the data file and its daily snapshots live. Nothing here is
global: build a StorageConfig and hand it to StateStore.

Sources:
- environment (`DATA_DIR`, default `./data`),
- a YAML file with `data_dir` and optional `filename` / `backup_dirname`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Mapping, Optional

import yaml


DEFAULT_DATA_DIR: Final[str] = "./data"
DEFAULT_FILENAME: Final[str] = "focus-assist-data.md"
DEFAULT_BACKUP_DIRNAME: Final[str] = "daily_backup"

DATA_DIR_ENV: Final[str] = "DATA_DIR"


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

@dataclass
class ConfigError(Exception):
    """
    Raised when a configuration file is unreadable or malformed.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


# ---------------------------------------------------------------------
# Config object
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    filename: str = DEFAULT_FILENAME
    backup_dirname: str = DEFAULT_BACKUP_DIRNAME

    @property
    def data_file(self) -> Path:
        return self.data_dir / self.filename

    @property
    def backup_dir(self) -> Path:
        return self.data_dir / self.backup_dirname

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StorageConfig":
        env = os.environ if environ is None else environ
        raw = (env.get(DATA_DIR_ENV) or "").strip()
        return cls(data_dir=Path(raw or DEFAULT_DATA_DIR))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "StorageConfig":
        """
        Load a YAML config file.

        A relative `data_dir` is resolved against the config file's
        directory, not the current working directory.
        """
        p = Path(path)
        try:
            raw = p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(str(p), f"Cannot read config: {e}") from e

        try:
            data: Any = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(str(p), f"Invalid YAML: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(str(p), "Config root must be a mapping")

        data_dir = Path(_optional_str(p, data, "data_dir") or DEFAULT_DATA_DIR)
        if not data_dir.is_absolute():
            data_dir = p.parent / data_dir

        return cls(
            data_dir=data_dir,
            filename=_optional_str(p, data, "filename") or DEFAULT_FILENAME,
            backup_dirname=_optional_str(p, data, "backup_dirname") or DEFAULT_BACKUP_DIRNAME,
        )


def _optional_str(path: Path, data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(str(path), f"Field '{key}' must be a string")
    return value.strip() or None
