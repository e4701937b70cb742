from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_BASE_DIR = "/opt/backup"
METADATA_FILENAME = ".sqlbackup.db"


class Settings(BaseModel):
    base_dir: Path = Field(default=Path(DEFAULT_BASE_DIR))
    backup_dir: Path = Field(default=Path(DEFAULT_BASE_DIR))
    metadata_db: Path = Field(default=Path(DEFAULT_BASE_DIR) / METADATA_FILENAME)
    log_level: str = Field(default="WARNING")
    log_file: Optional[Path] = Field(default=None)

    @classmethod
    def for_base(cls, base_dir: Path, **overrides) -> "Settings":
        """Settings rooted at ``base_dir`` with the usual derived defaults."""
        values = {
            "base_dir": base_dir,
            "backup_dir": base_dir,
            "metadata_db": base_dir / METADATA_FILENAME,
        }
        values.update(overrides)
        return cls(**values)


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name, default)
    if value == "":
        return default
    return value


def _load_settings() -> Settings:
    """
    Resolve settings from the environment (in order of precedence):
      1. BACKUP_PATH / BACKUP_METADATA explicit overrides.
      2. Paths derived from BACKUP_BASE.
      3. Built-in default base directory /opt/backup.
    """
    base_dir = Path(_env("BACKUP_BASE", DEFAULT_BASE_DIR)).expanduser()
    backup_dir = _env("BACKUP_PATH")
    metadata_db = _env("BACKUP_METADATA")
    log_file = _env("BACKUP_LOG_FILE")
    return Settings(
        base_dir=base_dir,
        backup_dir=Path(backup_dir).expanduser() if backup_dir else base_dir,
        metadata_db=(
            Path(metadata_db).expanduser() if metadata_db else base_dir / METADATA_FILENAME
        ),
        log_level=(_env("BACKUP_LOG_LEVEL", "WARNING") or "WARNING").upper(),
        log_file=Path(log_file).expanduser() if log_file else None,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return _load_settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
