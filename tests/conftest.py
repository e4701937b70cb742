from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import pytest

from sqlbackup.core.settings import Settings, get_settings


def _init_temp_db(path: Path) -> Path:
    with sqlite3.connect(str(path)) as conn:
        cur = conn.cursor()
        cur.execute("CREATE TABLE IF NOT EXISTS items (id INTEGER PRIMARY KEY, name TEXT)")
        cur.execute("CREATE TABLE IF NOT EXISTS events (id INTEGER PRIMARY KEY, title TEXT)")
        cur.executemany(
            "INSERT INTO items(name) VALUES (?)",
            [(f"item-{i}",) for i in range(5)],
        )
        cur.executemany(
            "INSERT INTO events(title) VALUES (?)",
            [(f"event-{i}",) for i in range(3)],
        )
        conn.commit()
    return path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings.for_base(tmp_path / "base", backup_dir=tmp_path / "backups")


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    return _init_temp_db(tmp_path / "test.db")


@pytest.fixture(autouse=True)
def _isolate_settings_and_logging():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    logger = logging.getLogger("sqlbackup")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
