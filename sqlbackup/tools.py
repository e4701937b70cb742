"""
External collaborators used by the backup operations.

The SQLite online-backup API, gzip and SHA-256 are wrapped in small classes so
operations can be exercised with fakes. ``Toolchain`` bundles the defaults.
"""
from __future__ import annotations

import gzip
import hashlib
import logging
import shutil
import sqlite3
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path

from sqlbackup.errors import CompressionFailure, EngineFailure

logger = logging.getLogger("sqlbackup.tools")

SQLITE_HEADER = b"SQLite format 3\x00"


def is_sqlite_file(path: Path) -> bool:
    """Sniff the file header; the extension is irrelevant."""
    try:
        with path.open("rb") as handle:
            return handle.read(len(SQLITE_HEADER)) == SQLITE_HEADER
    except OSError:
        return False


def _read_only_uri(path: Path) -> str:
    return f"{path.resolve().as_uri()}?mode=ro"


class SqliteEngine:
    """Safe copy in and out of live databases via ``Connection.backup``."""

    def __init__(self, pages: int = -1) -> None:
        self.pages = pages

    def _online_backup(self, source: Path, destination: Path, operation: str) -> None:
        try:
            with closing(sqlite3.connect(_read_only_uri(source), uri=True)) as src_conn:
                with closing(sqlite3.connect(str(destination))) as dst_conn:
                    src_conn.backup(dst_conn, pages=self.pages)
        except sqlite3.Error as exc:
            raise EngineFailure(operation, str(exc)) from exc

    def safe_copy(self, source: Path, destination: Path) -> None:
        logger.debug("Online backup %s -> %s", source, destination)
        self._online_backup(source, destination, "backup")

    def safe_restore(self, target: Path, source: Path) -> None:
        logger.debug("Online restore %s <- %s", target, source)
        self._online_backup(source, target, "restore")


class GzipCompressor:
    suffix = ".gz"

    def __init__(self, level: int = 9) -> None:
        self.level = level

    def compress(self, path: Path, destination: Path) -> Path:
        """Compress ``path`` into ``destination`` and remove the original."""
        try:
            with path.open("rb") as src, gzip.open(
                destination, "wb", compresslevel=self.level
            ) as dst:
                shutil.copyfileobj(src, dst)
            path.unlink()
        except OSError as exc:
            raise CompressionFailure(str(path), str(exc)) from exc
        return destination

    def decompress(self, path: Path, destination: Path) -> Path:
        try:
            with gzip.open(path, "rb") as src, destination.open("wb") as dst:
                shutil.copyfileobj(src, dst)
        except (OSError, EOFError) as exc:
            raise CompressionFailure(str(path), str(exc)) from exc
        return destination


class Sha256Hasher:
    def __init__(self, chunk_size: int = 1024 * 1024) -> None:
        self.chunk_size = chunk_size

    def sum256(self, path: Path) -> str:
        digest = hashlib.sha256()
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(self.chunk_size), b""):
                digest.update(chunk)
        return digest.hexdigest()


@dataclass
class Toolchain:
    engine: SqliteEngine = field(default_factory=SqliteEngine)
    compressor: GzipCompressor = field(default_factory=GzipCompressor)
    hasher: Sha256Hasher = field(default_factory=Sha256Hasher)


__all__ = [
    "GzipCompressor",
    "Sha256Hasher",
    "SqliteEngine",
    "Toolchain",
    "is_sqlite_file",
]
