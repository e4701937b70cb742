"""
Backup, list, verify, restore and delete operations.

Each operation takes the resolved ``Settings`` explicitly and raises a
``BackupError`` subclass on failure. External work (SQLite online backup,
gzip, SHA-256) goes through a ``Toolchain`` so tests can swap in fakes.
"""
from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from sqlbackup.core.settings import Settings
from sqlbackup.errors import (
    IntegrityMismatch,
    InvalidDatabase,
    MissingArgument,
    RecordNotFound,
    SourceNotFound,
    UnwritableDestination,
)
from sqlbackup.models import BackupRecord
from sqlbackup.store import MetadataStore
from sqlbackup.tools import Toolchain, is_sqlite_file

logger = logging.getLogger("sqlbackup.operations")

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def _now() -> datetime:
    return datetime.now()


def backup_name(source: Path, moment: datetime) -> str:
    base = source.name.lstrip("/.")
    return f"{base}_{moment.strftime(TIMESTAMP_FORMAT)}"


def _unique_target(directory: Path, name: str, suffix: str) -> Path:
    candidate = directory / f"{name}{suffix}"
    counter = 1
    while candidate.exists() or candidate.with_suffix("").exists():
        candidate = directory / f"{name}-{counter}{suffix}"
        counter += 1
    return candidate


def backup_database(
    settings: Settings,
    source: Path,
    dest_dir: Optional[Path] = None,
    tools: Optional[Toolchain] = None,
) -> BackupRecord:
    tools = tools or Toolchain()
    source = Path(source).expanduser().resolve()
    if not source.exists():
        raise SourceNotFound(str(source))
    if not source.is_file() or not is_sqlite_file(source):
        raise InvalidDatabase(str(source), "not a SQLite 3 database")

    target_dir = Path(dest_dir or settings.backup_dir).expanduser().resolve()
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise UnwritableDestination(str(target_dir), str(exc)) from exc

    moment = _now()
    compressed = _unique_target(
        target_dir, backup_name(source, moment), tools.compressor.suffix
    )
    snapshot = compressed.with_suffix("")

    logger.info("Backing up %s to %s", source, snapshot)
    # A failed copy leaves the partial snapshot behind for inspection.
    tools.engine.safe_copy(source, snapshot)
    tools.compressor.compress(snapshot, compressed)
    sha = tools.hasher.sum256(compressed)

    with MetadataStore.open(settings.metadata_db, create=True) as store:
        record = store.add(
            BackupRecord(
                date=moment.isoformat(timespec="seconds"),
                sha256=sha,
                source=str(source),
                backup=str(compressed),
            )
        )
    logger.info("Recorded backup %s (sha256=%s)", record.id, sha)
    return record


def list_backups(settings: Settings) -> List[BackupRecord]:
    with MetadataStore.open(settings.metadata_db) as store:
        return store.all()


@dataclass
class VerifyOutcome:
    record_id: int
    backup: str
    expected: Optional[str]
    actual: Optional[str]

    @property
    def status(self) -> str:
        if self.actual is None:
            return "missing"
        if self.expected is None or self.actual != self.expected:
            return "mismatch"
        return "ok"

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def _check(record: BackupRecord, tools: Toolchain) -> VerifyOutcome:
    path = Path(record.backup)
    actual: Optional[str] = None
    if path.is_file():
        try:
            actual = tools.hasher.sum256(path)
        except OSError as exc:
            logger.info("Cannot read backup %s: %s", path, exc)
    return VerifyOutcome(
        record_id=record.id,
        backup=record.backup,
        expected=record.sha256,
        actual=actual,
    )


def _require_record(store: MetadataStore, backup_id: int) -> BackupRecord:
    record = store.get(backup_id)
    if record is None:
        raise RecordNotFound(backup_id)
    return record


def verify_backups(
    settings: Settings,
    backup_id: Optional[int] = None,
    tools: Optional[Toolchain] = None,
) -> List[VerifyOutcome]:
    """
    Recompute checksums for one backup (``backup_id``) or all of them.

    Returns the outcomes when every selected backup matches its stored
    checksum; otherwise raises ``IntegrityMismatch`` carrying all outcomes.
    """
    tools = tools or Toolchain()
    with MetadataStore.open(settings.metadata_db) as store:
        if backup_id is None:
            records = store.all()
        else:
            records = [_require_record(store, backup_id)]

    outcomes = [_check(record, tools) for record in records]
    for outcome in outcomes:
        if not outcome.ok:
            logger.info(
                "Backup %s failed verification (%s): %s",
                outcome.record_id,
                outcome.status,
                outcome.backup,
            )
    if any(not outcome.ok for outcome in outcomes):
        raise IntegrityMismatch(outcomes)
    return outcomes


def restore_backup(
    settings: Settings,
    backup_id: Optional[int],
    tools: Optional[Toolchain] = None,
) -> BackupRecord:
    if backup_id is None:
        raise MissingArgument("id")
    tools = tools or Toolchain()

    # Refuses corrupted or missing backups before touching the live database.
    verify_backups(settings, backup_id, tools=tools)
    with MetadataStore.open(settings.metadata_db) as store:
        record = _require_record(store, backup_id)

    target = Path(record.source)
    stored = Path(record.backup)
    try:
        settings.base_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise UnwritableDestination(str(settings.base_dir), str(exc)) from exc

    with tempfile.TemporaryDirectory(prefix="sqlbackup-", dir=str(settings.base_dir)) as tmp:
        workdir = Path(tmp)
        compressed = workdir / stored.name
        try:
            shutil.copy2(stored, compressed)
        except OSError as exc:
            raise UnwritableDestination(str(workdir), str(exc)) from exc
        snapshot = tools.compressor.decompress(compressed, workdir / "restore.db")
        logger.info("Restoring %s from backup %s", target, record.id)
        tools.engine.safe_restore(target, snapshot)
    return record


def delete_backup(settings: Settings, backup_id: Optional[int]) -> Tuple[BackupRecord, bool]:
    """Remove a backup file (if still present) and its metadata row."""
    if backup_id is None:
        raise MissingArgument("id")
    with MetadataStore.open(settings.metadata_db) as store:
        record = _require_record(store, backup_id)
        path = Path(record.backup)
        removed = False
        if path.exists():
            try:
                path.unlink()
            except OSError as exc:
                raise UnwritableDestination(str(path), str(exc)) from exc
            removed = True
        else:
            logger.info("Backup file already gone: %s", path)
        store.delete(backup_id)
    return record, removed


__all__ = [
    "VerifyOutcome",
    "backup_database",
    "backup_name",
    "delete_backup",
    "list_backups",
    "restore_backup",
    "verify_backups",
]
