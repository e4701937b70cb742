from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sqlbackup.db import Base, make_engine, make_session_factory
from sqlbackup.errors import EngineFailure, MetadataStoreMissing, UnwritableDestination
from sqlbackup.models import BackupRecord

logger = logging.getLogger("sqlbackup.store")


class MetadataStore:
    """The companion database holding one row per backup."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.engine = make_engine(path)
        self.SessionLocal = make_session_factory(self.engine)

    @classmethod
    def open(cls, path: Path, create: bool = False) -> "MetadataStore":
        """
        Open the store at ``path``.

        Read-only callers pass ``create=False`` and get ``MetadataStoreMissing``
        when the file does not exist; the backup operation creates it lazily.
        """
        if not path.exists():
            if not create:
                raise MetadataStoreMissing(str(path))
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise UnwritableDestination(str(path.parent), str(exc)) from exc
            logger.info("Creating metadata store: %s", path)
        store = cls(path)
        if create:
            store.create_schema()
        return store

    def create_schema(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise EngineFailure("metadata schema creation", str(exc)) from exc

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise EngineFailure("metadata store access", str(exc)) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def add(self, record: BackupRecord) -> BackupRecord:
        with self.session() as db:
            db.add(record)
            db.flush()
            db.refresh(record)
            db.expunge(record)
        return record

    def get(self, backup_id: int) -> Optional[BackupRecord]:
        with self.session() as db:
            record = db.get(BackupRecord, backup_id)
            if record is not None:
                db.expunge(record)
            return record

    def all(self) -> List[BackupRecord]:
        with self.session() as db:
            records = list(db.scalars(select(BackupRecord).order_by(BackupRecord.id)))
            for record in records:
                db.expunge(record)
            return records

    def delete(self, backup_id: int) -> bool:
        with self.session() as db:
            record = db.get(BackupRecord, backup_id)
            if record is None:
                return False
            db.delete(record)
            return True

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "MetadataStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["MetadataStore"]
