from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from sqlbackup.db import Base


class BackupRecord(Base):
    __tablename__ = "backups"
    # AUTOINCREMENT keeps IDs from being reused after a delete.
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column("ID", Integer, primary_key=True, autoincrement=True)
    date: Mapped[str] = mapped_column("Date", String, nullable=False)  # ISO-8601
    sha256: Mapped[Optional[str]] = mapped_column("SHA256", String(64), nullable=True)
    source: Mapped[str] = mapped_column("Source", String, nullable=False)
    backup: Mapped[str] = mapped_column("Backup", String, nullable=False)

    def __repr__(self) -> str:
        return f"BackupRecord(id={self.id!r}, date={self.date!r}, backup={self.backup!r})"
