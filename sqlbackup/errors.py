"""
Error types raised by sqlbackup operations.

Every error carries an ``ErrorKind`` and a human readable message; the CLI is
the only place that turns them into exit codes.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from sqlbackup.operations import VerifyOutcome


class ErrorKind(str, Enum):
    MISSING_ARGUMENT = "missing_argument"
    NOT_FOUND = "not_found"
    STORE_MISSING = "store_missing"
    INVALID_DATABASE = "invalid_database"
    UNWRITABLE_DESTINATION = "unwritable_destination"
    ENGINE_FAILURE = "engine_failure"
    COMPRESSION_FAILURE = "compression_failure"
    INTEGRITY_MISMATCH = "integrity_mismatch"


class BackupError(Exception):
    """Base exception for sqlbackup"""

    kind: ErrorKind = ErrorKind.ENGINE_FAILURE
    exit_code: int = 1

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingArgument(BackupError):
    kind = ErrorKind.MISSING_ARGUMENT

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"Missing required argument: {argument}")


class RecordNotFound(BackupError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, backup_id: int):
        self.backup_id = backup_id
        super().__init__(f"Backup with ID {backup_id} not found")


class SourceNotFound(BackupError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Source database not found: {path}")


class MetadataStoreMissing(BackupError):
    kind = ErrorKind.STORE_MISSING

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Metadata store not found: {path}")


class InvalidDatabase(BackupError):
    kind = ErrorKind.INVALID_DATABASE

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"{path}: {reason}")


class UnwritableDestination(BackupError):
    kind = ErrorKind.UNWRITABLE_DESTINATION

    def __init__(self, path: str, details: str):
        self.path = path
        super().__init__(f"Cannot write to {path}: {details}")


class EngineFailure(BackupError):
    kind = ErrorKind.ENGINE_FAILURE

    def __init__(self, operation: str, details: str):
        self.operation = operation
        super().__init__(f"SQLite {operation} failed: {details}")


class CompressionFailure(BackupError):
    kind = ErrorKind.COMPRESSION_FAILURE

    def __init__(self, path: str, details: str):
        self.path = path
        super().__init__(f"Compression of {path} failed: {details}")


class IntegrityMismatch(BackupError):
    """Raised when one or more backups fail checksum verification"""

    kind = ErrorKind.INTEGRITY_MISMATCH

    def __init__(self, outcomes: List["VerifyOutcome"]):
        self.outcomes = outcomes
        failed = [o for o in outcomes if not o.ok]
        ids = ", ".join(str(o.record_id) for o in failed)
        super().__init__(f"{len(failed)} backup(s) failed verification: {ids}")

    @property
    def failures(self) -> List["VerifyOutcome"]:
        return [o for o in self.outcomes if not o.ok]


__all__ = [
    "BackupError",
    "CompressionFailure",
    "EngineFailure",
    "ErrorKind",
    "IntegrityMismatch",
    "InvalidDatabase",
    "MetadataStoreMissing",
    "MissingArgument",
    "RecordNotFound",
    "SourceNotFound",
    "UnwritableDestination",
]
