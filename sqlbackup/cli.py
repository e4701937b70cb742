from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from sqlbackup.core.logger import configure_logging
from sqlbackup.core.settings import Settings, get_settings
from sqlbackup.errors import BackupError, IntegrityMismatch
from sqlbackup.models import BackupRecord
from sqlbackup.operations import (
    VerifyOutcome,
    backup_database,
    delete_backup,
    list_backups,
    restore_backup,
    verify_backups,
)

COMMANDS = ("backup", "restore", "delete", "verify", "list", "help")
HELP_FLAGS = ("help", "-h", "--help")
LIST_COLUMNS = ("ID", "Date", "Source", "Backup")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlbackup",
        description="Create, verify and restore consistent SQLite3 backups.",
        epilog=(
            "Environment: BACKUP_BASE (default /opt/backup), BACKUP_PATH "
            "(default $BACKUP_BASE), BACKUP_METADATA (default "
            "$BACKUP_BASE/.sqlbackup.db), BACKUP_LOG_LEVEL, BACKUP_LOG_FILE."
        ),
    )
    sub = parser.add_subparsers(dest="command", metavar="command")

    backup = sub.add_parser("backup", help="Back up a SQLite database.")
    backup.add_argument("source", type=Path, help="Path to the database file.")
    backup.add_argument(
        "dest",
        type=Path,
        nargs="?",
        default=None,
        help="Backup directory. Defaults to $BACKUP_PATH.",
    )

    restore = sub.add_parser("restore", help="Restore a backup over its source database.")
    restore.add_argument("id", type=int, nargs="?", default=None, help="Backup ID.")

    delete = sub.add_parser("delete", help="Delete a backup file and its record.")
    delete.add_argument("id", type=int, nargs="?", default=None, help="Backup ID.")

    verify = sub.add_parser("verify", help="Verify checksums of one or all backups.")
    verify.add_argument(
        "id", type=int, nargs="?", default=None, help="Backup ID. Omit to verify all."
    )

    sub.add_parser("list", help="List all backups.")
    sub.add_parser("help", help="Show this help.")
    return parser


def format_table(records: Sequence[BackupRecord]) -> str:
    rows: List[List[str]] = [list(LIST_COLUMNS)]
    for record in records:
        rows.append([str(record.id), record.date, record.source, record.backup])
    widths = [max(len(row[i]) for row in rows) for i in range(len(LIST_COLUMNS))]
    lines = []
    for index, row in enumerate(rows):
        lines.append("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
        if index == 0:
            lines.append("  ".join("-" * width for width in widths))
    return "\n".join(lines)


def _print_outcome(outcome: VerifyOutcome) -> None:
    if outcome.ok:
        print(f"[OK] {outcome.record_id}: {outcome.backup}")
    elif outcome.status == "missing":
        print(f"[ERR] {outcome.record_id}: backup file missing: {outcome.backup}")
    else:
        print(
            f"[ERR] {outcome.record_id}: SHA256 mismatch! "
            f"expected={outcome.expected} actual={outcome.actual}"
        )


def _run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "backup":
        record = backup_database(settings, args.source, args.dest)
        print(
            "[OK] Backup created:\n"
            f"- ID: {record.id}\n"
            f"- DB: {record.source}\n"
            f"- BACKUP: {record.backup}"
        )
        print(f"[INFO] sha256={record.sha256}")
        return 0

    if args.command == "list":
        print(format_table(list_backups(settings)))
        return 0

    if args.command == "verify":
        outcomes = verify_backups(settings, args.id)
        for outcome in outcomes:
            _print_outcome(outcome)
        print(f"[OK] {len(outcomes)} backup(s) verified.")
        return 0

    if args.command == "restore":
        record = restore_backup(settings, args.id)
        print(f"[OK] Restored backup {record.id} to: {record.source}")
        return 0

    record, removed = delete_backup(settings, args.id)
    if not removed:
        print(f"[INFO] Backup file already removed: {record.backup}")
    print(f"[OK] Deleted backup {record.id}.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()

    if not argv or argv[0] in HELP_FLAGS:
        parser.print_help()
        return 0
    if argv[0] not in COMMANDS:
        print(f"[ERR] Invalid argument: {argv[0]}")
        parser.print_help()
        return 1

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings)
    try:
        return _run(args, settings)
    except IntegrityMismatch as exc:
        for outcome in exc.outcomes:
            _print_outcome(outcome)
        print(f"[ERR] {exc.message}")
        return exc.exit_code
    except BackupError as exc:
        print(f"[ERR] {exc.message}")
        return exc.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
