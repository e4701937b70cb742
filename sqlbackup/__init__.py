"""Consistent SQLite3 backups with a companion metadata store."""

__version__ = "1.0.0"
