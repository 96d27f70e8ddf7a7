"""Speakit account database layer."""

from speakit.db.connection import Database
from speakit.db.migrations import MIGRATIONS, run_migrations
from speakit.db.schema import initialize

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
