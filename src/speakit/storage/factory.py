"""Choose the storage backend for a session."""

from __future__ import annotations

from pathlib import Path

from speakit.config import StorageCfg
from speakit.db.connection import Database
from speakit.db.schema import initialize
from speakit.storage.account import AccountStore
from speakit.storage.base import BookmarkStore
from speakit.storage.guest import GuestStore


def open_store(cfg: StorageCfg, user_id: str | None = None) -> BookmarkStore:
    """Return the account store for *user_id*, or the guest store when None.

    Called once at session start; everything downstream only sees the
    BookmarkStore interface.
    """
    if user_id:
        conn = Database(Path(cfg.db_path).expanduser()).connect()
        initialize(conn)
        return AccountStore(conn, user_id)
    return GuestStore(Path(cfg.guest_path).expanduser(), history_limit=cfg.history_limit)
