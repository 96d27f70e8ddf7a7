"""Account store — history and bookmarks in the shared account database."""

from __future__ import annotations

import sqlite3
import threading

from speakit.db.models import Bookmark, HistoryRecord
from speakit.db.repository import Repository
from speakit.storage.base import BookmarkStore, StoreError


class AccountStore(BookmarkStore):
    """BookmarkStore bound to one signed-in account.

    Every call goes through the Repository with this account's ``user_id``,
    so rows of other accounts are neither visible nor writable.

    Args:
        conn: Open connection with the schema initialised. Owned by the store
            and closed by ``close()``.
        user_id: The authenticated identity.
    """

    def __init__(self, conn: sqlite3.Connection, user_id: str) -> None:
        if not user_id:
            raise ValueError("AccountStore requires a user_id")
        self.identity = user_id
        self._conn = conn
        self._repo = Repository(conn)
        self._lock = threading.Lock()

    def add_history(self, record: HistoryRecord) -> None:
        self._call("add history", self._repo.add_history, self.identity, record)

    def get_history(self, history_id: str) -> HistoryRecord | None:
        return self._call("read history", self._repo.get_history, self.identity, history_id)

    def list_history(self, limit: int | None = None) -> list[HistoryRecord]:
        return self._call("list history", self._repo.list_history, self.identity, limit)

    def delete_history(self, history_id: str) -> bool:
        """Delete a history record and its bookmark. Returns False if not found."""
        return self._call("delete history", self._repo.delete_history, self.identity, history_id)

    def save_bookmark(self, bookmark: Bookmark) -> None:
        self._call("save bookmark", self._repo.upsert_bookmark, self.identity, bookmark)

    def get_bookmark(self, content_key: str) -> Bookmark | None:
        return self._call("read bookmark", self._repo.get_bookmark, self.identity, content_key)

    def list_bookmarks(self) -> list[Bookmark]:
        return self._call("list bookmarks", self._repo.list_bookmarks, self.identity)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _call(self, action, fn, *args):
        with self._lock:
            try:
                return fn(*args)
            except sqlite3.Error as exc:
                raise StoreError(f"Could not {action} for account '{self.identity}': {exc}") from exc
