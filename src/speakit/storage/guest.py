"""Guest store — device-local JSON file under two fixed keys.

Layout::

    {
      "speakit_guest_history":   [ {HistoryRecord}, ... ],   # newest first, max 50
      "speakit_guest_bookmarks": [ {Bookmark}, ... ]         # one per history_id
    }

Writes go through a temp file + os.replace so a crash never leaves a
half-written file behind.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from speakit.db.models import Bookmark, HistoryRecord
from speakit.storage.base import BookmarkStore, StoreError

HISTORY_KEY = "speakit_guest_history"
BOOKMARKS_KEY = "speakit_guest_bookmarks"
DEFAULT_HISTORY_LIMIT = 50


class GuestStore(BookmarkStore):
    """Persist history and bookmarks for an unauthenticated user on this device.

    Args:
        path: JSON file backing the store (created on first write).
        history_limit: Keep only this many most-recent history entries.
    """

    identity = None

    def __init__(self, path: Path | str, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be >= 1")
        self.path = Path(path)
        self.history_limit = history_limit
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(self, record: HistoryRecord) -> None:
        with self._lock:
            data = self._read()
            history = [record.to_dict(), *data.get(HISTORY_KEY, [])]
            data[HISTORY_KEY] = history[: self.history_limit]
            self._write(data)

    def get_history(self, history_id: str) -> HistoryRecord | None:
        return next((r for r in self.list_history() if r.id == history_id), None)

    def list_history(self, limit: int | None = None) -> list[HistoryRecord]:
        with self._lock:
            raw = self._read().get(HISTORY_KEY, [])
        records = [HistoryRecord.from_dict(item) for item in raw]
        return records[:limit] if limit is not None else records

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    def save_bookmark(self, bookmark: Bookmark) -> None:
        with self._lock:
            data = self._read()
            bookmarks: list[dict[str, Any]] = data.get(BOOKMARKS_KEY, [])
            for i, existing in enumerate(bookmarks):
                if existing["history_id"] == bookmark.content_key:
                    if bookmark.updated_at < existing["updated_at"]:
                        return
                    bookmarks[i] = bookmark.to_dict()
                    break
            else:
                bookmarks.append(bookmark.to_dict())
            data[BOOKMARKS_KEY] = bookmarks
            self._write(data)

    def get_bookmark(self, content_key: str) -> Bookmark | None:
        return next((b for b in self.list_bookmarks() if b.content_key == content_key), None)

    def list_bookmarks(self) -> list[Bookmark]:
        with self._lock:
            raw = self._read().get(BOOKMARKS_KEY, [])
        bookmarks = [Bookmark.from_dict(item) for item in raw]
        return sorted(bookmarks, key=lambda b: b.updated_at, reverse=True)

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read guest store '{self.path}': {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Guest store '{self.path}' is not a JSON object.")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".speakit-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StoreError(f"Cannot write guest store '{self.path}': {exc}") from exc
