"""Repository pattern for all account database operations.

Single interface for reading history and bookmarks. Every method takes the
owning ``user_id`` and filters on it: an account only ever sees its own rows.
"""

from __future__ import annotations

import sqlite3

from speakit.db.models import Bookmark, HistoryRecord, SourceType


class Repository:
    """Data access layer for reading history and bookmarks.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see speakit.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Reading history
    # ------------------------------------------------------------------

    def add_history(self, user_id: str, record: HistoryRecord) -> None:
        """Insert a history record owned by *user_id*.

        Args:
            user_id: Owning account.
            record: HistoryRecord to persist (its ``id`` is the primary key).
        """
        self._conn.execute(
            """
            INSERT INTO reading_history
                (id, user_id, title, source_type, source_url, content_preview, read_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                user_id,
                record.title,
                record.source_type.value,
                record.source_url,
                record.content_preview,
                record.read_at,
            ),
        )
        self._conn.commit()

    def get_history(self, user_id: str, history_id: str) -> HistoryRecord | None:
        """Return one history record, or None if missing or owned by someone else."""
        row = self._conn.execute(
            """
            SELECT id, title, source_type, source_url, content_preview, read_at
            FROM reading_history WHERE id = ? AND user_id = ?
            """,
            (history_id, user_id),
        ).fetchone()
        return _row_to_history(row) if row else None

    def list_history(self, user_id: str, limit: int | None = None) -> list[HistoryRecord]:
        """Return the account's history, newest first."""
        sql = """
            SELECT id, title, source_type, source_url, content_preview, read_at
            FROM reading_history WHERE user_id = ? ORDER BY read_at DESC
        """
        params: tuple = (user_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (user_id, limit)
        return [_row_to_history(r) for r in self._conn.execute(sql, params).fetchall()]

    def delete_history(self, user_id: str, history_id: str) -> bool:
        """Delete a history record and (by cascade) its bookmark.

        Returns:
            True if a row owned by *user_id* was deleted.
        """
        cur = self._conn.execute(
            "DELETE FROM reading_history WHERE id = ? AND user_id = ?",
            (history_id, user_id),
        )
        self._conn.commit()
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    def upsert_bookmark(self, user_id: str, bookmark: Bookmark) -> None:
        """Insert or update the bookmark for ``bookmark.content_key``.

        An update only lands when it is at least as recent as the stored row
        (last write wins on ``updated_at``).
        """
        self._conn.execute(
            """
            INSERT INTO bookmarks (user_id, history_id, position, total_words, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, history_id) DO UPDATE SET
                position = excluded.position,
                total_words = excluded.total_words,
                updated_at = excluded.updated_at
            WHERE excluded.updated_at >= bookmarks.updated_at
            """,
            (
                user_id,
                bookmark.content_key,
                bookmark.position,
                bookmark.total_units,
                bookmark.updated_at,
            ),
        )
        self._conn.commit()

    def get_bookmark(self, user_id: str, history_id: str) -> Bookmark | None:
        """Return the bookmark for *history_id*, or None if not found."""
        row = self._conn.execute(
            """
            SELECT history_id, position, total_words, updated_at
            FROM bookmarks WHERE user_id = ? AND history_id = ?
            """,
            (user_id, history_id),
        ).fetchone()
        return _row_to_bookmark(row) if row else None

    def list_bookmarks(self, user_id: str) -> list[Bookmark]:
        """Return all bookmarks of *user_id*, most recently updated first."""
        rows = self._conn.execute(
            """
            SELECT history_id, position, total_words, updated_at
            FROM bookmarks WHERE user_id = ? ORDER BY updated_at DESC
            """,
            (user_id,),
        ).fetchall()
        return [_row_to_bookmark(r) for r in rows]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_history(row: sqlite3.Row) -> HistoryRecord:
    return HistoryRecord(
        id=row["id"],
        title=row["title"],
        source_type=SourceType(row["source_type"]),
        source_url=row["source_url"],
        content_preview=row["content_preview"],
        read_at=row["read_at"],
    )


def _row_to_bookmark(row: sqlite3.Row) -> Bookmark:
    return Bookmark(
        content_key=row["history_id"],
        position=row["position"],
        total_units=row["total_words"],
        updated_at=row["updated_at"],
    )
