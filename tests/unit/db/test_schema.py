"""Tests for database schema initialization."""

from __future__ import annotations

from speakit.db.schema import CURRENT_VERSION, initialize


def _table_columns(conn, table: str) -> set[str]:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return {row["name"] for row in rows}


def test_reading_history_columns(tmp_db):
    cols = _table_columns(tmp_db, "reading_history")
    assert cols == {
        "id",
        "user_id",
        "title",
        "source_type",
        "source_url",
        "content_preview",
        "read_at",
    }


def test_bookmarks_columns(tmp_db):
    cols = _table_columns(tmp_db, "bookmarks")
    assert cols == {"user_id", "history_id", "position", "total_words", "updated_at"}


def test_history_user_index_exists(tmp_db):
    row = tmp_db.execute(
        "SELECT name FROM sqlite_master WHERE type='index' AND name='idx_history_user'"
    ).fetchone()
    assert row is not None


def test_schema_version_recorded(tmp_db):
    version = tmp_db.execute("SELECT version FROM schema_version").fetchone()[0]
    assert version == CURRENT_VERSION


def test_initialize_idempotent(tmp_db):
    initialize(tmp_db)
    rows = tmp_db.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert rows == 1
