"""Storage interface shared by the guest and account backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from speakit.db.models import Bookmark, HistoryRecord


class StoreError(RuntimeError):
    """Raised when a backend cannot read or write persisted state."""


class BookmarkStore(ABC):
    """History and bookmark persistence for one identity.

    Implementations must make ``save_bookmark()`` an upsert keyed by
    ``content_key`` where the most recent ``updated_at`` wins, and must wrap
    backend failures in StoreError.
    """

    #: Account id, or None for the device-local guest store.
    identity: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.identity is None

    @abstractmethod
    def add_history(self, record: HistoryRecord) -> None:
        """Append *record* to the reading history."""

    @abstractmethod
    def get_history(self, history_id: str) -> HistoryRecord | None:
        """Return one history record, or None."""

    @abstractmethod
    def list_history(self, limit: int | None = None) -> list[HistoryRecord]:
        """Return history records, newest first."""

    @abstractmethod
    def save_bookmark(self, bookmark: Bookmark) -> None:
        """Upsert *bookmark* (last write wins on ``updated_at``)."""

    @abstractmethod
    def get_bookmark(self, content_key: str) -> Bookmark | None:
        """Return the bookmark for *content_key*, or None."""

    @abstractmethod
    def list_bookmarks(self) -> list[Bookmark]:
        """Return all bookmarks, most recently updated first."""

    def close(self) -> None:
        """Release backend resources."""
