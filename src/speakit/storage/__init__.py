"""Bookmark and history persistence — guest (local) and account backends."""

from speakit.storage.account import AccountStore
from speakit.storage.base import BookmarkStore, StoreError
from speakit.storage.factory import open_store
from speakit.storage.guest import BOOKMARKS_KEY, HISTORY_KEY, GuestStore
from speakit.storage.reconciler import BookmarkReconciler

__all__ = [
    "AccountStore",
    "BOOKMARKS_KEY",
    "BookmarkReconciler",
    "BookmarkStore",
    "GuestStore",
    "HISTORY_KEY",
    "StoreError",
    "open_store",
]
