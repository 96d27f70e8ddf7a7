"""Bookmark reconciler — keeps a store in step with the playback position.

Writes are fire-and-forget: with an executor they run off the playback path
(a single-worker executor also keeps them in submission order); without one
they run inline. Either way a StoreError is logged and handed to the error
listeners, never raised into playback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future

from speakit.db.models import Bookmark, HistoryRecord
from speakit.reader.controller import PlaybackController, PlaybackState
from speakit.reader.position import PlaybackPosition
from speakit.storage.base import BookmarkStore, StoreError

logger = logging.getLogger(__name__)

ErrorListener = Callable[[StoreError], None]


class BookmarkReconciler:
    """Persist and restore bookmarks through one BookmarkStore.

    Args:
        store: Guest or account store, chosen once per session.
        save_interval: While playing, persist every N advanced units.
        executor: Runs writes in the background when given.
    """

    def __init__(
        self,
        store: BookmarkStore,
        *,
        save_interval: int = 10,
        executor: Executor | None = None,
    ) -> None:
        if save_interval < 1:
            raise ValueError("save_interval must be >= 1")
        self._store = store
        self._save_interval = save_interval
        self._executor = executor
        self._error_listeners: list[ErrorListener] = []
        self._detach: list[Callable[[], None]] = []
        self._content_key: str | None = None
        self._position: PlaybackPosition | None = None
        self._last_saved: int | None = None

    @property
    def store(self) -> BookmarkStore:
        return self._store

    def on_error(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    # ------------------------------------------------------------------
    # Direct operations
    # ------------------------------------------------------------------

    def save(self, content_key: str, position: int, total_units: int) -> None:
        """Upsert the bookmark for *content_key* (stamped now)."""
        bookmark = Bookmark(content_key=content_key, position=position, total_units=total_units)
        self._submit("save bookmark", self._store.save_bookmark, bookmark)

    def load(self, content_key: str) -> Bookmark | None:
        """Return the stored bookmark, or None if absent or unreadable."""
        try:
            return self._store.get_bookmark(content_key)
        except StoreError as exc:
            self._report(exc)
            return None

    def append_history(self, record: HistoryRecord) -> None:
        self._submit("add history", self._store.add_history, record)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def attach(
        self, content_key: str, position: PlaybackPosition, controller: PlaybackController
    ) -> None:
        """Follow *position* and *controller* for *content_key*.

        Saves every ``save_interval`` units while playing and whenever
        playback leaves the PLAYING state.
        """
        self.detach()
        self._content_key = content_key
        self._position = position
        self._last_saved = position.current_index
        self._detach.append(position.subscribe(self._on_position))
        self._detach.append(controller.subscribe(self._on_state))

    def detach(self, flush: bool = False) -> None:
        """Stop following the current session, optionally saving it first."""
        if flush:
            self.flush()
        for unsubscribe in self._detach:
            unsubscribe()
        self._detach.clear()
        self._content_key = None
        self._position = None
        self._last_saved = None

    def flush(self) -> None:
        """Save the followed position if it changed since the last save."""
        if self._content_key is None or self._position is None:
            return
        if self._position.current_index != self._last_saved:
            self._save_current()

    def _on_position(self, position: PlaybackPosition) -> None:
        if self._last_saved is None:
            return
        if abs(position.current_index - self._last_saved) >= self._save_interval:
            self._save_current()

    def _on_state(self, state: PlaybackState) -> None:
        if self._content_key is None:
            return
        if state in (PlaybackState.PAUSED, PlaybackState.STOPPED, PlaybackState.FINISHED):
            self._save_current()

    def _save_current(self) -> None:
        assert self._content_key is not None and self._position is not None
        self._last_saved = self._position.current_index
        self.save(self._content_key, self._position.current_index, self._position.total_units)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _submit(self, action: str, fn: Callable, *args) -> None:
        if self._executor is None:
            try:
                fn(*args)
            except StoreError as exc:
                self._report(exc)
            return
        future = self._executor.submit(fn, *args)
        future.add_done_callback(lambda f: self._check(action, f))

    def _check(self, action: str, future: Future) -> None:
        exc = future.exception()
        if exc is None:
            return
        if isinstance(exc, StoreError):
            self._report(exc)
        else:
            logger.error("Unexpected failure during %s", action, exc_info=exc)

    def _report(self, exc: StoreError) -> None:
        logger.warning("%s", exc)
        for listener in list(self._error_listeners):
            listener(exc)
