"""Playback position store.

Owned by one PlaybackController, which is the only caller of the mutating
methods. Everyone else subscribes for change notifications.
"""

from __future__ import annotations

from collections.abc import Callable

PositionListener = Callable[["PlaybackPosition"], None]


class PlaybackPosition:
    """Current unit index over a fixed number of units.

    Invariant: ``0 <= current_index <= total_units``.
    """

    def __init__(self, total_units: int, current_index: int = 0) -> None:
        if total_units < 0:
            raise ValueError("total_units must be >= 0")
        if not 0 <= current_index <= total_units:
            raise ValueError(
                f"current_index {current_index} outside [0, {total_units}]"
            )
        self._total = total_units
        self._index = current_index
        self._listeners: list[PositionListener] = []

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def total_units(self) -> int:
        return self._total

    @property
    def progress_ratio(self) -> float:
        return self._index / self._total if self._total > 0 else 0.0

    @property
    def at_end(self) -> bool:
        return self._index >= self._total

    def subscribe(self, listener: PositionListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def advance(self) -> int:
        """Move to the next unit and notify listeners. Returns the new index."""
        if self.at_end:
            raise ValueError("Cannot advance past the last unit.")
        self._index += 1
        self._notify()
        return self._index

    def reset(self) -> None:
        self._set(0)

    def restore(self, index: int) -> int:
        """Jump to a saved index, clamped into range. Returns the applied index."""
        applied = max(0, min(self._total, index))
        self._set(applied)
        return applied

    def _set(self, index: int) -> None:
        if index == self._index:
            return
        self._index = index
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
