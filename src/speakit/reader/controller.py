"""Playback controller — drives unit-by-unit speech over a PlaybackPosition.

States::

    IDLE ──play──▶ PLAYING ──pause──▶ PAUSED ──play──▶ PLAYING
                      │  ▲                │
          completion  │  │ next unit      │ stop
                      ▼  │                ▼
                   FINISHED ──stop──▶ STOPPED (index 0) ──play──▶ PLAYING

Every ``play()`` opens a new epoch. Completions are bound to the epoch and
index they were issued for; anything else is stale and ignored. At most one
unit is in flight at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from functools import partial

from speakit.config import clamp_rate
from speakit.reader.position import PlaybackPosition
from speakit.reader.voices import VoiceSelection
from speakit.speech.base import SpeechEngine

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    FINISHED = "finished"


class NoVoiceError(RuntimeError):
    """Raised by play() when no voice is available yet."""


StateListener = Callable[[PlaybackState], None]
ErrorListener = Callable[[int, Exception], None]


class PlaybackController:
    """Speak *units* one at a time through *engine*, advancing *position*.

    Args:
        units: Tokenized content.
        position: Position store for *units* (owned by this controller).
        engine: Speech engine. Only this controller may call it.
        voices: Voice selection, read at every emission.
        rate: Initial speed multiplier (clamped to 0.5-2.0).
        advance_on_error: Treat a failed unit as spoken. When False, playback
            pauses on the failing unit and error listeners are told.
        replay_finished: ``play()`` after FINISHED restarts from unit 0
            instead of doing nothing.
    """

    def __init__(
        self,
        units: Sequence[str],
        position: PlaybackPosition,
        engine: SpeechEngine,
        voices: VoiceSelection,
        *,
        rate: float = 1.0,
        advance_on_error: bool = True,
        replay_finished: bool = False,
    ) -> None:
        if position.total_units != len(units):
            raise ValueError(
                f"Position covers {position.total_units} units, content has {len(units)}"
            )
        self._units = list(units)
        self._position = position
        self._engine = engine
        self._voices = voices
        self._rate = clamp_rate(rate)
        self._advance_on_error = advance_on_error
        self._replay_finished = replay_finished

        self._state = PlaybackState.FINISHED if position.at_end and units else PlaybackState.IDLE
        self._epoch = 0
        self._in_flight = False
        self._driving = False
        self._closed = False
        self._state_listeners: list[StateListener] = []
        self._error_listeners: list[ErrorListener] = []

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def position(self) -> PlaybackPosition:
        return self._position

    @property
    def units(self) -> list[str]:
        return list(self._units)

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def current_unit(self) -> str | None:
        index = self._position.current_index
        return self._units[index] if index < len(self._units) else None

    @property
    def rate(self) -> float:
        return self._rate

    @rate.setter
    def rate(self, value: float) -> None:
        # Read at the next emission; the in-flight unit keeps its rate.
        self._rate = clamp_rate(value)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* for state changes; returns an unsubscribe function."""
        self._state_listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._state_listeners:
                self._state_listeners.remove(listener)

        return _unsubscribe

    def on_error(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def play(self) -> None:
        """Start or resume speaking from the current index.

        No-op while already playing. On FINISHED it is a no-op unless
        ``replay_finished`` is set, in which case playback restarts at 0.

        Raises:
            NoVoiceError: If there are units to speak but no voice selected.
        """
        self._check_open()
        if self._state is PlaybackState.PLAYING:
            return
        restart = self._state is PlaybackState.FINISHED
        if restart and (not self._replay_finished or not self._units):
            return
        if (restart or not self._position.at_end) and self._voices.selected is None:
            raise NoVoiceError("No voice available; playback is disabled until one is.")
        if restart:
            self._position.reset()

        self._epoch += 1
        self._set_state(PlaybackState.PLAYING)
        self._drive()

    def pause(self) -> None:
        """Cancel the in-flight unit and keep the index (it is re-spoken on resume)."""
        if self._state is not PlaybackState.PLAYING:
            return
        self._interrupt()
        self._set_state(PlaybackState.PAUSED)

    def stop(self) -> None:
        """Cancel any in-flight unit and rewind to the first unit."""
        self._check_open()
        self._interrupt()
        self._position.reset()
        self._set_state(PlaybackState.STOPPED)

    def close(self) -> None:
        """Release the engine for another session. The controller is unusable afterwards."""
        if self._closed:
            return
        if self._state is PlaybackState.PLAYING:
            self.pause()
        else:
            self._interrupt()
        self._closed = True

    # ------------------------------------------------------------------
    # Emission loop
    # ------------------------------------------------------------------

    def _drive(self) -> None:
        # Engines may complete synchronously inside speak(); the guard turns
        # that re-entry into another loop iteration instead of recursion.
        if self._driving:
            return
        self._driving = True
        try:
            while self._state is PlaybackState.PLAYING and not self._in_flight:
                if self._position.at_end:
                    self._set_state(PlaybackState.FINISHED)
                    break
                self._emit()
        finally:
            self._driving = False

    def _emit(self) -> None:
        voice = self._voices.selected
        if voice is None:
            logger.warning("Voice list became empty during playback; pausing.")
            self._set_state(PlaybackState.PAUSED)
            return
        index = self._position.current_index
        self._in_flight = True
        self._engine.speak(
            self._units[index],
            voice,
            self._rate,
            partial(self._on_unit_done, self._epoch, index),
        )

    def _on_unit_done(self, epoch: int, index: int, error: Exception | None) -> None:
        if (
            epoch != self._epoch
            or self._state is not PlaybackState.PLAYING
            or index != self._position.current_index
        ):
            logger.debug("Ignoring stale completion for unit %d (epoch %d)", index, epoch)
            return
        self._in_flight = False

        if error is not None:
            if not self._advance_on_error:
                logger.warning("Speech failed on unit %d: %s", index, error)
                self._epoch += 1
                self._set_state(PlaybackState.PAUSED)
                self._notify_error(index, error)
                return
            logger.debug("Speech failed on unit %d, skipping: %s", index, error)

        self._position.advance()
        self._drive()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _interrupt(self) -> None:
        self._epoch += 1
        if self._in_flight:
            self._engine.cancel()
            self._in_flight = False

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("PlaybackController is closed.")

    def _set_state(self, state: PlaybackState) -> None:
        if state is self._state:
            return
        self._state = state
        for listener in list(self._state_listeners):
            listener(state)

    def _notify_error(self, index: int, error: Exception) -> None:
        for listener in list(self._error_listeners):
            listener(index, error)
