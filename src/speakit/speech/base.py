"""Speech engine interface.

An engine speaks one unit at a time. ``speak()`` returns immediately; the
completion callback fires later from ``poll()`` (or synchronously when the
utterance cannot be started). ``cancel()`` drops the pending callback, so a
cancelled utterance never reports completion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

Completion = Callable[["Exception | None"], None]


class SpeechError(RuntimeError):
    """Raised (or passed to a completion callback) when an utterance fails."""


class SpeechEngineBusy(SpeechError):
    """Raised when speak() is called while another utterance is active."""


@dataclass(frozen=True)
class VoiceDescriptor:
    id: str
    name: str
    language: str = ""


class SpeechEngine(ABC):
    """Abstract base for all speech engines.

    Subclasses implement ``list_voices()``, ``_start()`` and ``_halt()``, and
    call ``_finish()`` when the active utterance ends.
    """

    def __init__(self) -> None:
        self._pending: Completion | None = None
        self._voice_listeners: list[Callable[[], None]] = []

    @abstractmethod
    def list_voices(self) -> list[VoiceDescriptor]:
        """Return the voices currently known to the engine (may be empty)."""

    @abstractmethod
    def _start(self, unit: str, voice: VoiceDescriptor, rate: float) -> None:
        """Begin speaking *unit*. Raise SpeechError if it cannot start."""

    @abstractmethod
    def _halt(self) -> None:
        """Stop the active utterance, if any."""

    @property
    def speaking(self) -> bool:
        return self._pending is not None

    def speak(
        self, unit: str, voice: VoiceDescriptor, rate: float, on_done: Completion
    ) -> None:
        """Start speaking *unit*; *on_done* receives None or the failure."""
        if self._pending is not None:
            raise SpeechEngineBusy("An utterance is already in progress.")
        self._pending = on_done
        try:
            self._start(unit, voice, rate)
        except (SpeechError, OSError) as exc:
            self._finish(exc)

    def cancel(self) -> None:
        """Stop the active utterance without firing its completion callback."""
        self._pending = None
        self._halt()

    def poll(self) -> None:
        """Check the active utterance and fire its completion if it ended."""

    def on_voices_changed(self, listener: Callable[[], None]) -> None:
        self._voice_listeners.append(listener)

    def _notify_voices_changed(self) -> None:
        for listener in list(self._voice_listeners):
            listener()

    def _finish(self, error: Exception | None = None) -> None:
        callback, self._pending = self._pending, None
        if callback is not None:
            callback(error)
